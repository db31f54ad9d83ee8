"""
Dependency Injection container for the hibp_preloader component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

import operator
from pathlib import Path

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import PreloaderService
from ..application.shutdown import ShutdownController
from ..settings import settings

from .api_client import HttpRangeSource
from .checkpoint import FileCheckpointStore
from .lockfile import LockFile
from .output import BinaryOutputFile

_CHECKPOINT_FILENAME = "checkpoint"
_LOCK_FILENAME = "lock"


def _state_file(state_dir: str, filename: str) -> Path:
    return Path(state_dir).expanduser() / filename


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(settings)

    shutdown = providers.Singleton(ShutdownController)

    http_client = providers.Singleton(httpx.AsyncClient)

    range_source: providers.Factory[RangeSource] = providers.Factory(
        HttpRangeSource,
        client=http_client,
        base_url=config.provided.preloader.api_base_url,
        user_agent=config.provided.preloader.user_agent,
        timeout=config.provided.preloader.timeout,
        shutdown=shutdown,
        retry_wait_seconds=config.provided.preloader.retry.wait_seconds,
        retry_max_attempts=config.provided.preloader.retry.max_attempts,
    )

    record_sink: providers.Singleton[BinaryOutputFile] = providers.Singleton(
        BinaryOutputFile,
        path=cli_args.output_path,
    )

    checkpoint_store: providers.Singleton[CheckpointStore] = providers.Singleton(
        FileCheckpointStore,
        path=providers.Callable(
            _state_file, config.provided.paths.state_dir, _CHECKPOINT_FILENAME
        ),
    )

    lock_file = providers.Singleton(
        LockFile,
        path=providers.Callable(
            _state_file, config.provided.paths.state_dir, _LOCK_FILENAME
        ),
    )

    preloader_service = providers.Factory(
        PreloaderService,
        source=range_source,
        sink=record_sink,
        checkpoints=checkpoint_store,
        shutdown=shutdown,
        workers=cli_args.threads,
        show_progress=providers.Callable(operator.not_, cli_args.quiet),
    )
