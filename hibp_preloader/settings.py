"""
Initializes the Dynaconf settings object for the hibp_preloader component.
This module is the single source of truth for all configuration.
"""

from pathlib import Path
from dynaconf import Dynaconf, Validator

PROJECT_ROOT = Path(__file__).parent.parent

PROJECT_NAME = "hibp-preloader"
PROJECT_VERSION = "1.0.0"

settings = Dynaconf(
    root_path=PROJECT_ROOT,
    settings_files=["config/settings.toml"],
    secrets=["config/.secrets.toml"],
    envvar_prefix="HIBP_PRELOADER",
    validators=[
        Validator(
            "preloader.api_base_url",
            default="https://api.pwnedpasswords.com",
            startswith="http",
        ),
        Validator(
            "preloader.user_agent",
            default=f"{PROJECT_NAME}/{PROJECT_VERSION}",
        ),
        Validator("preloader.timeout", default=30, gt=0),
        # 0 picks max(cpu count, 4)
        Validator("preloader.threads", default=0, gte=0),
        Validator("preloader.prefix_step", default=0x40, gt=0, lt=0x10000),
        Validator("preloader.retry.wait_seconds", default=0, gte=0),
        # 0 retries forever
        Validator("preloader.retry.max_attempts", default=0, gte=0),
        Validator("paths.output_file", default="hash+count.bin"),
        Validator("paths.state_dir", default="~/.hibp-preloader"),
        Validator("logging.level", default="INFO"),
    ],
)
