"""
Pydantic model validating the options of one download run.

The model is the contract between the command line / settings layer and the
application core: any value that gets past it describes a valid prefix
range, batch width and worker pool.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..application.domain import DEFAULT_PREFIX_STEP, MAX_PREFIX
from ..application.exceptions import ConfigurationError

MIN_DEFAULT_THREADS = 4


def default_thread_count() -> int:
    """At least four workers, more on machines with more cores."""
    return max(os.cpu_count() or 1, MIN_DEFAULT_THREADS)


class RunOptions(BaseModel):
    """
    Validated options for a run.

    `start_prefix`, when given, overrides `first_prefix` as the point the
    run begins at; it is what a resumed checkpoint resolves to.
    """

    output_path: Path
    first_prefix: int = Field(default=0, ge=0, lt=MAX_PREFIX)
    last_prefix: int = Field(default=MAX_PREFIX, gt=0, le=MAX_PREFIX)
    prefix_step: int = Field(default=DEFAULT_PREFIX_STEP, gt=0, lt=MAX_PREFIX)
    threads: int = Field(default_factory=default_thread_count, ge=1)
    start_prefix: Optional[int] = Field(default=None, ge=0, le=MAX_PREFIX)
    verbosity: int = Field(default=0, ge=0)
    quiet: bool = False

    @model_validator(mode="after")
    def _check_range(self) -> "RunOptions":
        if self.first_prefix >= self.last_prefix:
            raise ValueError(
                f"first prefix {self.first_prefix:04x} must be below "
                f"last prefix {self.last_prefix:04x}"
            )
        if self.start_prefix is not None and not (
            self.first_prefix <= self.start_prefix <= self.last_prefix
        ):
            raise ValueError(
                f"start prefix {self.start_prefix:04x} is outside "
                f"[{self.first_prefix:04x}, {self.last_prefix:04x}]"
            )
        return self

    @property
    def effective_first(self) -> int:
        if self.start_prefix is None:
            return self.first_prefix
        return self.start_prefix

    @classmethod
    def build(cls, **values) -> "RunOptions":
        """
        Validates raw values, dropping the ones left unset (None).

        Raises:
            ConfigurationError: If any value is out of range.
        """
        try:
            return cls.model_validate(
                {k: v for k, v in values.items() if v is not None}
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid run options: {e}") from e
