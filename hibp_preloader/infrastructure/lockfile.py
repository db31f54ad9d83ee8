"""PID lock file marking a download run in progress."""

import logging
import os
from pathlib import Path
from typing import Optional


class LockFile:
    """A lock file holding the process ID of the running download."""

    def __init__(self, path: Path):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = Path(path).expanduser()

    def holder(self) -> Optional[str]:
        """Returns the PID recorded in an existing lock, or None."""
        try:
            return self.path.read_text(encoding="utf-8").strip() or "unknown"
        except FileNotFoundError:
            return None

    def acquire(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(os.getpid()), encoding="utf-8")
        self.logger.debug(f"Created lock file {self.path}")

    def release(self):
        self.path.unlink(missing_ok=True)

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
