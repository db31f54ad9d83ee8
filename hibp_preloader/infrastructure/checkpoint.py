"""File implementation of the CheckpointStore port."""

import contextlib
import logging
import os
from pathlib import Path
from typing import Generator, Optional

from ..application.domain import Checkpoint, CheckpointStore, PrefixBatch
from ..application.exceptions import CheckpointFormatError, PersistenceError


class FileCheckpointStore(CheckpointStore):
    """
    Keeps the checkpoint as two text lines: `<start>-<end>` in 4-digit hex,
    then the output path. Saving goes through a `.part` file renamed over the
    old checkpoint, so readers see either the old or the new one.
    """

    def __init__(self, path: Path):
        """Initializes the store."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = Path(path).expanduser()

    @contextlib.contextmanager
    def _atomic_target(self) -> Generator[Path, None, None]:
        """Provides a temporary '.part' path and ensures cleanup."""
        part_path = self.path.with_suffix(self.path.suffix + ".part")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            yield part_path
        finally:
            part_path.unlink(missing_ok=True)

    @staticmethod
    def format(checkpoint: Checkpoint) -> str:
        return f"{checkpoint.batch}\n{checkpoint.output_path}"

    @staticmethod
    def parse(text: str) -> Checkpoint:
        """
        Reads the two-line checkpoint format.

        Raises:
            CheckpointFormatError: If either line is missing or malformed.
        """
        lines = text.splitlines()
        if len(lines) < 2 or not lines[1]:
            raise CheckpointFormatError("Checkpoint must hold two lines.")
        start, sep, end = lines[0].partition("-")
        try:
            batch = PrefixBatch(int(start, 16), int(end, 16))
        except ValueError as e:
            raise CheckpointFormatError(
                f"Invalid checkpoint range {lines[0]!r}"
            ) from e
        if not sep or batch.start >= batch.end:
            raise CheckpointFormatError(f"Invalid checkpoint range {lines[0]!r}")
        return Checkpoint(batch=batch, output_path=Path(lines[1]))

    def load(self) -> Optional[Checkpoint]:
        """Returns the stored checkpoint, or None if there is none."""
        self.logger.debug(f"Probing for checkpoint file {self.path} ...")
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return self.parse(text)

    def save(self, checkpoint: Checkpoint):
        """
        Replaces the stored checkpoint with `checkpoint`.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        self.logger.info(f"Writing checkpoint file {self.path} ...")
        try:
            with self._atomic_target() as part_path:
                with open(part_path, "w", encoding="utf-8") as f:
                    f.write(self.format(checkpoint))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(part_path, self.path)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write checkpoint {self.path}: {e}"
            ) from e

    def clear(self):
        """Removes the stored checkpoint if present."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"Failed to remove checkpoint {self.path}: {e}"
            ) from e
