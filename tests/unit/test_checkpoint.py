from pathlib import Path
from unittest.mock import patch

import pytest

from hibp_preloader.application.domain import Checkpoint, PrefixBatch
from hibp_preloader.application.exceptions import (
    CheckpointFormatError,
    PersistenceError,
)
from hibp_preloader.infrastructure.checkpoint import FileCheckpointStore


def _checkpoint(start: int = 0x40, end: int = 0x80) -> Checkpoint:
    return Checkpoint(PrefixBatch(start, end), Path("/data/hash+count.bin"))


class TestFileCheckpointStoreFormat:
    def test_two_line_format(self, tmp_path: Path) -> None:
        store = FileCheckpointStore(tmp_path / "checkpoint")

        store.save(_checkpoint(0xFFC0, 0x10000))

        assert (tmp_path / "checkpoint").read_text() == (
            "ffc0-10000\n/data/hash+count.bin"
        )

    def test_parse_accepts_uppercase_and_trailing_newline(self) -> None:
        parsed = FileCheckpointStore.parse("00C0-0100\n/data/out.bin\n")

        assert parsed == Checkpoint(PrefixBatch(0xC0, 0x100), Path("/data/out.bin"))

    @pytest.mark.parametrize(
        "text",
        ["", "0040-0080", "0040-0080\n", "0040\n/out", "zz-0080\n/out", "0080-0040\n/out"],
    )
    def test_parse_rejects_malformed(self, text: str) -> None:
        with pytest.raises(CheckpointFormatError):
            FileCheckpointStore.parse(text)


class TestFileCheckpointStoreLifecycle:
    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        assert FileCheckpointStore(tmp_path / "checkpoint").load() is None

    def test_save_overwrites_previous(self, tmp_path: Path) -> None:
        store = FileCheckpointStore(tmp_path / "state" / "checkpoint")

        store.save(_checkpoint(0x00, 0x40))
        store.save(_checkpoint(0x40, 0x80))

        assert store.load() == _checkpoint(0x40, 0x80)
        assert not (tmp_path / "state" / "checkpoint.part").exists()

    def test_clear(self, tmp_path: Path) -> None:
        store = FileCheckpointStore(tmp_path / "checkpoint")
        store.save(_checkpoint())

        store.clear()
        store.clear()

        assert store.load() is None

    def test_failed_save_keeps_previous_checkpoint(self, tmp_path: Path) -> None:
        store = FileCheckpointStore(tmp_path / "checkpoint")
        store.save(_checkpoint(0x00, 0x40))

        with patch(
            "hibp_preloader.infrastructure.checkpoint.os.replace",
            side_effect=OSError("read-only file system"),
        ):
            with pytest.raises(PersistenceError):
                store.save(_checkpoint(0x40, 0x80))

        assert store.load() == _checkpoint(0x00, 0x40)
        assert not (tmp_path / "checkpoint.part").exists()

    def test_expands_home_directory(self) -> None:
        store = FileCheckpointStore(Path("~/checkpoint"))

        assert store.path == Path.home() / "checkpoint"
