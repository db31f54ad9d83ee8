from pathlib import Path
from unittest.mock import patch

import pytest

from hibp_preloader.application.exceptions import ConfigurationError
from hibp_preloader.infrastructure.options import RunOptions, default_thread_count


class TestRunOptionsDefaults:
    def test_defaults(self) -> None:
        options = RunOptions.build(output_path="hash+count.bin")

        assert options.output_path == Path("hash+count.bin")
        assert options.first_prefix == 0
        assert options.last_prefix == 0x10000
        assert options.prefix_step == 0x40
        assert options.threads >= 4
        assert options.effective_first == 0

    def test_none_values_fall_back_to_defaults(self) -> None:
        options = RunOptions.build(output_path="out.bin", threads=None, first_prefix=None)

        assert options.first_prefix == 0
        assert options.threads == default_thread_count()

    @pytest.mark.parametrize("cpus, expected", [(None, 4), (2, 4), (16, 16)])
    def test_default_thread_count(self, cpus, expected: int) -> None:
        with patch(
            "hibp_preloader.infrastructure.options.os.cpu_count", return_value=cpus
        ):
            assert default_thread_count() == expected

    def test_start_prefix_overrides_first(self) -> None:
        options = RunOptions.build(output_path="out.bin", start_prefix=0x80)

        assert options.effective_first == 0x80


class TestRunOptionsValidation:
    @pytest.mark.parametrize(
        "values",
        [
            {"first_prefix": 0x10000},
            {"first_prefix": -1},
            {"last_prefix": 0x10001},
            {"first_prefix": 0x100, "last_prefix": 0x100},
            {"prefix_step": 0},
            {"threads": 0},
            {"first_prefix": 0x100, "start_prefix": 0x80},
            {"last_prefix": 0x100, "start_prefix": 0x101},
        ],
    )
    def test_invalid_values_raise(self, values: dict) -> None:
        with pytest.raises(ConfigurationError):
            RunOptions.build(output_path="out.bin", **values)

    def test_missing_output_path(self) -> None:
        with pytest.raises(ConfigurationError):
            RunOptions.build()
