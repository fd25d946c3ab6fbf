# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from collections.abc import Generator
from typing import Any

import pytest
from loguru import logger

from runwarden.logging import _log_format, configure_logging


@pytest.fixture
def restore_logger() -> Generator[None, None, None]:
    yield
    logger.remove()


def _record(level: str, extra: dict[str, Any]) -> Any:
    class _Level:
        name = level

    return {"level": _Level(), "extra": extra, "exception": None}


class TestLogFormat:
    """Tests for the loguru format builder."""

    def test_prefix_and_message(self) -> None:
        fmt = _log_format(_record("DEBUG", {}))
        assert "[runner]" in fmt
        assert "{message}" in fmt
        assert fmt.endswith("\n")

    def test_extra_braces_escaped(self) -> None:
        fmt = _log_format(_record("INFO", {"args": "{oops}"}))
        assert "{{oops}}" in fmt


class TestConfigureLogging:
    """Tests for sink configuration."""

    def test_warning_level_hides_debug(
        self, capsys: pytest.CaptureFixture[str], restore_logger: None
    ) -> None:
        configure_logging("WARNING")
        logger.debug("hidden diagnostic")
        logger.warning("visible warning")
        err = capsys.readouterr().err
        assert "hidden diagnostic" not in err
        assert "visible warning" in err

    def test_debug_level_shows_extras(
        self, capsys: pytest.CaptureFixture[str], restore_logger: None
    ) -> None:
        configure_logging("DEBUG")
        logger.debug("Spawning command", pid=42)
        err = capsys.readouterr().err
        assert "Spawning command" in err
        assert "pid=42" in err
