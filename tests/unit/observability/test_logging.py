"""Tests for logging setup."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from searchpress.config.settings import ObservabilitySettings
from searchpress.observability.logging import HANDLER_NAME, setup_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
    root.setLevel(level)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)
    structlog.reset_defaults()


def _installed() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


class TestSetupLogging:
    def test_installs_one_handler(self) -> None:
        setup_logging(ObservabilitySettings(log_level="warning"))
        setup_logging(ObservabilitySettings(log_level="warning"))

        assert len(_installed()) == 1
        assert logging.getLogger().level == logging.WARNING

    def test_stdlib_records_use_structlog_formatter(self) -> None:
        setup_logging()
        assert isinstance(_installed()[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_transport_loggers_follow_debug_flag(self) -> None:
        setup_logging(ObservabilitySettings())
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_logging(ObservabilitySettings(debug=True, log_format="console"))
        assert logging.getLogger("httpcore").level == logging.DEBUG
