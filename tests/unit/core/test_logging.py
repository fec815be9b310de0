"""Unit tests for structured logging helpers."""

import logging

import pytest

from av_control.core import logging_config
from av_control.core.logging_config import coerce_level, configure_logging
from av_control.core.logging_utils import (
    StructuredLogger,
    ensure_structured_logger,
    get_module_logger,
)


class TestStructuredLogger:
    """Component prefixes and namespacing."""

    def test_namespaced(self):
        logger = get_module_logger("routing.engine")
        assert logger.name == "av_control.routing.engine"
        assert logger.component == "routing.engine"

    def test_prefix_added(self, caplog):
        logger = get_module_logger("Scheduler")
        with caplog.at_level(logging.INFO, logger="av_control"):
            logger.info("started %d timers", 2)
        assert "[Scheduler] started 2 timers" in caplog.text

    def test_bad_format_args_kept(self, caplog):
        logger = get_module_logger("Scheduler")
        with caplog.at_level(logging.INFO, logger="av_control"):
            logger.info("value %d", "x")
        assert "args=x" in caplog.text

    def test_get_child(self):
        child = get_module_logger("routing.engine").getChild("Room1")
        assert child.component == "routing.engine.Room1"

    def test_ensure_structured_logger(self):
        plain = logging.getLogger("av_control.test")
        wrapped = ensure_structured_logger(plain)
        assert isinstance(wrapped, StructuredLogger)
        assert ensure_structured_logger(wrapped) is wrapped
        assert ensure_structured_logger(None, fallback_name="x").name == "av_control.x"


class TestConfigureLogging:
    """Root handler setup."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        logging_config._configured = False

    def test_coerce_level(self):
        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(logging.WARNING) == logging.WARNING
        with pytest.raises(ValueError):
            coerce_level("loud")

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "av.log"
        configure_logging("info", force=True, console=False, log_file=log_file)
        get_module_logger("routing.table").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "[routing.table] hello" in log_file.read_text()

    def test_component_levels(self):
        configure_logging(
            "warning",
            force=True,
            console=False,
            component_levels={"routing.buttons": "debug"},
        )
        assert logging.getLogger("av_control.routing.buttons").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING
        logging.getLogger("av_control.routing.buttons").setLevel(logging.NOTSET)
