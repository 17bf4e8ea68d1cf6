"""Tests for logging setup."""

import logging
import pytest
from unittest.mock import patch
from click.testing import CliRunner

from tsk.cli import main
from tsk.logs import (
    LOG_FILE_NAME,
    console_level,
    get_logger,
    set_console_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging()


def handlers():
    tsk_logger = logging.getLogger("tsk")
    files = [h for h in tsk_logger.handlers if isinstance(h, logging.FileHandler)]
    consoles = [h for h in tsk_logger.handlers if h not in files]
    return consoles, files


class TestConsoleLevel:
    """Test reading the console level from the environment."""

    def test_default_is_warning(self):
        """Test the level with no variables set."""
        with patch.dict("os.environ", {}, clear=True):
            assert console_level() == logging.WARNING

    def test_debug_flag(self):
        """TSK_DEBUG wins over TSK_LOG_LEVEL."""
        with patch.dict("os.environ", {"TSK_DEBUG": "true", "TSK_LOG_LEVEL": "ERROR"}, clear=True):
            assert console_level() == logging.DEBUG

    def test_level_name(self):
        """Test level names in any case."""
        with patch.dict("os.environ", {"TSK_LOG_LEVEL": "info"}, clear=True):
            assert console_level() == logging.INFO

    def test_unknown_level_name(self):
        """Unknown level names fall back to warning."""
        with patch.dict("os.environ", {"TSK_LOG_LEVEL": "chatty"}, clear=True):
            assert console_level() == logging.WARNING


class TestSetupLogging:
    """Test the handlers installed on the tsk logger."""

    def test_file_gets_debug_records(self, tmp_path):
        """Test the log file receives records the console filters out."""
        setup_logging(logging.WARNING, tmp_path)
        get_logger("tests").debug("hidden from the console")
        consoles, files = handlers()
        for handler in files:
            handler.flush()

        assert [h.level for h in consoles] == [logging.WARNING]
        text = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
        assert "hidden from the console" in text
        assert "tsk.tests" in text

    def test_log_dir_from_environment(self, tmp_path):
        """Test TSK_LOG_DIR picks the log directory."""
        log_dir = tmp_path / "logs"
        with patch.dict("os.environ", {"TSK_LOG_DIR": str(log_dir)}):
            setup_logging()
        assert (log_dir / LOG_FILE_NAME).exists()

    def test_unusable_log_dir(self, tmp_path):
        """Only the console handler is kept when the directory cannot be made."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        setup_logging(logging.WARNING, blocker / "logs")
        consoles, files = handlers()
        assert len(consoles) == 1
        assert files == []

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        """Test calling setup twice does not duplicate handlers."""
        setup_logging(logging.WARNING, tmp_path)
        setup_logging(logging.WARNING, tmp_path)
        consoles, files = handlers()
        assert len(consoles) == 1
        assert len(files) == 1

    def test_set_console_level(self, tmp_path):
        """Only the console handler level changes."""
        setup_logging(logging.WARNING, tmp_path)
        set_console_level(logging.DEBUG)
        consoles, files = handlers()
        assert [h.level for h in consoles] == [logging.DEBUG]
        assert [h.level for h in files] == [logging.DEBUG]

        set_console_level(logging.ERROR)
        consoles, files = handlers()
        assert [h.level for h in consoles] == [logging.ERROR]
        assert [h.level for h in files] == [logging.DEBUG]

    def test_get_logger_names(self):
        """Test module loggers sit under the tsk logger."""
        assert get_logger().name == "tsk"
        assert get_logger("tree").name == "tsk.tree"

    def test_verbose_option(self, tmp_path):
        """Test --verbose lowers the console level."""
        setup_logging(logging.WARNING, tmp_path)
        path = tmp_path / "tasks.json"
        path.write_text("[]", encoding="utf-8")
        result = CliRunner().invoke(main, ["--verbose", "--no-color", "--file", str(path)])
        assert result.exit_code == 0
        consoles, _ = handlers()
        assert [h.level for h in consoles] == [logging.DEBUG]
