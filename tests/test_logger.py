"""
Tests for setup_logger
"""
import logging

from rich.logging import RichHandler

from utils.logger import setup_logger


class TestSetupLogger:
    """日志配置测试"""

    def _cleanup(self, logger):
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_file_handler_and_quiet_libraries(self, tmp_path):
        log_path = tmp_path / "run.log"
        logger = setup_logger(name="leetcode_fetch.test", log_file=str(log_path), quiet=("noisy.lib",))
        try:
            assert logger.level == logging.INFO
            assert logging.getLogger("noisy.lib").level == logging.WARNING
            assert [type(h) for h in logger.handlers] == [RichHandler, logging.FileHandler]

            logger.info("fetched problem 1")
            logger.handlers[1].flush()
            assert "| INFO | fetched problem 1" in log_path.read_text(encoding="utf-8")
        finally:
            self._cleanup(logger)

    def test_repeat_call_only_updates_level(self):
        logger = setup_logger(name="leetcode_fetch.repeat")
        try:
            again = setup_logger(name="leetcode_fetch.repeat", verbose=True)
            assert again is logger
            assert len(logger.handlers) == 1
            assert logger.level == logging.DEBUG
            assert logger.handlers[0].level == logging.DEBUG
        finally:
            self._cleanup(logger)
