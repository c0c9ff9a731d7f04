import logging

import services.logger as log


def _record(msg, level=logging.WARNING):
    return log.logger.makeRecord("app", level, "/src/drivers/telegram.py", 12, msg, (), None)


def test_console_format_plain():
    line = log.ConsoleFormatter(colour=False).format(_record("polling error"))

    assert "[WRN] | telegram.py:12 | polling error" in line
    assert "\033[" not in line


def test_console_format_coloured():
    line = log.ConsoleFormatter(colour=True).format(_record("boom", logging.ERROR))
    assert "\033[31m[ERR]\033[0m" in line


def test_logger_configured_once():
    handlers = log.get_logger().handlers
    assert len(handlers) == 2
    assert any(isinstance(h, logging.FileHandler) for h in handlers)
    assert sum(isinstance(f, log.MaskingFilter) for f in log.logger.filters) == 1
