import logging
import os
import sys
from datetime import date

import services.util as u

_LEVEL_TAGS = {
    logging.DEBUG:    ('DBG', '\033[36m'),
    logging.INFO:     ('INF', '\033[32m'),
    logging.WARNING:  ('WRN', '\033[33m'),
    logging.ERROR:    ('ERR', '\033[31m'),
    logging.CRITICAL: ('CRT', '\033[91m\033[1m'),
}
_RESET = '\033[0m'

# Secrets (bot tokens etc.) that must never reach a log sink.
# Filled by register_sensitive() once the config is loaded.
_sensitive: set[str] = set()


def register_sensitive(values: frozenset[str]) -> None:
    """Register secret strings that must never appear in log output."""
    _sensitive.clear()
    # Short values would mask ordinary words
    _sensitive.update(v for v in values if len(v) >= 8)


class MaskingFilter(logging.Filter):
    """Redacts registered secrets from every record before emission."""

    def filter(self, record: logging.LogRecord) -> bool:
        if _sensitive:
            msg = record.getMessage()
            for secret in _sensitive:
                msg = msg.replace(secret, "***")
            record.msg = msg
            record.args = ()
        return True


class ConsoleFormatter(logging.Formatter):
    """``[time] [INF] | path:line | message``, level coloured on a TTY."""

    def __init__(self, colour: bool):
        super().__init__(datefmt='%Y-%m-%d %H:%M:%S')
        self.colour = colour

    def format(self, record):
        tag, colour = _LEVEL_TAGS.get(record.levelno, (record.levelname, ''))
        level = f'[{tag}]'
        if self.colour and colour:
            level = f'{colour}{level}{_RESET}'
        return f"[{self.formatTime(record, self.datefmt)}] {level} | {record.filename}:{record.lineno} | {record.getMessage()}"


def _configure(log_dir: str) -> logging.Logger:
    app_logger = logging.getLogger('app')
    app_logger.setLevel(logging.DEBUG)
    app_logger.propagate = False

    # Re-importing must not stack handlers
    for handler in list(app_logger.handlers):
        handler.close()
        app_logger.removeHandler(handler)
    for flt in list(app_logger.filters):
        app_logger.removeFilter(flt)
    app_logger.addFilter(MaskingFilter())

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter(colour=sys.stdout.isatty()))
    console.setLevel(logging.INFO)
    app_logger.addHandler(console)

    # One file per day: logs/gateway-2025-09-15.log
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(
        os.path.join(log_dir, f"gateway-{date.today().isoformat()}.log"), encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(
        '[%(asctime)s] [%(levelname)s] | %(filename)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    file_handler.setLevel(logging.DEBUG)
    app_logger.addHandler(file_handler)
    return app_logger


logger = _configure(u.get_log_dir())


def get_logger(name=None):
    """Return the shared application logger."""
    return logger
