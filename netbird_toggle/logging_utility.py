import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = 'NetbirdToggle'
LOG_FILE_NAME = 'netbird_toggle.log'
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

FILE_FORMAT = '%(asctime)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(message)s'


def _log_level() -> int:
    name = os.environ.get('NETBIRD_TOGGLE_LOG_LEVEL', 'INFO').upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _log_dir() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.environ.get('NETBIRD_TOGGLE_LOG_DIR', os.path.join(project_root, 'logs'))


class Logger:
    """Process-wide logger for the toggle; handlers are attached once."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._setup_logger()
        return cls._instance

    def _setup_logger(self):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(_log_level())
        self.logger.propagate = False
        if self.logger.handlers:
            return

        self.logger.addHandler(self._file_handler())
        self.logger.addHandler(self._console_handler())

    @staticmethod
    def _file_handler() -> logging.Handler:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(os.path.join(log_dir, LOG_FILE_NAME),
                                      maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    @staticmethod
    def _console_handler() -> logging.Handler:
        # uvicorn owns stdout for access logs
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        return handler

    def get_logger(self):
        return self.logger


logger = Logger().get_logger()
