import logging
import os
import sys
from logging import Handler

from tqdm import tqdm

PACKAGE_LOGGER_NAME = "paradox_translator"


class TqdmLoggingHandler(Handler):
    """
    Logging handler that writes through tqdm.write, so log lines print above the
    translation progress bar instead of tearing it.

    Writes to `stream`, or to whatever sys.stderr is at emit time when no stream is given.
    """
    def __init__(self, level=logging.NOTSET, stream=None):
        super().__init__(level)
        self.stream = stream

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream if self.stream is not None else sys.stderr)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def setup_logger(log_level_str: str, log_file_path: str, log_to_console: bool) -> logging.Logger:
    """
    Set up the package logger.

    Every module logs through a child of the `paradox_translator` logger, so configuring
    it here covers the queue, the AI client, the cache and the dispatcher alike.

    Args:
        log_level_str: The logging level as a string (e.g., 'INFO', 'DEBUG').
        log_file_path: The path to the log file. An empty value disables file logging.
        log_to_console: Whether to log to the console.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Reconfiguring must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    logger.propagate = False

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        tqdm_handler = TqdmLoggingHandler()
        tqdm_handler.setFormatter(formatter)
        logger.addHandler(tqdm_handler)

    return logger
