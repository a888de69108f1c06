"""
logger.py

Logging setup for the package logger ("shed"). Modules log through
`logging.getLogger(__name__)`; this module only attaches handlers.
"""

import logging
import os
from datetime import datetime

LOGGER_NAME = "shed"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logger(level="INFO", log_dir=None, log_filename="shed"):
    """
    Configure the package logger.

    Parameters
    ----------
    level : str or int
        Logging level for the package logger.
    log_dir : str, optional
        If given, also write a timestamped log file in this directory.
    log_filename : str
        Base name of the log file. Timestamp will be appended.

    Returns
    -------
    logger : logging.Logger
        Configured logger instance.
    log_filepath : str or None
        Full path to the created log file, if any.
    """
    logger = logging.getLogger(LOGGER_NAME)
    close_logger(logger)
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_filepath = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_filepath = os.path.join(log_dir, f"{log_filename}_{timestamp}.log")
        file_handler = logging.FileHandler(log_filepath, mode="w")  # Overwrite if file exists
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logger initialized: {log_filepath}")

    return logger, log_filepath


def close_logger(logger):
    """
    Closes all handlers associated with the given logger.

    Parameters
    ----------
    logger : logging.Logger
        The logger instance to close.
    """
    for handler in logger.handlers[:]:  # Copy the list to avoid modification issues
        handler.close()
        logger.removeHandler(handler)
