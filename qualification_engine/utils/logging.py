"""
Logging setup for the qualification engine.
"""
import os
import logging
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger with console output and an optional log file.

    Args:
        level: Log level name for the console handler
        log_file: Optional path to a file that receives DEBUG and above

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if log_file else level.upper())

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level.upper())
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s')
    )
    root_logger.addHandler(console_handler)

    if log_file:
        workdir = os.path.dirname(log_file)
        if workdir:
            os.makedirs(workdir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s')
        )
        root_logger.addHandler(file_handler)

    return root_logger
