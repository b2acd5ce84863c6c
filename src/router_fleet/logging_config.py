"""
Logging configuration for router-fleet
"""

import logging
import sys
from typing import TextIO


def setup_logging(level: int = logging.INFO, stream: TextIO = sys.stdout) -> None:
    """
    Configure logging with timestamp, file and line number information

    Args:
        level: Logging level (default: INFO)
        stream: Output stream (default: stdout)
    """
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)-8s %(name)s %(filename)s:%(lineno)d %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # web3 and httpx are chatty at INFO
    for noisy in ("web3", "httpx", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
