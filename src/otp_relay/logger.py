from __future__ import annotations

import logging
import sys

LOGGER_NAME = "otp_relay"

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: str = "INFO") -> None:
    """
    Attach a single stdout handler to the package logger.

    Safe to call more than once (app startup, CLI, tests): existing handlers
    are replaced rather than stacked.
    """
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the package logger, or a child of it when name is given."""
    if name:
        return logger.getChild(name)
    return logger


def mask_phone(phone: str) -> str:
    # Keep only the last four digits visible
    if len(phone) <= 4:
        return "*" * len(phone)
    return "*" * (len(phone) - 4) + phone[-4:]
