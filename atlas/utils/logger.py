"""Logging helpers.

All modules get their logger via ``get_logger(__name__)`` so that the logger hierarchy follows the package
layout and can be tuned from Django's ``LOGGING`` setting.
"""

import logging


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
