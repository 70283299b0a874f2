"""
Logging setup.

All modules log through the standard logging module under the "chatwidget"
namespace. Handlers are attached once, on the root package logger.
"""

import logging
import sys

from chatwidget.core.config import get_settings

_ROOT_NAME = "chatwidget"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(get_settings().LOG_LEVEL.upper())
    return root


def setup_logger(name: str) -> logging.Logger:
    """Return a logger under the chatwidget namespace."""
    _configure_root()
    if name == _ROOT_NAME or name.startswith(_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


logger = setup_logger(_ROOT_NAME)
