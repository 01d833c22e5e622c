"""Logging helpers for pauli_surrogate.

All modules obtain their logger through :func:`get_logger` so that the whole
package can be silenced or made verbose with a single :func:`set_log_level`.
"""

from __future__ import annotations

import logging
import sys
from typing import Dict, Optional, Union

_ROOT = "pauli_surrogate"
_DEFAULT_LEVEL = logging.WARNING
_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached package logger for ``name`` (typically ``__name__``)."""
    if name is None:
        name = _ROOT
    logger_name = name if name.startswith(_ROOT) else f"{_ROOT}.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: Union[int, str]) -> None:
    """Set the level of every pauli_surrogate logger, existing and future.

    Example:
        >>> import logging
        >>> from pauli_surrogate.log import set_log_level
        >>> set_log_level(logging.DEBUG)  # per-gate term counts
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


__all__ = ["get_logger", "set_log_level"]
