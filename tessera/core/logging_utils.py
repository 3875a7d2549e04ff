"""Logging utilities for tessera.

Provides a consistent logger hierarchy and formatting without modifying the
process root logger. All tessera code should obtain loggers via get_logger().
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')


def _ensure_tessera_root() -> logging.Logger:
    """Ensure the 'tessera' logger has a single stream handler and is isolated
    from the process root logger. Returns the 'tessera' logger.
    """
    root = logging.getLogger('tessera')
    has_non_null = any(not isinstance(h, logging.NullHandler) for h in root.handlers)
    if not has_non_null:
        # Drop the NullHandler added by the package __init__ so records are not swallowed
        for h in list(root.handlers):
            if isinstance(h, logging.NullHandler):
                root.removeHandler(h)
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_FORMAT)
        root.addHandler(handler)
    root.propagate = False
    return root


def _to_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    value = getattr(logging, str(level).upper(), None)
    return value if isinstance(value, int) else default


def configure_logging(level: Union[str, int] = 'INFO', mute_external: bool = True) -> logging.Logger:
    """Configure the 'tessera' logger family level and optional external noise suppression.

    This does NOT modify the process root logger.
    """
    root = _ensure_tessera_root()
    lvl = _to_level(level)
    root.setLevel(lvl)
    if mute_external and lvl <= logging.DEBUG:
        for noisy in ('scipy', 'numpy'):
            logging.getLogger(noisy).setLevel(logging.INFO)
    return root


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'tessera' namespace.

    Unlike configure_logging(), this never attaches handlers: library code
    stays silent until the application opts in. If a level is given it is set
    on the child logger, otherwise the child inherits from 'tessera'.
    """
    if not name.startswith('tessera'):
        name = f'tessera.{name}'
    log = logging.getLogger(name)
    log.setLevel(_to_level(level) if level is not None else logging.NOTSET)
    return log


__all__ = ['get_logger', 'configure_logging']
