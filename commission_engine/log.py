"""Loguru sink configuration shared by the API and batch runners."""

import sys
from typing import Optional

from loguru import logger

from commission_engine.config import Settings, get_settings

_handler_id: Optional[int] = None


def setup_logging(settings: Optional[Settings] = None) -> int:
    """
    Route loguru to stderr at the level of ``settings`` (the cached settings
    when omitted).

    The first call drops loguru's default sink; later calls only replace the
    sink added here, so each app built by ``create_app`` gets its own level.
    """
    global _handler_id
    settings = settings or get_settings()

    if _handler_id is None:
        logger.remove()
    else:
        logger.remove(_handler_id)

    _handler_id = logger.add(
        sys.stderr,
        level=settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}",
    )
    return _handler_id
