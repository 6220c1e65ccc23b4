"""Cooperative cancellation checked between pipeline stages."""

import asyncio
import logging
from typing import Optional

from ..errors import RunCancelled

logger = logging.getLogger(__name__)


def raise_if_cancelled(cancel: Optional[asyncio.Event], stage: str) -> None:
    """Raise RunCancelled if the run's cancel event has been set."""
    if cancel is not None and cancel.is_set():
        logger.info("[cancel] RUN_CANCELLED before=%s", stage)
        raise RunCancelled(stage)
