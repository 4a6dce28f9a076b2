"""Gated structured trace records for debugging the merge pipeline."""

import json
import logging

from . import config

logger = logging.getLogger("deckframe.trace")


def trace(event: str, **fields) -> None:
    """Emit one debug record as ``event {json fields}`` when tracing is on."""
    if not config.TRACE_ENABLED:
        return
    logger.debug("%s %s", event, json.dumps(fields, default=str, sort_keys=True))
