"""
Structured logging helpers shared by flows, jobs and the competitor pipeline.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True), exc_info=exc_info)


def log_flow_error(logger: logging.Logger, *, flow: str, step: str, error: BaseException) -> None:
    """
    Log a failure caught at a flow boundary with its flow and step context.
    """

    log_event(
        logger,
        logging.ERROR,
        "flow_error",
        flow=flow,
        step=step,
        details=str(error),
        error_type=type(error).__name__,
    )
