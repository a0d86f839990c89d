"""Retrying of RPC calls while the server is unavailable."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from .messages import ErrorCode, RpcError

T = TypeVar("T")

MAX_RETRIES = 10
INITIAL_INTERVAL = 0.5
MULTIPLIER = 1.5
RANDOMIZATION_FACTOR = 0.5
MAX_INTERVAL = 60.0
MAX_ELAPSED_TIME = 15 * 60.0

_log = logging.getLogger(__name__)


def _randomized(interval: float) -> float:
    delta = RANDOMIZATION_FACTOR * interval
    return random.uniform(interval - delta, interval + delta)


def retry(
    operation: Callable[[], T],
    max_retries: int = MAX_RETRIES,
    initial_interval: float = INITIAL_INTERVAL,
) -> T:
    """Call ``operation`` until it succeeds, retrying with exponential backoff.

    Only an RpcError with the UNAVAILABLE code is retried, at most
    ``max_retries`` times; any other error is raised at once.
    """
    interval = initial_interval
    start = time.monotonic()
    retries = 0
    while True:
        try:
            return operation()
        except RpcError as exc:
            if exc.code is not ErrorCode.UNAVAILABLE or retries >= max_retries:
                raise
            delay = _randomized(interval)
            if time.monotonic() - start + delay > MAX_ELAPSED_TIME:
                raise
            retries += 1
            _log.warning("%s", exc)
            _log.info("Retrying HTTP request...")
            time.sleep(delay)
            interval = min(interval * MULTIPLIER, MAX_INTERVAL)