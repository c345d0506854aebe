"""
Release Builder: logging setup.

Every line the state machine writes about a release carries the release id
and the build id it is currently tracking, so a run can be followed in logs
that interleave several releases:

  12:00:01 | INFO    | [id=7] [build_id=101] status inProgress, result none, retries 0
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Generator, MutableMapping, Protocol

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("release_builder")


class _Tracked(Protocol):
    id: int
    build_id: str


class ReleaseLogAdapter(logging.LoggerAdapter):
    """
    Prefixes messages with ``[id=..] [build_id=..]``.

    The release is looked up on every call, so the prefix follows the
    record as the builder updates it (a freshly queued build shows up in
    the next line).
    """

    def __init__(self, base: logging.Logger, current: Callable[[], _Tracked]):
        super().__init__(base, {})
        self._current = current

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        release = self._current()
        return f"[id={release.id}] [build_id={release.build_id}] {msg}", kwargs


def release_logger(current: Callable[[], _Tracked]) -> ReleaseLogAdapter:
    """Logger for one release; ``current`` returns the latest copy of the record."""
    return ReleaseLogAdapter(logger, current)


@contextmanager
def step_timer(step_name: str) -> Generator[None, None, None]:
    """Log the start and duration of a build step."""
    logger.info("> %s: started", step_name)
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("< %s: finished in %.0f ms", step_name, elapsed_ms)
