"""Phase timers for the insights endpoints; everything logs at DEBUG."""
import time
from contextlib import contextmanager
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)


def now_ms() -> float:
    return time.perf_counter() * 1000


@contextmanager
def time_operation(label: str, log_fn: Optional[Callable[[str], None]] = None, min_ms: float = 0.0):
    """
    Log how long the block took as ``"<label>: <ms>ms"``.

    Blocks faster than ``min_ms`` are not logged. Pass ``log_fn`` (e.g.
    ``logger.info``) to log somewhere other than this module's DEBUG channel.
    """
    started = now_ms()
    try:
        yield
    finally:
        elapsed = now_ms() - started
        if elapsed >= min_ms:
            (log_fn or logger.debug)(f"{label}: {elapsed:.2f}ms")


def log_elapsed(since_ms: float, label: str, log_fn: Optional[Callable[[str], None]] = None) -> float:
    """Log the time since ``since_ms``; the returned timestamp starts the next phase."""
    finished = now_ms()
    (log_fn or logger.debug)(f"{label}: {finished - since_ms:.2f}ms")
    return finished
