"""Wall-clock bound for blocking calls that have no timeout of their own."""

import logging
import threading
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallTimeout(Exception):
    """Raised when a call does not finish within its deadline."""


def call_with_timeout(func: Callable[..., T], timeout: float, *args, **kwargs) -> T:
    """Run func in a daemon thread and wait at most `timeout` seconds.

    On timeout the worker is abandoned (Python threads cannot be killed) and
    CallTimeout is raised. The worker is a daemon, so an abandoned call never
    holds up interpreter exit. Exceptions from func propagate unchanged.
    """
    outcome: dict = {}

    def target():
        try:
            outcome["value"] = func(*args, **kwargs)
        except BaseException as e:  # re-raised in the caller's thread
            outcome["error"] = e

    name = getattr(func, "__name__", "call")
    worker = threading.Thread(target=target, name=f"fetch-{name}", daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        logger.debug("%s timed out after %.1fs", name, timeout)
        raise CallTimeout(f"timed out after {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]
