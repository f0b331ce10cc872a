"""Lifecycle notifications.

The bootstrap reports ``SERVE_START`` when it begins and ``SERVE_STOP``
once when it ends, whether the server shut down or startup was cut
short. Where those events go (a telemetry service, a log, nowhere) is up
to the collaborator; perch only calls ``track``.
"""

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger("perch.lifecycle")

SERVE_START = "SERVE_START"
SERVE_STOP = "SERVE_STOP"


class Lifecycle(Protocol):
    """Receives lifecycle events by name."""

    def track(self, event: str) -> None: ...


class LoggingLifecycle:
    """Default lifecycle collaborator: records events on a logger."""

    __slots__ = ()

    def track(self, event: str) -> None:
        logger.debug("lifecycle event %s", event)


def stop_callback(lifecycle: Lifecycle) -> Callable[[], None]:
    """Shutdown hook that emits ``SERVE_STOP`` once, however often it is called.

    Failures are logged, not raised.
    """
    stopped = False

    def on_stop() -> None:
        nonlocal stopped
        if stopped:
            return
        stopped = True
        try:
            lifecycle.track(SERVE_STOP)
        except Exception:
            logger.warning("Failed to report %s", SERVE_STOP, exc_info=True)

    return on_stop
