"""Reporting collaborator.

The core reports warnings and fatal conditions through an injected
object with the ``logging.Logger`` call signature. Anything with
``info``/``warning``/``error`` methods will do; the default is the
``perch`` logger.
"""

import logging
from typing import Any, Protocol


class Reporter(Protocol):
    """Logger-like sink for operator-facing messages."""

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


def default_reporter() -> Reporter:
    return logging.getLogger("perch")
