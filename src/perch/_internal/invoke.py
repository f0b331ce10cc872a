"""Invoke helpers: call sync or async hooks uniformly.

Lifecycle hooks registered on a ``Site`` can be ``def`` or ``async def``.
This module keeps the sync/async check in exactly one place.

Usage::

    from perch._internal.invoke import invoke

    result = await invoke(hook)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a hook and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
