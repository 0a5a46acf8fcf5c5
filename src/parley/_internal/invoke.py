"""Invoke helpers — call sync or async callables uniformly.

Handlers, middleware, and ``Renderer.render`` implementations can be
``def`` or ``async def``. The sync/async check lives here only.

Usage::

    from parley._internal.invoke import invoke

    result = await invoke(item.render, writer, request)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
