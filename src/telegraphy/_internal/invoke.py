"""Invoke helpers — call sync or async callables uniformly.

Implementation factories, implementation methods and ASGI context
builders can all be plain ``def`` or ``async def``. Anything that calls
user-provided code goes through ``invoke`` so the sync/async check
lives in exactly one place.

Usage::

    from telegraphy._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable.

    Works with both sync and async callables::

        class CrewImpl:
            def __init__(self, ctx):
                self.ctx = ctx

            # sync, already returned
            def get_officer(self, data):
                return self.ctx.officers[data["id"]]

            # async, awaited automatically
            async def promote(self, data):
                return await self.ctx.db.promote(data["id"])
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
