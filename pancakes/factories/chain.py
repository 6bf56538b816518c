"""
Method chain composition.

A service method is a sequence of unary steps (before filters, the adapter
method, after filters). Each step receives the previous step's result. Steps
may be coroutine functions or plain functions; awaitable results are awaited
before the next step runs. The first exception propagates and ends the chain.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

ServiceMethod = Callable[..., Awaitable[Any]]


def get_service_method(calls: Sequence[Callable[[Any], Any]]) -> ServiceMethod:
    """
    Compose ``calls`` into one async callable.

    Example:
        method = get_service_method([validate, adapter.find, to_public])
        result = await method({"id": 42})
    """
    steps = tuple(calls)

    async def service_method(input: Any = None) -> Any:
        result = input
        for step in steps:
            result = step(result)
            if inspect.isawaitable(result):
                result = await result
        return result

    return service_method
