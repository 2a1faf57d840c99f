"""Run async click commands."""

import asyncio
import functools
from typing import Any, Callable, Coroutine


def async_command(func: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
    """
    Let a click command be an ``async def``.

    Apply below ``@click.pass_context`` so the context is passed through.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(func(*args, **kwargs))

    return wrapper
