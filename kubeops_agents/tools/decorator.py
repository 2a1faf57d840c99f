"""
@tool: wrap a plain or async function as a langchain StructuredTool.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel


def tool(
    func: Callable | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    title: str | None = None,
    args_schema: type[BaseModel] | None = None,
    register: bool = False,
) -> Any:
    """
    Turn a function into a tool the agents can bind.

    Works bare (``@tool``) or with options::

        @tool(name="kubectl", title="Kubectl Command", args_schema=KubectlArgs)
        async def kubectl(command: str, namespace: str | None = None) -> dict: ...

    Args:
        func: Function being decorated (bare form only)
        name: Name the model calls the tool by (default: function name)
        description: Text shown to the model (default: docstring)
        title: Display name for listings, stored as ``metadata["title"]``
        args_schema: Pydantic model the arguments are validated against
        register: Also add the tool to the global registry
    """

    def wrap(fn: Callable) -> StructuredTool:
        options = {
            key: value
            for key, value in (
                ("name", name),
                ("description", description),
                ("args_schema", args_schema),
            )
            if value is not None
        }
        if inspect.iscoroutinefunction(fn):
            options["coroutine"] = fn
        else:
            options["func"] = fn

        structured = StructuredTool.from_function(**options)
        structured.metadata = {**(structured.metadata or {}), "title": title or structured.name}
        functools.update_wrapper(structured, fn)

        if register:
            from kubeops_agents.tools.registry import get_global_registry

            get_global_registry().register(structured)
        return structured

    return wrap(func) if func is not None else wrap
