"""
Tool registry shared by the transports.

Accepts the same @mcp.tool() registrations as ChukMCPServer. Calls take wire
arguments (camelCase names as in TOOL_DEFINITIONS) and map them onto the
tool's parameters. publish() exposes the tools on a ChukMCPServer under the
wire schemas, so stdio clients see the same API as HTTP clients.
"""

import copy
import inspect
import json
import logging
import re
from collections.abc import Callable
from typing import Any

from chuk_mcp_server.types import ToolHandler

from ..constants import TOOL_ALIASES, TOOL_DEFINITIONS

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_JSON_TYPES = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
}


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class ToolRegistry:
    """Captures tools registered via @registry.tool()."""

    def __init__(self) -> None:
        self._tools: dict[str, Callable[..., Any]] = {}

    def tool(self) -> Callable:
        """Decorator factory matching @mcp.tool() usage."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self._tools[fn.__name__] = fn
            return fn

        return decorator

    def resolve(self, name: str) -> str | None:
        """Canonical name for a tool or one of its aliases."""
        name = TOOL_ALIASES.get(name, name)
        return name if name in self._tools else None

    def get_tool(self, name: str) -> Callable[..., Any]:
        return self._tools[name]

    def names(self) -> list[str]:
        return list(self._tools)

    def bind_arguments(self, name: str, arguments: dict | None) -> dict:
        """Map wire arguments onto a tool's parameters.

        Unknown arguments are dropped and logged.

        Raises:
            TypeError: If arguments is not an object, or a required
                parameter is missing
        """
        if arguments is not None and not isinstance(arguments, dict):
            raise TypeError(f"arguments must be an object, got {type(arguments).__name__}")
        fn = self._tools[name]
        params = inspect.signature(fn).parameters
        bound: dict[str, Any] = {}
        for key, value in (arguments or {}).items():
            param = key if key in params else snake_case(key)
            if param not in params or param == "output_mode":
                logger.warning(f"{name}: ignoring unknown argument '{key}'")
                continue
            bound[param] = value

        missing = [
            p.name
            for p in params.values()
            if p.default is inspect.Parameter.empty and p.name not in bound
        ]
        if missing:
            raise TypeError(f"missing required argument(s): {', '.join(missing)}")
        return bound

    async def call(self, name: str, arguments: dict | None = None) -> Any:
        """Call a tool with wire arguments and decode its JSON result.

        Raises:
            KeyError: If the tool is unknown
            TypeError: If a required parameter is missing
        """
        canonical = self.resolve(name)
        if canonical is None:
            raise KeyError(name)
        bound = self.bind_arguments(canonical, arguments)
        result = await self._tools[canonical](**bound, output_mode="json")
        return json.loads(result)

    def wire_signature(self, name: str, schema: dict) -> inspect.Signature:
        """Keyword-only signature of a tool under its wire argument names.

        Schema properties come first. The tool's remaining parameters follow
        under camelCase names so loosely-typed arguments still bind.
        """
        params = inspect.signature(self._tools[name]).parameters
        required = set(schema.get("required") or [])
        wire: list[inspect.Parameter] = []
        covered = {"output_mode"}

        for prop, prop_schema in schema["properties"].items():
            target = params.get(snake_case(prop))
            if target is not None:
                annotation = target.annotation
                covered.add(target.name)
            else:
                annotation = _JSON_TYPES.get(prop_schema.get("type"), str)
            if prop in required:
                wire.append(inspect.Parameter(prop, inspect.Parameter.KEYWORD_ONLY, annotation=annotation))
            else:
                wire.append(
                    inspect.Parameter(
                        prop, inspect.Parameter.KEYWORD_ONLY, default=None, annotation=annotation | None
                    )
                )

        for param in params.values():
            if param.name in covered:
                continue
            wire.append(
                inspect.Parameter(
                    camel_case(param.name),
                    inspect.Parameter.KEYWORD_ONLY,
                    default=None,
                    annotation=param.annotation | None,
                )
            )
        return inspect.Signature(wire)

    def wire_function(self, name: str, schema: dict) -> Callable[..., Any]:
        """Async callable taking wire arguments and returning the JSON result text."""

        async def call_with_wire_arguments(**arguments):
            bound = self.bind_arguments(name, arguments)
            return await self._tools[name](**bound, output_mode="json")

        call_with_wire_arguments.__signature__ = self.wire_signature(name, schema)
        return call_with_wire_arguments

    def publish(self, mcp) -> list[str]:
        """Register every tool on a ChukMCPServer with its wire schema.

        Aliases are published as tools of their own sharing the target's
        schema.

        Returns:
            Published tool names, in registration order
        """
        definitions = {d["name"]: d for d in TOOL_DEFINITIONS if d["name"] in self._tools}
        published = [(name, definitions[name]) for name in definitions]
        published += [
            (alias, definitions[target]) for alias, target in TOOL_ALIASES.items() if target in definitions
        ]

        for tool_name, definition in published:
            schema = copy.deepcopy(definition["inputSchema"])
            handler = ToolHandler.from_function(
                self.wire_function(definition["name"], schema),
                name=tool_name,
                description=definition["description"],
            )
            handler.mcp_tool.inputSchema = schema
            handler.invalidate_cache()
            mcp.add_tool(handler)
        return [tool_name for tool_name, _ in published]
