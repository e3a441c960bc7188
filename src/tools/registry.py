import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from mcp.types import Tool

from .errors import ToolArgumentError

ToolHandler = Callable[[Dict[str, Any]], Awaitable[str]]

# JSON schema type name -> accepted Python types
_SCHEMA_TYPES = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


@dataclass(frozen=True)
class RegisteredTool:
    """A tool descriptor bound to the coroutine that executes it."""

    descriptor: Tool
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.descriptor.name

    def validate_arguments(self, arguments: Dict[str, Any]) -> None:
        """
        Check arguments against the descriptor's input schema.

        Only the subset of JSON schema the registered tools use is enforced:
        required keys, property types, and non-empty required strings.
        Unknown arguments are ignored.

        Raises:
            ToolArgumentError: if the arguments do not satisfy the schema
        """
        schema = self.descriptor.inputSchema or {}
        properties = schema.get("properties", {})
        required = schema.get("required", [])

        for key in required:
            value = arguments.get(key)
            if value is None:
                raise ToolArgumentError(
                    f"Invalid arguments for tool {self.name}: "
                    f"missing required argument '{key}'"
                )
            if isinstance(value, str) and not value.strip():
                raise ToolArgumentError(
                    f"Invalid arguments for tool {self.name}: "
                    f"argument '{key}' must not be empty"
                )

        for key, value in arguments.items():
            expected = properties.get(key, {}).get("type")
            if expected not in _SCHEMA_TYPES or value is None:
                continue
            python_types = _SCHEMA_TYPES[expected]
            # bool is an int subclass but not a JSON number
            if isinstance(value, bool) and expected != "boolean":
                valid = False
            else:
                valid = isinstance(value, python_types)
            if not valid:
                raise ToolArgumentError(
                    f"Invalid arguments for tool {self.name}: "
                    f"argument '{key}' must be of type {expected}"
                )


class ToolRegistry:
    """
    Static, order-stable set of tools.

    Tools are registered once at construction time; the registry exposes no
    mutation operations afterwards.
    """

    def __init__(
        self,
        tools: Iterable[RegisteredTool],
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger("ToolRegistry")
        self._tools: Dict[str, RegisteredTool] = {}

        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

        self.logger.debug(f"Registered tools: {', '.join(self._tools)}")

    def list_tools(self) -> List[Tool]:
        """Return copies of every registered descriptor in registration order."""
        return [tool.descriptor.model_copy(deep=True) for tool in self._tools.values()]

    def resolve(self, name: str) -> Optional[RegisteredTool]:
        """Exact, case-sensitive lookup; None when no tool has this name."""
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
