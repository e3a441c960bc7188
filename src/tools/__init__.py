from .registry import RegisteredTool, ToolHandler, ToolRegistry
from .thinking import (
    THINKING_TOOL_NAME,
    create_default_registry,
    create_thinking_tool,
)

__all__ = [
    "RegisteredTool",
    "ToolHandler",
    "ToolRegistry",
    "THINKING_TOOL_NAME",
    "create_default_registry",
    "create_thinking_tool",
]
