"""
DeepSeek R1 thinking tool.

Forwards the client's query to the reasoning engine and returns the
engine's reasoning prefixed with a fixed label.
"""

from typing import Any, Dict

from mcp.types import Tool

from .registry import RegisteredTool, ToolRegistry

THINKING_TOOL_NAME = "deepseek-r1-thinking"
THINKING_PREFIX = "Thinking process: "

THINKING_TOOL = Tool(
    name=THINKING_TOOL_NAME,
    description=(
        "use deepseek-r1 to think about the problem and return the thinking "
        "process. For each question, first use this tool to think through the "
        "problem, then provide an answer based on the thinking process."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "the query to think about",
            }
        },
        "required": ["query"],
    },
)


def create_thinking_tool(engine) -> RegisteredTool:
    """Bind the thinking tool to an engine exposing ``async think(query)``."""

    async def deepseek_r1_thinking(arguments: Dict[str, Any]) -> str:
        # filePaths is accepted by some clients but has no effect
        thinking = await engine.think(arguments["query"])
        return f"{THINKING_PREFIX}{thinking}"

    return RegisteredTool(descriptor=THINKING_TOOL, handler=deepseek_r1_thinking)


def create_default_registry(engine) -> ToolRegistry:
    """Build the registry served by default."""
    return ToolRegistry([create_thinking_tool(engine)])
