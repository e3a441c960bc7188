#!/usr/bin/env python3
"""
Test the tool registry and the thinking tool descriptor
"""

import pytest
from mcp.types import Tool

from tools.errors import ToolArgumentError
from tools.registry import RegisteredTool, ToolRegistry
from tools.thinking import THINKING_TOOL_NAME


async def _echo(arguments):
    return arguments.get("text", "")


def _tool(name, schema=None):
    return RegisteredTool(
        descriptor=Tool(
            name=name,
            description=f"{name} tool",
            inputSchema=schema or {"type": "object", "properties": {}},
        ),
        handler=_echo,
    )


def test_default_registry_has_thinking_tool(registry):
    """Test the default set is exactly the thinking tool"""
    tools = registry.list_tools()

    assert [tool.name for tool in tools] == [THINKING_TOOL_NAME]
    schema = tools[0].inputSchema
    assert schema["required"] == ["query"]
    assert schema["properties"]["query"]["type"] == "string"


def test_listed_tools_are_resolvable(registry):
    """Test every listed descriptor resolves to exactly one registered tool"""
    for descriptor in registry.list_tools():
        tool = registry.resolve(descriptor.name)
        assert tool is not None
        assert tool.name == descriptor.name
        assert registry.names().count(descriptor.name) == 1


def test_resolve_is_case_sensitive(registry):
    """Test lookups require the exact name"""
    assert registry.resolve(THINKING_TOOL_NAME.upper()) is None
    assert registry.resolve("deepseek-r1") is None
    assert THINKING_TOOL_NAME in registry
    assert "unknown" not in registry


def test_list_tools_returns_copies(registry):
    """Test callers cannot mutate registered descriptors"""
    listed = registry.list_tools()
    listed[0].inputSchema["required"].append("extra")

    assert registry.list_tools()[0].inputSchema["required"] == ["query"]


def test_registration_order_is_stable():
    """Test tools are listed in registration order"""
    registry = ToolRegistry([_tool("b"), _tool("a"), _tool("c")])

    assert [tool.name for tool in registry.list_tools()] == ["b", "a", "c"]
    assert len(registry) == 3


def test_duplicate_names_rejected():
    """Test a name can only be registered once"""
    with pytest.raises(ValueError, match="Duplicate tool name"):
        ToolRegistry([_tool("same"), _tool("same")])


@pytest.mark.parametrize("arguments", [{}, {"query": ""}, {"query": "   "}, {"query": None}])
def test_thinking_tool_requires_query(registry, arguments):
    """Test missing or empty query fails validation"""
    tool = registry.resolve(THINKING_TOOL_NAME)

    with pytest.raises(ToolArgumentError, match="query"):
        tool.validate_arguments(arguments)


def test_thinking_tool_rejects_wrong_type(registry):
    """Test query must be a string"""
    tool = registry.resolve(THINKING_TOOL_NAME)

    with pytest.raises(ToolArgumentError, match="must be of type string"):
        tool.validate_arguments({"query": 42})


def test_unknown_arguments_are_ignored(registry):
    """Test extra arguments such as filePaths are accepted"""
    tool = registry.resolve(THINKING_TOOL_NAME)

    tool.validate_arguments({"query": "2+2", "filePaths": ["a.py"]})


def test_boolean_is_not_a_number():
    """Test bools do not satisfy numeric schema types"""
    tool = _tool(
        "counter",
        {"type": "object", "properties": {"count": {"type": "integer"}}, "required": ["count"]},
    )

    tool.validate_arguments({"count": 3})
    with pytest.raises(ToolArgumentError):
        tool.validate_arguments({"count": True})
