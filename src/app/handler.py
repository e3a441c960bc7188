import logging
from typing import Any, Dict, Optional

import logfire
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import (
    INTERNAL_ERROR,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    CallToolResult,
    Implementation,
    InitializeResult,
    ServerCapabilities,
    TextContent,
    ToolsCapability,
)

from tools.errors import ToolExecutionError
from tools.registry import ToolRegistry

from .errors import InvalidParamsError, ProtocolError
from .models import ProtocolRequest, ProtocolResponse

SERVER_NAME = "deepseek-r1"
SERVER_VERSION = "0.1.0"


def _text_result(text: str, is_error: bool) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=text)],
        isError=is_error,
    )


class RequestDispatcher:
    """
    Routes protocol requests to the matching handler and shapes the response.

    The dispatcher is stateless: the session passed to ``handle`` is only used
    for log context. Every request yields exactly one response (notifications
    yield none) and no exception escapes to the transport layer.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        server_info: Optional[Implementation] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.server_info = server_info or Implementation(
            name=SERVER_NAME, version=SERVER_VERSION
        )
        self.capabilities = ServerCapabilities(tools=ToolsCapability(listChanged=False))
        self.logger = logger or logging.getLogger("RequestDispatcher")

        # Map methods to handlers
        self._method_handlers = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_list_tools,
            "list-tools": self._handle_list_tools,  # Short alias
            "tools/call": self._handle_call_tool,
            "call-tool": self._handle_call_tool,  # Short alias
        }

    async def handle(
        self, request: ProtocolRequest, session: Any = None
    ) -> Optional[ProtocolResponse]:
        """
        Handle a single protocol request.

        Args:
            request: Parsed inbound request
            session: Session the request arrived on, used for logging only

        Returns:
            The response to push to the client, or None for notifications
        """
        session_id = getattr(session, "session_id", "direct")

        if request.is_notification:
            self.logger.debug(f"Notification {request.method} on session {session_id}")
            return None

        handler = self._method_handlers.get(request.method)
        if handler is None:
            self.logger.warning(f"Unknown method {request.method} on session {session_id}")
            return ProtocolResponse.failure(
                request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )

        with logfire.span(
            "dispatcher.handle", method=request.method, session_id=session_id
        ):
            try:
                result = await handler(request.params or {})
                return ProtocolResponse.success(request.id, result)
            except ProtocolError as e:
                self.logger.warning(f"Rejected {request.method} request: {e.message}")
                return ProtocolResponse.failure(request.id, e.code, e.message)
            except Exception:
                self.logger.exception(f"Error handling {request.method} request")
                return ProtocolResponse.failure(
                    request.id, INTERNAL_ERROR, "Internal error"
                )

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        """
        Resolve and run a tool, converting every failure into an error result.

        Args:
            name: Tool name, matched exactly
            arguments: Tool arguments

        Returns:
            Result envelope with a single text content block
        """
        tool = self.registry.resolve(name)
        if tool is None:
            self.logger.warning(f"Unknown tool requested: {name}")
            return _text_result(f"Unknown tool: {name}", is_error=True)

        try:
            tool.validate_arguments(arguments)
            text = await tool.handler(arguments)
        except ToolExecutionError as e:
            self.logger.error(f"Tool {name} failed: {e}")
            return _text_result(str(e), is_error=True)
        except Exception:
            self.logger.exception(f"Tool {name} raised an unexpected error")
            return _text_result(f"Tool {name} failed unexpectedly", is_error=True)

        return _text_result(text, is_error=False)

    async def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        # Echo the client's version when we speak it, otherwise offer ours
        requested = params.get("protocolVersion")
        if requested not in SUPPORTED_PROTOCOL_VERSIONS:
            requested = LATEST_PROTOCOL_VERSION

        result = InitializeResult(
            protocolVersion=requested,
            capabilities=self.capabilities,
            serverInfo=self.server_info,
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    async def _handle_ping(self, _params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _handle_list_tools(self, _params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "tools": [
                tool.model_dump(by_alias=True, exclude_none=True)
                for tool in self.registry.list_tools()
            ]
        }

    async def _handle_call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("tools/call requires a tool name")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("tools/call arguments must be an object")

        result = await self.call_tool(name, arguments)
        return result.model_dump(by_alias=True, exclude_none=True)
