"""
Protocol and session layer

Provides the request dispatcher and the SSE session manager that sit between
the HTTP server and the tool registry.

This package:
- Parses and shapes JSON-RPC style protocol messages
- Dispatches tool listing and tool calls against the registry
- Owns SSE sessions and routes posted messages to the right stream
"""

from tools.errors import ToolArgumentError, ToolExecutionError

from .errors import InvalidParamsError, ProtocolError, SessionNotFoundError
from .handler import RequestDispatcher
from .models import ProtocolRequest, ProtocolResponse, SessionInfo, SessionState
from .session import SessionManager, SSESession

__all__ = [
    "RequestDispatcher",
    "SessionManager",
    "SSESession",
    "ProtocolRequest",
    "ProtocolResponse",
    "SessionInfo",
    "SessionState",
    "ProtocolError",
    "InvalidParamsError",
    "SessionNotFoundError",
    "ToolExecutionError",
    "ToolArgumentError",
]
