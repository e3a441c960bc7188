"""
Protocol-level data models for the SSE transport.

Tool payload types (descriptors, content blocks, call results, capabilities)
come from ``mcp.types``; the JSON-RPC envelopes are defined here because the
message endpoint also accepts requests that omit ``jsonrpc`` or ``id``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from mcp.types import ErrorData
from pydantic import BaseModel, ConfigDict, Field

RequestId = Union[str, int]


class SessionState(str, Enum):
    """Lifecycle state of an SSE session."""

    OPEN = "open"
    CLOSED = "closed"


class ProtocolRequest(BaseModel):
    """A single inbound JSON-RPC style request or notification."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = "2.0"
    id: Optional[RequestId] = None
    method: str = Field(min_length=1)
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return self.method.startswith("notifications/")


class ProtocolResponse(BaseModel):
    """Outbound response correlated to a request by ``id``."""

    jsonrpc: str = "2.0"
    id: Optional[RequestId] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[ErrorData] = None

    @classmethod
    def success(cls, request_id: Optional[RequestId], result: Dict[str, Any]):
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls, request_id: Optional[RequestId], code: int, message: str
    ) -> "ProtocolResponse":
        return cls(id=request_id, error=ErrorData(code=code, message=message))

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the SSE stream; ``id`` is always present."""
        message: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result if self.result is not None else {}
        return message


class SessionInfo(BaseModel):
    """Snapshot of a session for health and metrics reporting."""

    session_id: str
    state: SessionState
    created_at: datetime = Field(default_factory=datetime.utcnow)
    messages_received: int = 0
    messages_sent: int = 0
