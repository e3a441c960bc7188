"""
Protocol-level error types.

These are recovered at the transport or dispatch boundary and reported to the
caller; they never tear down a session. Tool failures live in ``tools.errors``.
"""

from typing import Optional

from mcp.types import INVALID_PARAMS, INVALID_REQUEST


class ProtocolError(Exception):
    """A request could not be processed at the protocol level."""

    code: int = INVALID_REQUEST

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidParamsError(ProtocolError):
    code = INVALID_PARAMS


class SessionNotFoundError(ProtocolError):
    """Raised when a message targets an unknown or already closed session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
