import asyncio
import json
import logging
import uuid
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, List, Optional

import logfire

from .errors import SessionNotFoundError
from .handler import RequestDispatcher
from .models import ProtocolRequest, SessionInfo, SessionState


class SSESession:
    """
    Server-side state bound to one open SSE stream.

    Outbound messages are queued until the stream generator delivers them;
    inbound requests are queued until the session worker dispatches them, so
    requests on one session are handled in arrival order.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.state = SessionState.OPEN
        self.created_at = datetime.utcnow()

        self.messages_received = 0
        self.messages_sent = 0

        # None is the wake-up sentinel pushed on close
        self._outbound: asyncio.Queue = asyncio.Queue()
        self._inbound: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self.state == SessionState.OPEN

    def send(self, message: Dict[str, Any]) -> bool:
        """Queue a message for the client; False if the session is closed."""
        if not self.is_open:
            return False
        self._outbound.put_nowait(message)
        self.messages_sent += 1
        return True

    async def next_message(self) -> Optional[Dict[str, Any]]:
        """Wait for the next outbound message; None once the session closes."""
        if not self.is_open and self._outbound.empty():
            return None
        return await self._outbound.get()

    def close(self) -> bool:
        """Transition to CLOSED. Returns False if it was already closed."""
        if not self.is_open:
            return False
        self.state = SessionState.CLOSED
        self._outbound.put_nowait(None)
        self._inbound.put_nowait(None)
        return True

    def info(self) -> SessionInfo:
        return SessionInfo(
            session_id=self.session_id,
            state=self.state,
            created_at=self.created_at,
            messages_received=self.messages_received,
            messages_sent=self.messages_sent,
        )


class SessionManager:
    """
    Owns SSE sessions: mints ids, routes posted messages to the right stream,
    and tears sessions down when their connection goes away.

    The id -> session map is the only shared mutable state. No update to it
    spans an await, so open, close and lookup are atomic on the event loop.
    Closed ids are removed and never reused.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        messages_path: str = "/messages",
        logger: Optional[logging.Logger] = None,
    ):
        self.dispatcher = dispatcher
        self.messages_path = messages_path
        self.logger = logger or logging.getLogger("SessionManager")

        self._sessions: Dict[str, SSESession] = {}

        self._session_metrics = {
            "total_created": 0,
            "total_closed": 0,
            "messages_dropped": 0,
        }

    async def open_session(self) -> SSESession:
        """
        Create a new session and start its request worker.

        Returns:
            The open session
        """
        session = SSESession(uuid.uuid4().hex)

        self._sessions[session.session_id] = session
        self._session_metrics["total_created"] += 1

        session._worker = asyncio.create_task(
            self._process_inbound(session),
            name=f"session-worker-{session.session_id}",
        )

        self.logger.info(f"Opened session: {session.session_id}")
        return session

    async def get_session(self, session_id: str) -> Optional[SSESession]:
        """Look up an open session by id."""
        session = self._sessions.get(session_id)
        if session is None or not session.is_open:
            return None
        return session

    async def close_session(self, session_id: str) -> bool:
        """
        Close a session and release its id. Safe to call more than once.

        Returns:
            True if an open session was closed, False if none was found
        """
        return self.release_session(session_id)

    def release_session(self, session_id: str) -> bool:
        """Synchronous close, usable where the caller's scope may be cancelled."""
        session = self._sessions.pop(session_id, None)
        if session is None or not session.close():
            return False

        self._session_metrics["total_closed"] += 1
        self.logger.info(f"Closed session: {session_id}")
        return True

    async def post_message(self, session_id: str, request: ProtocolRequest) -> None:
        """
        Queue a request for dispatch on the given session.

        The response is delivered over the session's stream; this call returns
        as soon as the request is queued.

        Raises:
            SessionNotFoundError: if the session is unknown or closed
        """
        session = await self.get_session(session_id)
        if session is None:
            self.logger.warning(f"Message for unknown session: {session_id}")
            raise SessionNotFoundError(session_id)

        session.messages_received += 1
        session._inbound.put_nowait(request)
        self.logger.debug(
            f"Queued {request.method} (id={request.id}) for session {session_id}"
        )

    def endpoint_url(self, session: SSESession) -> str:
        return f"{self.messages_path}?sessionId={session.session_id}"

    async def event_stream(
        self, session: SSESession
    ) -> AsyncGenerator[Dict[str, str], None]:
        """
        Yield SSE events for one session until it closes.

        The first event tells the client where to post its messages. Leaving
        the generator for any reason (client disconnect cancels it) closes the
        session.
        """
        try:
            yield {"event": "endpoint", "data": self.endpoint_url(session)}

            while True:
                message = await session.next_message()
                if message is None:
                    break
                yield {"event": "message", "data": json.dumps(message)}
        except asyncio.CancelledError:
            self.logger.info(f"Client disconnected from session {session.session_id}")
            raise
        except Exception as e:
            self.logger.error(f"SSE stream error for session {session.session_id}: {e}")
        finally:
            # No awaits here: the enclosing scope may already be cancelled
            self.release_session(session.session_id)

    async def _process_inbound(self, session: SSESession) -> None:
        """Dispatch a session's requests one at a time, in arrival order."""
        while True:
            request = await session._inbound.get()
            if request is None or not session.is_open:
                break

            with logfire.span(
                "session.process_message",
                method=request.method,
                session_id=session.session_id,
            ):
                response = await self.dispatcher.handle(request, session)

            if response is None:
                continue

            if not session.send(response.to_wire()):
                # Client went away while the request was in flight
                self._session_metrics["messages_dropped"] += 1
                self.logger.info(
                    f"Dropped response to {request.method} (id={request.id}): "
                    f"session {session.session_id} is closed"
                )

    async def list_active_sessions(self) -> List[SessionInfo]:
        return [session.info() for session in self._sessions.values() if session.is_open]

    def get_session_metrics(self) -> Dict[str, Any]:
        """Get session manager metrics."""
        return {
            **self._session_metrics,
            "active_count": len(self._sessions),
        }

    async def shutdown(self) -> None:
        """Close every open session and wait for in-flight requests."""
        workers = []
        for session_id, session in list(self._sessions.items()):
            if session._worker is not None:
                workers.append(session._worker)
            self.release_session(session_id)

        if workers:
            self.logger.info(f"Waiting for {len(workers)} session workers to finish")
            await asyncio.gather(*workers, return_exceptions=True)
