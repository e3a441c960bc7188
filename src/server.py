import json
import logging
import os
from typing import Optional

import logfire
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse

from app.errors import SessionNotFoundError
from app.handler import RequestDispatcher, SERVER_VERSION
from app.models import ProtocolRequest
from app.session import SessionManager
from engine.base import BaseEngine
from tools.registry import ToolRegistry


def _client_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


class SessionEventSourceResponse(EventSourceResponse):
    """
    SSE response that owns its session for the lifetime of the connection.

    The stream generator's own cleanup only runs once it has been started; a
    client that disconnects before the first event never starts it, so the
    session is also released here whatever way the response ends.
    """

    def __init__(self, content, session_manager: SessionManager, session_id: str, **kwargs):
        super().__init__(content, **kwargs)
        self.session_manager = session_manager
        self.session_id = session_id

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.session_manager.release_session(self.session_id)


class ServerSettings:
    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 3000,
        messages_path: str = "/messages",
        sse_path: str = "/sse",
        ping_interval: int = 15,
        debug: bool = False,
    ):
        self.host = host
        self.port = port
        self.messages_path = messages_path
        self.sse_path = sse_path
        self.ping_interval = ping_interval
        self.debug = debug


class ThinkingServer:
    """
    HTTP front end: one SSE subscribe route and one message route per the
    MCP SSE transport, plus a health check.
    """

    def __init__(
        self,
        logger: logging.Logger,
        registry: ToolRegistry,
        server_settings: ServerSettings,
        engine: Optional[BaseEngine] = None,
    ) -> None:
        self.logger = logger
        self.server_settings = server_settings
        self.engine = engine

        self.host = server_settings.host
        self.port = server_settings.port

        self.app = FastAPI(title="DeepSeek R1 Thinking Server", version=SERVER_VERSION)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self.dispatcher = RequestDispatcher(registry, logger=self.logger)
        self.session_manager = SessionManager(
            self.dispatcher,
            messages_path=server_settings.messages_path,
            logger=self.logger,
        )

        @self.app.exception_handler(Exception)
        async def unhandled_error(request: Request, exc: Exception):
            self.logger.error(f"Error: {exc}")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error", "message": str(exc)},
            )

        @self.app.get(server_settings.sse_path)
        async def sse_endpoint(request: Request):
            return await self.handle_subscribe(request)

        @self.app.post(server_settings.messages_path)
        async def messages_endpoint(request: Request):
            return await self.handle_post_message(request)

        @self.app.get("/health")
        async def health_check():
            metrics = self.session_manager.get_session_metrics()
            return {
                "status": "healthy",
                "active_sessions": metrics["active_count"],
            }

    async def handle_subscribe(self, request: Request) -> SessionEventSourceResponse:
        """Open a session and stream its events until the client goes away."""
        session = await self.session_manager.open_session()
        self.logger.info(
            f"New SSE connection from {request.client.host if request.client else 'unknown'}: "
            f"session {session.session_id}"
        )
        logfire.info("server.sse_connection {session_id}", session_id=session.session_id)

        return SessionEventSourceResponse(
            self.session_manager.event_stream(session),
            session_manager=self.session_manager,
            session_id=session.session_id,
            ping=self.server_settings.ping_interval,
        )

    async def handle_post_message(self, request: Request) -> JSONResponse:
        """
        Accept one protocol message for an open session.

        The response to the message itself travels over the SSE stream; this
        only acknowledges receipt.
        """
        session_id = request.query_params.get("sessionId")
        if not session_id:
            return _client_error(400, "Missing sessionId query parameter")

        self.logger.debug(f"New message: {session_id}")

        session = await self.session_manager.get_session(session_id)
        if session is None:
            return _client_error(404, f"Session not found: {session_id}")

        try:
            body = json.loads(await request.body())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _client_error(400, "Invalid JSON message")

        if isinstance(body, list):
            return _client_error(400, "Batch requests are not supported")

        try:
            message = ProtocolRequest.model_validate(body)
        except ValidationError as e:
            self.logger.warning(f"Malformed message for session {session_id}: {e}")
            return _client_error(400, "Malformed protocol request")

        try:
            await self.session_manager.post_message(session_id, message)
        except SessionNotFoundError as e:
            # Closed between the lookup and the post
            return _client_error(404, e.message)

        return JSONResponse(status_code=202, content={"status": "Accepted"})

    async def listen(self):
        """Start the server and listen for connections."""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            log_level="info" if self.server_settings.debug else "warning",
        )
        server = uvicorn.Server(config)

        try:
            self.logger.info(f"Server is running on port {self.port}")
            await server.serve()
        except KeyboardInterrupt:
            self.logger.info("Received shutdown signal")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Shutdown the server and cleanup resources."""
        self.logger.info("Shutting down server...")
        try:
            await self.session_manager.shutdown()
            if self.engine is not None:
                await self.engine.close()
            self.logger.info(f"Server shutdown completed (PID {os.getpid()})")
        except Exception as e:
            self.logger.error(f"Shutdown error: {e}")
