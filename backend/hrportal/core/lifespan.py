"""
Application startup and graceful shutdown.

The lifespan builds the process-wide resources (database engine, session
factory, government gateway clients, HR agents) onto ``app.state`` and releases them once
in-flight requests have drained.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from hrportal.db.session import build_session_factory, create_engine
from hrportal.services.agents import build_coordinator
from hrportal.services.government import GovernmentGateways
from hrportal.services.llm import LLMClient

logger = logging.getLogger("hrportal.lifespan")

SHUTDOWN_TIMEOUT = 30


class ShutdownState:
    """
    Tracks in-flight requests so shutdown can wait for them.
    """

    def __init__(self, timeout: float = SHUTDOWN_TIMEOUT):
        self.timeout = timeout
        self.shutting_down = False
        self.pending_requests = 0

    async def drain(self) -> None:
        self.shutting_down = True
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while self.pending_requests > 0:
            if loop.time() > deadline:
                logger.warning(f"Shutdown timeout reached with {self.pending_requests} pending requests")
                return
            logger.info(f"Waiting for {self.pending_requests} pending requests...")
            await asyncio.sleep(0.5)


shutdown_state = ShutdownState()


@asynccontextmanager
async def lifespan(app):
    """
    FastAPI lifespan context manager.

    Usage:
        app = FastAPI(lifespan=lifespan)
    """
    logger.info("Application starting up...")
    engine = create_engine()
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.gateways = GovernmentGateways.from_settings()
    app.state.llm = LLMClient.from_settings()
    app.state.agents = build_coordinator(app.state.llm)
    logger.info(f"HR agents using {app.state.llm.provider} ({app.state.llm.model})")
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await shutdown_state.drain()

        logger.info("Closing government gateway clients...")
        await app.state.gateways.close()

        logger.info("Closing database connections...")
        await engine.dispose()
        logger.info("Graceful shutdown complete")


class RequestTrackingMiddleware:
    """
    Counts in-flight requests and refuses new ones once shutdown has begun.
    """

    def __init__(self, app, state: ShutdownState = shutdown_state):
        self.app = app
        self.state = state

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if self.state.shutting_down:
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"connection", b"close"],
                ],
            })
            await send({
                "type": "http.response.body",
                "body": b'{"error": "Service is shutting down", "retry_after": 5}',
            })
            return

        self.state.pending_requests += 1
        try:
            await self.app(scope, receive, send)
        finally:
            self.state.pending_requests -= 1
