"""
Table Booking Voice Assistant

FastAPI application entry point that ties all components together.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from tablebook.api.routes import audio
from tablebook.config import settings
from tablebook.core.intelligence.session.manager import SessionStore
from tablebook.core.scheduling.finalizer import BookingFinalizer
from tablebook.core.scheduling.flow import ConversationFlow
from tablebook.core.scheduling.response import ResponseGenerator
from tablebook.infra.redis import RedisClient, SlotReservationStore
from tablebook.infra.sheets import BookingSheet
from tablebook.infra.speech import DeepgramTranscriber, ElevenLabsSynthesizer


def setup_logging() -> None:
    """Configure logging based on environment."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the shared components on app.state at startup and closes
    network clients at shutdown.
    """
    # === STARTUP ===
    setup_logging()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    redis = None
    try:
        redis = await RedisClient.get_client()
        if redis:
            logger.info("Redis connection established")
        else:
            logger.warning("Redis unavailable - running in degraded mode")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}")

    store = SlotReservationStore(redis)
    finalizer = BookingFinalizer(store, sink=BookingSheet())

    app.state.sessions = SessionStore()
    app.state.store = store
    app.state.finalizer = finalizer
    app.state.flow = ConversationFlow(
        app.state.sessions,
        store,
        finalizer,
        responses=ResponseGenerator(settings.restaurant_name),
    )
    app.state.transcriber = DeepgramTranscriber()
    app.state.synthesizer = ElevenLabsSynthesizer()

    logger.info(f"Application ready at ws://{settings.host}:{settings.port}/audio")

    yield

    # === SHUTDOWN ===
    logger.info("Shutting down application...")

    await finalizer.drain()
    await app.state.transcriber.close()
    await app.state.synthesizer.close()

    await RedisClient.close()
    logger.info("Redis connection closed")

    logger.info("Shutdown complete")


app = FastAPI(
    title="Table Booking Voice Assistant",
    description="""
    Voice assistant that books restaurant tables over a WebSocket call.

    ## Protocol
    - Connect to `/audio` and receive the greeting audio
    - Send recorded audio as binary frames, then the text frame `end`
    - Receive the reply audio, and a `booking` event once confirmed
    """,
    version="1.0.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(audio.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tablebook.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
