import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from topic_outline.api.routes.outline import router as outline_router
from topic_outline.config import settings
from topic_outline.session import get_session

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    stop = threading.Event()
    watcher: threading.Thread | None = None
    if settings.watch_transcript:
        # Startup replays the backlog through the oracle; keep it off the event loop.
        session = await asyncio.to_thread(get_session)
        watcher = threading.Thread(
            target=session.watch, args=(stop,), name="transcript-watcher", daemon=True
        )
        watcher.start()
    try:
        yield
    finally:
        stop.set()
        if watcher is not None:
            watcher.join(timeout=settings.poll_interval_seconds * 2)


app = FastAPI(
    title="Topic Outline API",
    description="Live topic outline for streaming meeting transcripts",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(outline_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


def run() -> None:
    """Serve the API on the configured host and port."""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
