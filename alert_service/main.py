from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from common.config import get_settings

from .alerts.errors import ConfigurationError
from .endpoints import health_router, history_router
from .runtime import start_runtime, stop_runtime

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # También cuando se lanza con `uvicorn alert_service.main:app`
    configure_logging()
    try:
        start_runtime()
    except ConfigurationError as e:
        logger.critical("[CONFIG] Invalid signal configuration: %s", e)
        raise
    yield
    stop_runtime()


app = FastAPI(title="IoT Alert Service", version="0.1.0", lifespan=lifespan)

# Dashboard en otro origen
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
)

app.include_router(health_router)
app.include_router(history_router)


def run() -> None:
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=get_settings().api_port)


if __name__ == "__main__":
    run()
