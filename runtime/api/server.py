"""
FastAPI application entry point for the LogIngest runtime.

Responsibilities:
- build the FastAPI app (create_app)
- construct the LogStore once and attach it to app.state
- create the empty snapshot at startup
- install CORS, security headers, access logging and the body size limit
- register error handlers and the /logs + /health routes

Run with:

    uvicorn runtime.api.server:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configs.settings import Settings, settings as default_settings
from runtime.store.log_store import LogStore
from . import log_routes
from .errors import register_error_handlers
from .middleware import install_middleware


logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    store: LogStore = app.state.log_store
    store.initialize()
    logger.info("LogIngest serving snapshot %s", store.data_file)
    yield


def create_app(
    settings: Optional[Settings] = None,
    data_file: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """Build a LogIngest application.

    Parameters
    ----------
    settings:
        Configuration to use; defaults to the process-wide settings.
    data_file:
        Overrides ``settings.data_file`` (handy for tests).
    """
    settings = settings or default_settings

    app = FastAPI(title="LogIngest Runtime", lifespan=_lifespan)

    # One store per app; handlers reach it through request.app.state.
    app.state.log_store = LogStore(data_file or settings.data_file)
    app.state.started_at = time.monotonic()
    app.state.max_body_bytes = settings.max_body_bytes

    install_middleware(app, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(log_routes.router)
    return app


app = create_app()
