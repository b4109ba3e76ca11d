"""Pack input simulator FastAPI application.

Processes commands synchronously via HTTP. Every request that targets the
pack input context runs inside its domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay.
import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import pack_input.articles  # noqa: F401  (load the package before domain traversal)
from pack_input.domain import pack_input  # noqa: E402

pack_input.init()

_DOMAIN_PREFIXES = ("/response-fields", "/response-profiles", "/articles", "/input-requests", "/storage")

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the storage connection on startup and close it on shutdown."""
    from pack_input.operations import get_operations, reset_operations

    address = os.environ.get("PACK_INPUT_STORAGE_ADDRESS", "localhost")
    port = int(os.environ.get("PACK_INPUT_STORAGE_PORT", "6050"))
    get_operations().connection.open(address, port)
    logger.info("Pack input simulator started", storage_address=address, storage_port=port)

    yield

    reset_operations()
    logger.info("Pack input simulator stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Pack Input Simulator API",
    description="Input decisions and response overrides for a storage system simulator",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the pack input domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with pack_input.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from pack_input.api import (  # noqa: E402
    article_router,
    input_request_router,
    install_error_handlers,
    response_field_router,
    response_profile_router,
    storage_router,
)

app.include_router(response_field_router)
app.include_router(response_profile_router)
app.include_router(article_router)
app.include_router(input_request_router)
app.include_router(storage_router)
install_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": pack_input.name})
