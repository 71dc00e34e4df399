"""memoboard API - FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import get_settings
from .database import MEMOS_TABLE, close_supabase_client, create_supabase_client
from .errors import MemoNotFoundError, MemoStoreError
from .rate_limit import limiter
from .routes import memos_router
from .store import MemoStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session's client and MemoStore, and discard them at shutdown."""
    # Startup
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.info("Starting memoboard API (debug=%s)", settings.debug)

    db = await create_supabase_client(settings)
    store = MemoStore(db)
    await store.initialize()
    app.state.supabase = db
    app.state.memo_store = store
    yield
    # Shutdown
    logger.info("Shutting down memoboard API")
    store.close()
    await close_supabase_client(db)


async def memo_not_found_handler(request: Request, exc: MemoNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def memo_store_error_handler(request: Request, exc: MemoStoreError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc), "code": exc.code})


app = FastAPI(
    title="memoboard API",
    description="Personal memo board backed by Supabase",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_exception_handler(MemoNotFoundError, memo_not_found_handler)
app.add_exception_handler(MemoStoreError, memo_store_error_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(memos_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "memoboard",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health")
async def health(request: Request):
    """Detailed health check with an actual database query."""
    db_status = "disconnected"
    db = getattr(request.app.state, "supabase", None)
    if db is not None:
        try:
            await db.table(MEMOS_TABLE).select("id").limit(1).execute()
            db_status = "connected"
        except Exception as e:
            db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "database": db_status,
    }
