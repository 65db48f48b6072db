"""DockDirect — FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from dockdirect.config import settings
from dockdirect.database import engine, Base
from dockdirect.errors import EngineError
from dockdirect.routers import audit, bids, contracts, loads
import dockdirect.models  # noqa: F401  (registers tables on Base.metadata)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("dockdirect")

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env ───────────────────────────────────────────────────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="DockDirect",
    description="Freight marketplace: loads, bids and contracts.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("Entity store failure on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=503,
        content={"error": "StoreUnavailable", "detail": "Storage is unavailable, retry the request"},
    )


# Routers
app.include_router(loads.router)
app.include_router(bids.router)
app.include_router(contracts.router)
app.include_router(audit.router)


@app.get("/")
def root():
    return {
        "name": "DockDirect API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "ok"}
