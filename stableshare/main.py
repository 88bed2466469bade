import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from stableshare.core.config import get_settings
from stableshare.core.database import init_db
from stableshare.core.scheduler import start_scheduler, stop_scheduler
from stableshare.api import shared as shared_router
from stableshare.api import share_links as share_links_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"StableShare backend starting (env={settings.app_env})")
    await init_db()
    start_scheduler()
    yield
    stop_scheduler()
    logger.info("StableShare backend stopped")


app = FastAPI(
    title="StableShare API",
    description="Horse share links for stable management",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.app_env == "development" else None,
    redoc_url=None,
)

# ─── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.app_env == "development" else [settings.get_frontend_url()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# ─── Routers ──────────────────────────────────────────────────────────────────
app.include_router(shared_router.router)        # GET/POST /shared/{token}
app.include_router(share_links_router.router)   # /api/organizations/{org_id}/share-links


# ─── Health check ─────────────────────────────────────────────────────────────
@app.get("/health")
async def health():
    return PlainTextResponse("OK")


# ─── Error handling ───────────────────────────────────────────────────────────
@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request, exc):
    logger.error(f"Database error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"detail": {"error_code": "UPSTREAM_FAILURE", "message": "Service temporarily unavailable, please try again"}},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": {"error_code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )
