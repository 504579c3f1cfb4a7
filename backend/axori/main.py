from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from axori.config import settings
from axori.middleware.exceptions import register_exception_handlers
from axori.routers import health, learning_hub, properties
from axori.utils.redis import close_redis

logger = logging.getLogger("axori")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Axori API starting (%s)", settings.environment)
    try:
        yield
    finally:
        await close_redis()
        logger.info("Axori API stopped")


app = FastAPI(
    title="Axori",
    description="Real-estate portfolio management",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(learning_hub.router, prefix="/api/learning-hub", tags=["learning-hub"])
