import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from medistock.api.exception_handlers import register_exception_handlers
from medistock.api.v1.router import api_router
from medistock.core.config import get_settings
from medistock.core.database import engine
from medistock.core.logging_config import configure_logging

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MediStock Reservation and Pickup Backend",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health", tags=["health"])
def root_health() -> dict:
    """
    Global health check endpoint, including a database ping.
    """
    try:
        with engine.connect() as conn:
            ok = conn.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        ok = False
    return {"status": "ok" if ok else "degraded", "db": ok}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
