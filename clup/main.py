# clup/main.py
# FastAPI entry point. Tables are created in the lifespan startup with retries.

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clup.db.session import engine
from clup.db.base import Base
from clup.core.config import settings
from clup.core.errors import ClupError, HTTP_STATUS

# Model imports register the tables on Base.metadata
import clup.models.user
import clup.models.store
import clup.models.ticket

from clup.api import auth, stores, queue, reservations, tickets

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def try_create_tables(retries: int = 5, delay: int = 2) -> bool:
    """
    Creates the tables, retrying while the database is unreachable.

    Args:
        retries: number of connection attempts
        delay: seconds to wait between attempts

    Returns:
        True if the tables exist, False once every attempt failed
    """
    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Creating tables ({attempt}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ Database tables created (or already exist).")
            return True
        except Exception as e:
            logger.warning(f"❌ Attempt {attempt}/{retries} failed to create tables: {e}")
            if attempt < retries:
                logger.info(f"⏳ Waiting {delay}s before retry...")
                time.sleep(delay)
            else:
                logger.error(
                    f"❌ Could not create tables after {retries} retries. "
                    "Database initialization failed."
                )
                return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 CLup API starting up...")
    if not try_create_tables(retries=5, delay=2):
        if settings.ENVIRONMENT in ("production", "prod"):
            raise RuntimeError("Cannot start application: database tables creation failed")
        logger.error("⚠️ Failed to create database tables. Application may not work correctly.")

    yield

    logger.info("🛑 CLup API shutting down...")
    engine.dispose()
    logger.info("✅ Database connection closed")


app = FastAPI(
    title="CLup API",
    description="Store queues, timeslot reservations and entrance checks",
    version="1.0.0",
    lifespan=lifespan
)

if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(stores.router, prefix="/api", tags=["stores"])
app.include_router(queue.router, prefix="/api/store/{store_id}/queue", tags=["queue"])
app.include_router(reservations.router, prefix="/api/store/{store_id}/reservation", tags=["reservations"])
app.include_router(tickets.router, prefix="/api", tags=["tickets"])


@app.get("/", tags=["health"])
async def root():
    return {
        "status": "ok",
        "service": "CLup API",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["health"])
async def health():
    return {
        "status": "healthy",
        "version": "1.0.0"
    }


@app.exception_handler(ClupError)
async def clup_error_handler(request: Request, exc: ClupError):
    """Maps manager errors to their HTTP status."""
    status_code = HTTP_STATUS[exc.kind]
    logger.info(f"{request.method} {request.url.path} --> {status_code} {exc.kind.value}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "kind": exc.kind.value})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Internal server error",
            "detail": str(exc) if settings.ENVIRONMENT == "development" else "An error occurred"
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clup.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
