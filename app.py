"""
MedicineTT Backend
FastAPI application for medicine adherence tracking and daily reports
"""

import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from datetime import datetime

# Configuration and database
from config import settings
from database import init_db, DatabaseHealthCheck

from api import include_routers
from api.deps import get_db
from services.errors import AdherenceError
from tools.scheduler import build_daily_trigger

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    # Initialize database
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    trigger = None
    if settings.SCHEDULER_ENABLED:
        trigger = build_daily_trigger()
        trigger.start()
    else:
        logger.info("Scheduler disabled")
    app.state.trigger = trigger

    yield

    # Shutdown
    if trigger is not None:
        await trigger.stop()
    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## MedicineTT API

    Tracks whether scheduled medicine doses were taken, missed, or are still
    pending, and produces a daily adherence report.

    ### Features
    - **Registry**: medicines with a scheduled time and time slot
    - **Dose status**: today's status per medicine, mark taken, manual corrections
    - **Missed sweep**: finalizes pending doses at the end of the day
    - **Daily report**: schedule deviation and slot gaps, exported at midnight
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers (prefix /api/v1)
include_routers(app, prefix=settings.API_PREFIX)


# ==================== EXCEPTION HANDLERS ====================

def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(AdherenceError)
async def adherence_exception_handler(request, exc: AdherenceError):
    if exc.retryable:
        logger.warning(f"Retryable error on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error_response(
        500,
        "An unexpected error occurred" if not settings.DEBUG else str(exc)
    )


# ==================== HEALTH ====================

@app.get("/", tags=["health"])
async def root():
    return {"message": f"{settings.APP_NAME} API is running"}


@app.get("/health", tags=["health"])
async def health_check(db: Session = Depends(get_db)):
    """Database connectivity, row counts and the daily trigger's next fire times"""
    trigger = getattr(app.state, "trigger", None)
    connected = DatabaseHealthCheck.is_connected()
    return {
        "status": "healthy" if connected else "degraded",
        "version": settings.APP_VERSION,
        "database": connected,
        "counts": DatabaseHealthCheck.get_table_counts(db) if connected else {},
        "scheduler": [job.to_dict() for job in trigger.jobs] if trigger else [],
        "timestamp": datetime.utcnow().isoformat()
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
