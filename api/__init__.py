"""
API Module
FastAPI routers for the MedicineTT application
"""

from api.medicines import router as medicines_router
from api.reports import router as reports_router
from api.voice import router as voice_router

from api.deps import (
    get_db,
    services,
)


__all__ = [
    # Routers
    "medicines_router",
    "reports_router",
    "voice_router",
    # Dependencies
    "get_db",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(medicines_router, prefix=prefix)
    app.include_router(reports_router, prefix=prefix)
    app.include_router(voice_router, prefix=prefix)
