"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from typing import Generator
from sqlalchemy.orm import Session

from database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency
    Yields a SQLAlchemy session and ensures cleanup
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_medicine_service():
        from services.medicine_service import medicine_service
        return medicine_service

    @staticmethod
    def get_adherence_service():
        from services.adherence_service import adherence_service
        return adherence_service

    @staticmethod
    def get_report_service():
        from services.report_service import report_service
        return report_service

    @staticmethod
    def get_report_exporter():
        from tools.report_exporter import report_exporter
        return report_exporter


# Service dependency instances
services = ServiceDependency()
