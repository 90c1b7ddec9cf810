"""
Services Module
Business logic layer for the MedicineTT application
"""

from services.errors import (
    AdherenceError,
    NotFoundError,
    AlreadyTakenError,
    NoDataError,
    ValidationError,
    StoreError,
)
from services.log_store import DailyLogStore, KeyedLock, daily_log_store
from services.medicine_service import MedicineService, medicine_service
from services.adherence_service import AdherenceService, adherence_service
from services.report_service import ReportService, report_service


__all__ = [
    # Errors
    "AdherenceError",
    "NotFoundError",
    "AlreadyTakenError",
    "NoDataError",
    "ValidationError",
    "StoreError",
    # Service classes
    "DailyLogStore",
    "KeyedLock",
    "MedicineService",
    "AdherenceService",
    "ReportService",
    # Singleton instances
    "daily_log_store",
    "medicine_service",
    "adherence_service",
    "report_service",
]
