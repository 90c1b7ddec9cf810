"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all MedicineTT tests.
Fixtures include database sessions, test clients, a controllable clock,
services wired to the test session, and sample medicines.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Generator, List

# Test settings must be in place before config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base
from api.deps import get_db
from models import Medicine, DailyLog, DoseStatus, TimeSlot, Frequency
from services.log_store import DailyLogStore, KeyedLock
from services.medicine_service import MedicineService
from services.adherence_service import AdherenceService
from services.report_service import ReportService
from app import app


# ==================== CLOCK ====================

class FixedClock:
    """Callable clock that tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


TEST_DAY = date(2026, 10, 18)


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at 09:15 on the test day"""
    return FixedClock(datetime(2026, 10, 18, 9, 15, 0))


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SERVICE FIXTURES ====================

@pytest.fixture
def log_store() -> DailyLogStore:
    return DailyLogStore(KeyedLock(timeout=1.0))


@pytest.fixture
def medicine_svc(log_store) -> MedicineService:
    return MedicineService(log_store=log_store)


@pytest.fixture
def adherence(medicine_svc, log_store, clock) -> AdherenceService:
    return AdherenceService(medicines=medicine_svc, log_store=log_store, clock=clock)


@pytest.fixture
def reports(medicine_svc, log_store, clock) -> ReportService:
    return ReportService(medicines=medicine_svc, log_store=log_store, clock=clock)


# ==================== SAMPLE DATA FIXTURES ====================

def make_medicine(
    medicine_no: int,
    name: str,
    scheduled_time: str,
    time_slot: TimeSlot,
    dosage: str = None
) -> Medicine:
    return Medicine(
        medicine_no=medicine_no,
        name=name,
        scheduled_time=scheduled_time,
        time_slot=time_slot,
        frequency=Frequency.DAILY,
        dosage=dosage
    )


@pytest.fixture
def sample_medicines(db_session: Session) -> List[Medicine]:
    """Four medicines inserted out of report order"""
    medicines = [
        make_medicine(1, "Ibuprofen", "20:00", TimeSlot.NIGHT),
        make_medicine(2, "Amoxicillin", "14:00", TimeSlot.NOON, dosage="250mg"),
        make_medicine(3, "Vitamin D", "09:30", TimeSlot.MORNING),
        make_medicine(4, "Paracetamol", "09:00", TimeSlot.MORNING, dosage="500mg"),
    ]
    db_session.add_all(medicines)
    db_session.commit()
    for med in medicines:
        db_session.refresh(med)
    return medicines


@pytest.fixture
def add_log(db_session: Session):
    """Insert a DailyLog row directly"""
    def _add(
        medicine: Medicine,
        status: DoseStatus,
        taken_time: datetime = None,
        log_date: date = TEST_DAY
    ) -> DailyLog:
        log = DailyLog(
            date=log_date,
            medicine_no=medicine.medicine_no,
            name=medicine.name,
            scheduled_time=medicine.scheduled_time,
            taken_time=taken_time,
            status=status
        )
        db_session.add(log)
        db_session.commit()
        db_session.refresh(log)
        return log
    return _add


def count_logs(session: Session, log_date: date = TEST_DAY) -> int:
    return session.query(DailyLog).filter(DailyLog.date == log_date).count()


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
