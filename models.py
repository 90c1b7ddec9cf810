"""
Database Models
SQLAlchemy ORM models for MedicineTT
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Date, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base
from config import TableNames


# ==================== ENUMS ====================

class DoseStatus(str, PyEnum):
    """Status of a medicine dose for one calendar day"""
    PENDING = "PENDING"
    TAKEN = "TAKEN"
    MISSED = "MISSED"


class TimeSlot(str, PyEnum):
    """Coarse time of day a medicine is scheduled in"""
    MORNING = "Morning"
    NOON = "Noon"
    EVENING = "Evening"
    NIGHT = "Night"


class Frequency(str, PyEnum):
    """How often a medicine is taken"""
    DAILY = "Daily"
    WEEKLY = "Weekly"


# ==================== MODELS ====================

class Medicine(Base):
    """Medicine definition in the registry"""
    __tablename__ = TableNames.MEDICINES

    # Assigned by the registry (max + 1), never reused while the row exists
    medicine_no = Column(Integer, primary_key=True, autoincrement=False)

    name = Column(String(255), nullable=False)
    scheduled_time = Column(String(5), nullable=False)  # "HH:MM", 24h
    dosage = Column(String(100))
    frequency = Column(Enum(Frequency), nullable=False, default=Frequency.DAILY)
    time_slot = Column(Enum(TimeSlot), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    daily_logs = relationship(
        "DailyLog",
        back_populates="medicine",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class DailyLog(Base):
    """One record per (day, medicine); absence means the dose is still pending"""
    __tablename__ = TableNames.DAILY_LOGS

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    medicine_no = Column(
        Integer,
        ForeignKey(f"{TableNames.MEDICINES}.medicine_no", ondelete="CASCADE"),
        nullable=False
    )

    # Snapshot of the definition when the row was created
    name = Column(String(255), nullable=False)
    scheduled_time = Column(String(5), nullable=False)

    taken_time = Column(DateTime)
    status = Column(Enum(DoseStatus), nullable=False, default=DoseStatus.PENDING)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    medicine = relationship("Medicine", back_populates="daily_logs")

    __table_args__ = (
        UniqueConstraint("date", "medicine_no", name="uq_daily_logs_date_medicine"),
        Index("ix_daily_logs_medicine", "medicine_no"),
    )
