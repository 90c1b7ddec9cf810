"""
Medicine Service
Registry of medicine definitions
"""

import logging
import re
import threading
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db_context
import models
from models import Frequency, TimeSlot
from services.errors import NotFoundError, StoreError, ValidationError
from services.log_store import DailyLogStore, daily_log_store


logger = logging.getLogger(__name__)


_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

SAMPLE_MEDICINES = [
    {"name": "Paracetamol", "scheduled_time": "09:00", "time_slot": TimeSlot.MORNING},
    {"name": "Vitamin D", "scheduled_time": "09:30", "time_slot": TimeSlot.MORNING},
    {"name": "Amoxicillin", "scheduled_time": "14:00", "time_slot": TimeSlot.NOON},
    {"name": "Ibuprofen", "scheduled_time": "20:00", "time_slot": TimeSlot.NIGHT},
]


def normalize_scheduled_time(value: Any) -> str:
    """Validate an H:MM / HH:MM 24h string and return it zero-padded"""
    if not isinstance(value, str):
        raise ValidationError(f"Scheduled time must be a string in HH:MM format, got {value!r}")
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid scheduled time '{value}', expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid scheduled time '{value}', expected HH:MM")
    return f"{hours:02d}:{minutes:02d}"


def _coerce_enum(enum_cls, value: Any, field: str):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"Invalid {field} '{value}', expected one of: {allowed}")


def _require_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Medicine name is required")
    return name.strip()


class MedicineService:
    """
    Service for the medicine registry
    """

    UPDATABLE_FIELDS = {"name", "scheduled_time", "dosage", "frequency", "time_slot"}

    def __init__(self, log_store: Optional[DailyLogStore] = None):
        self.log_store = log_store or daily_log_store
        # medicine_no is max + 1; creation is serialized within the process
        self._create_lock = threading.Lock()

    async def add_medicine(
        self,
        name: str,
        scheduled_time: str,
        time_slot: Any,
        frequency: Any = Frequency.DAILY,
        dosage: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Medicine:
        """
        Add a new medicine to the registry

        Args:
            name: Medicine name (required)
            scheduled_time: Time of day as "HH:MM" (24h)
            time_slot: Morning, Noon, Evening or Night
            frequency: Daily or Weekly
            dosage: Optional dosage text
            db: Database session

        Returns:
            Created Medicine object with its assigned medicine_no
        """
        name = _require_name(name)
        scheduled_time = normalize_scheduled_time(scheduled_time)
        slot = _coerce_enum(TimeSlot, time_slot, "time slot")
        freq = _coerce_enum(Frequency, frequency, "frequency")

        def _add(session: Session) -> models.Medicine:
            with self._create_lock:
                try:
                    last_no = session.query(func.max(models.Medicine.medicine_no)).scalar()
                    medicine = models.Medicine(
                        medicine_no=(last_no or 0) + 1,
                        name=name,
                        scheduled_time=scheduled_time,
                        dosage=dosage or None,
                        frequency=freq,
                        time_slot=slot
                    )
                    session.add(medicine)
                    session.commit()
                except SQLAlchemyError as e:
                    session.rollback()
                    raise StoreError(f"Failed to add medicine {name}: {e}") from e
            session.refresh(medicine)

            logger.info(f"Added medicine {medicine.medicine_no} ({name}) at {scheduled_time}")
            return medicine

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_medicine(
        self,
        medicine_no: int,
        db: Optional[Session] = None
    ) -> models.Medicine:
        """Get medicine by number, raising NotFoundError if it does not exist"""
        def _get(session: Session) -> models.Medicine:
            return self.require_medicine(session, medicine_no)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_medicines(self, db: Optional[Session] = None) -> List[models.Medicine]:
        """All medicines ordered by medicine_no"""
        def _list(session: Session) -> List[models.Medicine]:
            return self.all_medicines(session)

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_medicine(
        self,
        medicine_no: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> models.Medicine:
        """
        Partially update a medicine in place.

        Existing daily logs keep their snapshot; reports always read the
        current definition.
        """
        clean: Dict[str, Any] = {}
        for field, value in updates.items():
            if field not in self.UPDATABLE_FIELDS:
                continue
            if field == "name":
                clean[field] = _require_name(value)
            elif field == "scheduled_time":
                clean[field] = normalize_scheduled_time(value)
            elif field == "time_slot":
                clean[field] = _coerce_enum(TimeSlot, value, "time slot")
            elif field == "frequency":
                clean[field] = _coerce_enum(Frequency, value, "frequency")
            else:
                clean[field] = value or None

        def _update(session: Session) -> models.Medicine:
            medicine = self.require_medicine(session, medicine_no)
            for field, value in clean.items():
                setattr(medicine, field, value)
            medicine.updated_at = datetime.utcnow()
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Failed to update medicine {medicine_no}: {e}") from e
            session.refresh(medicine)

            logger.info(f"Updated medicine {medicine_no}: {sorted(clean)}")
            return medicine

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_medicine(
        self,
        medicine_no: int,
        db: Optional[Session] = None
    ) -> int:
        """
        Delete a medicine and every DailyLog row it has.

        Returns:
            Number of log rows removed
        """
        def _delete(session: Session) -> int:
            self.require_medicine(session, medicine_no)
            try:
                removed = self.log_store.delete_logs_for_medicine(session, medicine_no)
                session.execute(
                    delete(models.Medicine)
                    .where(models.Medicine.medicine_no == medicine_no)
                    .execution_options(synchronize_session=False)
                )
                session.commit()
            except StoreError:
                session.rollback()
                raise
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Failed to delete medicine {medicine_no}: {e}") from e
            session.expire_all()

            logger.info(f"Deleted medicine {medicine_no} and {removed} daily log(s)")
            return removed

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    async def seed_medicines(self, db: Optional[Session] = None) -> List[models.Medicine]:
        """Replace the registry with the sample medicines"""
        def _seed(session: Session) -> List[models.Medicine]:
            try:
                session.execute(delete(models.DailyLog))
                session.execute(delete(models.Medicine))
                seeded = [
                    models.Medicine(
                        medicine_no=no,
                        frequency=Frequency.DAILY,
                        **data
                    )
                    for no, data in enumerate(SAMPLE_MEDICINES, start=1)
                ]
                session.add_all(seeded)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Failed to seed medicines: {e}") from e

            logger.info(f"Seeded {len(seeded)} medicines")
            return self.all_medicines(session)

        if db:
            return _seed(db)

        with get_db_context() as session:
            return _seed(session)

    # ==================== SESSION HELPERS ====================

    def require_medicine(self, session: Session, medicine_no: int) -> models.Medicine:
        try:
            medicine = session.query(models.Medicine).filter(
                models.Medicine.medicine_no == medicine_no
            ).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read medicine {medicine_no}: {e}") from e
        if not medicine:
            raise NotFoundError(f"Medicine {medicine_no} not found")
        return medicine

    def all_medicines(self, session: Session) -> List[models.Medicine]:
        try:
            return session.query(models.Medicine).order_by(models.Medicine.medicine_no).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list medicines: {e}") from e


# Singleton instance
medicine_service = MedicineService()
