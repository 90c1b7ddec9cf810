"""
Adherence Service
Dose status derivation, taken events and the day-boundary missed sweep
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Any
from datetime import datetime, date
from sqlalchemy.orm import Session

from database import get_db_context
import models
from models import DoseStatus
from services.errors import AlreadyTakenError, NotFoundError, StoreError
from services.log_store import DailyLogStore, daily_log_store
from services.medicine_service import MedicineService, medicine_service


logger = logging.getLogger(__name__)

# A conflicting writer can change the row between read and write at most
# once per attempt; two attempts cover insert-vs-insert and insert-vs-update.
_WRITE_ATTEMPTS = 2


def resolve_status(log: Optional[models.DailyLog]) -> Tuple[DoseStatus, Optional[datetime]]:
    """Status and taken time for a medicine's day; no log means PENDING"""
    if log is None:
        return DoseStatus.PENDING, None
    return DoseStatus(log.status), log.taken_time


@dataclass
class DoseView:
    """A medicine joined with its status for one day"""
    medicine_no: int
    name: str
    scheduled_time: str
    time_slot: str
    frequency: str
    dosage: Optional[str]
    status: DoseStatus
    taken_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medicine_no": self.medicine_no,
            "name": self.name,
            "scheduled_time": self.scheduled_time,
            "time_slot": self.time_slot,
            "frequency": self.frequency,
            "dosage": self.dosage,
            "status": self.status.value,
            "taken_time": self.taken_time.isoformat() if self.taken_time else None,
        }


@dataclass
class SweepResult:
    """Outcome of one missed sweep"""
    date: date
    created: List[int] = field(default_factory=list)    # no log existed -> MISSED row created
    flipped: List[int] = field(default_factory=list)    # PENDING -> MISSED
    untouched: List[int] = field(default_factory=list)  # TAKEN or already MISSED
    failed: List[int] = field(default_factory=list)
    cancelled: bool = False

    @property
    def changed(self) -> int:
        return len(self.created) + len(self.flipped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "created": self.created,
            "flipped": self.flipped,
            "untouched": self.untouched,
            "failed": self.failed,
            "cancelled": self.cancelled,
        }


class AdherenceService:
    """
    Adherence state machine over the registry and the daily log store.

    ``clock`` returns the current local (naive) datetime and decides what
    "today" is; inject a fixed clock to test day-boundary behavior.
    """

    def __init__(
        self,
        medicines: Optional[MedicineService] = None,
        log_store: Optional[DailyLogStore] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.medicines = medicines or medicine_service
        self.log_store = log_store or daily_log_store
        self.clock = clock or datetime.now

    def today(self) -> date:
        return self.clock().date()

    async def derive_today_view(
        self,
        target_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[DoseView]:
        """
        Status of every registered medicine for today (or ``target_date``).

        Never fails for a missing log: absence is reported as PENDING.
        """
        day = target_date or self.today()

        def _derive(session: Session) -> List[DoseView]:
            medicines = self.medicines.all_medicines(session)
            logs = self.log_store.logs_for_date(session, day)

            view = []
            for med in medicines:
                status, taken_time = resolve_status(logs.get(med.medicine_no))
                view.append(DoseView(
                    medicine_no=med.medicine_no,
                    name=med.name,
                    scheduled_time=med.scheduled_time,
                    time_slot=models.TimeSlot(med.time_slot).value,
                    frequency=models.Frequency(med.frequency).value,
                    dosage=med.dosage,
                    status=status,
                    taken_time=taken_time
                ))
            return view

        if db:
            return _derive(db)

        with get_db_context() as session:
            return _derive(session)

    async def mark_taken(
        self,
        medicine_no: int,
        db: Optional[Session] = None
    ) -> models.DailyLog:
        """
        Record that today's dose was taken now.

        Raises:
            NotFoundError: medicine does not exist
            AlreadyTakenError: today's log is already TAKEN (duplicate trigger)
        """
        def _mark(session: Session) -> models.DailyLog:
            medicine = self.medicines.require_medicine(session, medicine_no)
            now = self.clock()
            day = now.date()

            with self.log_store.lock(day, medicine_no):
                for _ in range(_WRITE_ATTEMPTS):
                    log = self.log_store.get(session, day, medicine_no)

                    if log is None:
                        new_log = self._new_log(medicine, day, DoseStatus.TAKEN, taken_time=now)
                        if self.log_store.insert_if_absent(session, new_log):
                            logger.info(f"Medicine {medicine_no} marked TAKEN for {day}")
                            return new_log
                        continue

                    if log.status == DoseStatus.TAKEN:
                        raise AlreadyTakenError(
                            f"Medicine {medicine_no} already taken on {day.isoformat()}"
                        )

                    if self.log_store.compare_and_set_status(
                        session, day, medicine_no,
                        expected=DoseStatus(log.status),
                        new_status=DoseStatus.TAKEN,
                        taken_time=now
                    ):
                        logger.info(f"Medicine {medicine_no} marked TAKEN for {day}")
                        return self.log_store.get(session, day, medicine_no)

            raise StoreError(f"Concurrent update on log {day}/{medicine_no}, retry")

        if db:
            return _mark(db)

        with get_db_context() as session:
            return _mark(session)

    async def set_taken_time(
        self,
        medicine_no: int,
        taken_time: Optional[datetime] = None,
        target_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> models.DailyLog:
        """
        Write TAKEN with an explicit taken time, whatever the current status.

        Used for operator corrections, so an existing TAKEN entry is
        overwritten rather than rejected.

        Args:
            medicine_no: Medicine number
            taken_time: When the dose was taken (default: now)
            target_date: Day of the log (default: today)
            db: Database session
        """
        def _set(session: Session) -> models.DailyLog:
            medicine = self.medicines.require_medicine(session, medicine_no)
            when = taken_time or self.clock()
            if when.tzinfo is not None:
                # Logs hold local wall-clock time
                when = when.astimezone().replace(tzinfo=None)
            day = target_date or self.today()

            with self.log_store.lock(day, medicine_no):
                for _ in range(_WRITE_ATTEMPTS):
                    log = self.log_store.get(session, day, medicine_no)

                    if log is None:
                        new_log = self._new_log(medicine, day, DoseStatus.TAKEN, taken_time=when)
                        if self.log_store.insert_if_absent(session, new_log):
                            logger.info(f"Taken time for medicine {medicine_no} on {day} set to {when}")
                            return new_log
                        continue

                    if self.log_store.compare_and_set_status(
                        session, day, medicine_no,
                        expected=None,
                        new_status=DoseStatus.TAKEN,
                        taken_time=when
                    ):
                        logger.info(f"Taken time for medicine {medicine_no} on {day} set to {when}")
                        return self.log_store.get(session, day, medicine_no)

            raise StoreError(f"Concurrent update on log {day}/{medicine_no}, retry")

        if db:
            return _set(db)

        with get_db_context() as session:
            return _set(session)

    async def run_missed_sweep(
        self,
        target_date: Optional[date] = None,
        cancel_event: Optional[threading.Event] = None,
        db: Optional[Session] = None
    ) -> SweepResult:
        """
        Finalize a day: every medicine without a TAKEN log ends up MISSED.

        Absent logs are materialized as MISSED, PENDING logs are flipped,
        TAKEN logs are left alone, so a second run changes nothing. A store
        failure on one medicine is logged and the sweep moves on; that
        medicine stays PENDING until the next run.
        """
        day = target_date or self.today()

        def _sweep(session: Session) -> SweepResult:
            result = SweepResult(date=day)
            # Plain tuples: per-medicine commits expire ORM instances
            entries = [
                (med.medicine_no, med.name, med.scheduled_time)
                for med in self.medicines.all_medicines(session)
            ]

            logger.info(f"Running missed sweep for {day} over {len(entries)} medicine(s)")
            for medicine_no, name, scheduled_time in entries:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    logger.warning(f"Missed sweep for {day} cancelled before medicine {medicine_no}")
                    break
                try:
                    outcome = self._sweep_one(session, day, medicine_no, name, scheduled_time)
                except NotFoundError:
                    logger.info(f"Medicine {medicine_no} was deleted during the sweep for {day}, skipped")
                    continue
                except StoreError as e:
                    logger.error(f"Missed sweep failed for medicine {medicine_no} on {day}: {e}")
                    result.failed.append(medicine_no)
                    continue
                getattr(result, outcome).append(medicine_no)

            logger.info(
                f"Missed sweep for {day} complete: {len(result.created)} created, "
                f"{len(result.flipped)} flipped, {len(result.failed)} failed"
            )
            return result

        if db:
            return _sweep(db)

        with get_db_context() as session:
            return _sweep(session)

    def _sweep_one(
        self,
        session: Session,
        day: date,
        medicine_no: int,
        name: str,
        scheduled_time: str
    ) -> str:
        with self.log_store.lock(day, medicine_no):
            for _ in range(_WRITE_ATTEMPTS):
                log = self.log_store.get(session, day, medicine_no)

                if log is None:
                    missed = models.DailyLog(
                        date=day,
                        medicine_no=medicine_no,
                        name=name,
                        scheduled_time=scheduled_time,
                        status=DoseStatus.MISSED
                    )
                    if self.log_store.insert_if_absent(session, missed):
                        return "created"
                    continue

                if log.status != DoseStatus.PENDING:
                    return "untouched"

                if self.log_store.compare_and_set_status(
                    session, day, medicine_no,
                    expected=DoseStatus.PENDING,
                    new_status=DoseStatus.MISSED
                ):
                    return "flipped"

        raise StoreError(f"Concurrent update on log {day}/{medicine_no}, retry")

    @staticmethod
    def _new_log(
        medicine: models.Medicine,
        day: date,
        status: DoseStatus,
        taken_time: Optional[datetime] = None
    ) -> models.DailyLog:
        return models.DailyLog(
            date=day,
            medicine_no=medicine.medicine_no,
            name=medicine.name,
            scheduled_time=medicine.scheduled_time,
            taken_time=taken_time,
            status=status
        )


# Singleton instance
adherence_service = AdherenceService()
