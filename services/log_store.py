"""
Daily Log Store
Keyed access to DailyLog rows with per-key locking and conditional writes
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple
from datetime import date, datetime
from sqlalchemy import update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
import models
from models import DoseStatus
from services.errors import NotFoundError, StoreError


logger = logging.getLogger(__name__)

LogKey = Tuple[date, int]


class KeyedLock:
    """
    One lock per (date, medicine_no) key.

    Locks are created on first use and dropped once nobody holds or waits
    for them, so the table stays bounded by the number of in-flight keys.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else settings.STORE_LOCK_TIMEOUT_SECONDS
        self._guard = threading.Lock()
        self._locks: Dict[LogKey, threading.Lock] = {}
        self._waiters: Dict[LogKey, int] = {}

    @contextmanager
    def hold(self, key: LogKey) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        acquired = lock.acquire(timeout=self.timeout)
        try:
            if not acquired:
                raise StoreError(
                    f"Timed out after {self.timeout}s waiting for log {key[0].isoformat()}/{key[1]}"
                )
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]


class DailyLogStore:
    """
    Persistence operations for DailyLog rows.

    Every write goes through either ``insert_if_absent`` (relies on the
    unique (date, medicine_no) constraint) or ``compare_and_set_status``
    (conditional UPDATE). Callers hold ``lock(key)`` around read-modify-write.
    Database failures are re-raised as StoreError.
    """

    def __init__(self, keyed_lock: Optional[KeyedLock] = None):
        self.keyed_lock = keyed_lock or KeyedLock()

    def lock(self, log_date: date, medicine_no: int):
        return self.keyed_lock.hold((log_date, medicine_no))

    def get(
        self,
        session: Session,
        log_date: date,
        medicine_no: int
    ) -> Optional[models.DailyLog]:
        try:
            return session.query(models.DailyLog).filter(
                models.DailyLog.date == log_date,
                models.DailyLog.medicine_no == medicine_no
            ).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read log {log_date}/{medicine_no}: {e}") from e

    def logs_for_date(self, session: Session, log_date: date) -> Dict[int, models.DailyLog]:
        """All logs for a day keyed by medicine number"""
        try:
            logs = session.query(models.DailyLog).filter(
                models.DailyLog.date == log_date
            ).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read logs for {log_date}: {e}") from e
        return {log.medicine_no: log for log in logs}

    def insert_if_absent(self, session: Session, log: models.DailyLog) -> bool:
        """
        Insert a new log row and commit.

        Returns False (and rolls back) when a row for the same key already
        exists, leaving the existing row untouched.

        Raises:
            NotFoundError: the medicine was deleted before the insert landed
        """
        log_date, medicine_no = log.date, log.medicine_no
        try:
            session.add(log)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            # Unique key conflict or foreign key violation; only the first is a retry
            if not self._medicine_exists(session, medicine_no):
                raise NotFoundError(f"Medicine {medicine_no} not found") from e
            logger.info(f"Log {log_date}/{medicine_no} already exists, insert skipped")
            return False
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Failed to insert log {log_date}/{medicine_no}: {e}") from e
        session.refresh(log)
        return True

    @staticmethod
    def _medicine_exists(session: Session, medicine_no: int) -> bool:
        try:
            return session.query(models.Medicine.medicine_no).filter(
                models.Medicine.medicine_no == medicine_no
            ).first() is not None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read medicine {medicine_no}: {e}") from e

    def compare_and_set_status(
        self,
        session: Session,
        log_date: date,
        medicine_no: int,
        expected: Optional[DoseStatus],
        new_status: DoseStatus,
        taken_time: Optional[datetime] = None
    ) -> bool:
        """
        Set status (and taken time when given) only if the current status
        equals ``expected``; ``expected=None`` writes unconditionally.

        Returns True when a row was updated.
        """
        stmt = update(models.DailyLog).where(
            models.DailyLog.date == log_date,
            models.DailyLog.medicine_no == medicine_no
        )
        if expected is not None:
            stmt = stmt.where(models.DailyLog.status == expected)

        values = {"status": new_status, "updated_at": datetime.utcnow()}
        if taken_time is not None:
            values["taken_time"] = taken_time

        try:
            result = session.execute(
                stmt.values(**values).execution_options(synchronize_session=False)
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Failed to update log {log_date}/{medicine_no}: {e}") from e
        return result.rowcount == 1

    def delete_logs_for_medicine(self, session: Session, medicine_no: int) -> int:
        """Remove every log row of a medicine, across all dates. Does not commit."""
        try:
            result = session.execute(
                delete(models.DailyLog)
                .where(models.DailyLog.medicine_no == medicine_no)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete logs for medicine {medicine_no}: {e}") from e
        return result.rowcount


# Singleton instance
daily_log_store = DailyLogStore()
