"""
Report Service
Daily adherence report: ordering, schedule deviation and slot gap metrics
"""

import logging
import re
import threading
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional, Any, Iterable
from datetime import datetime, date
from sqlalchemy.orm import Session

from config import report_config
from database import get_db_context
import models
from models import DoseStatus
from services.adherence_service import resolve_status
from services.errors import NoDataError
from services.log_store import DailyLogStore, daily_log_store
from services.medicine_service import MedicineService, medicine_service


logger = logging.getLogger(__name__)


_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

NOT_AVAILABLE = "N/A"
NO_GAP = "-"
ON_TIME = "On Time"


# ==================== TIME ARITHMETIC ====================

def minutes_since_midnight(value: Optional[str]) -> Optional[int]:
    """Parse a strict HH:MM string; None for anything else"""
    if not isinstance(value, str):
        return None
    match = _HHMM.match(value)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def format_duration(minutes: int) -> str:
    """75 -> '01h 15m'; callers pass a non-negative span"""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}h {mins:02d}m"


def format_gap(minutes: int) -> str:
    """
    Slot gap text. Hours are floored, minutes keep the sign of the total
    and each part is zero-padded to two characters only:
    -180 -> '-3h 00m', -190 -> '-4h -10m'.
    """
    hours = minutes // 60
    mins = minutes % 60 if minutes >= 0 else -(-minutes % 60)
    return f"{str(hours).rjust(2, '0')}h {str(mins).rjust(2, '0')}m"


def schedule_vs_taken(scheduled: Optional[str], taken: Optional[str]) -> str:
    """Signed deviation of the taken time from the scheduled time"""
    if not taken:
        return NOT_AVAILABLE
    scheduled_min = minutes_since_midnight(scheduled)
    taken_min = minutes_since_midnight(taken)
    if scheduled_min is None or taken_min is None:
        return NOT_AVAILABLE

    diff = taken_min - scheduled_min
    if diff == 0:
        return ON_TIME
    sign = "+" if diff > 0 else "-"
    return sign + format_duration(abs(diff))


def slot_gap(previous: Optional[str], current: Optional[str]) -> str:
    """
    Gap from the previous row's time to this one.

    A negative difference gets 12 hours added once (same-day wraparound);
    a difference still negative after that is reported as is (see format_gap).
    """
    prev_min = minutes_since_midnight(previous)
    cur_min = minutes_since_midnight(current)
    if prev_min is None or cur_min is None:
        return NO_GAP

    diff = cur_min - prev_min
    if diff < 0:
        diff = (cur_min + report_config.WRAPAROUND_MINUTES) - prev_min
    return format_gap(diff)


def slot_order(time_slot: Any) -> int:
    value = time_slot.value if hasattr(time_slot, "value") else str(time_slot)
    return report_config.TIME_SLOT_ORDER.get(value, 99)


# ==================== REPORT STRUCTURES ====================

@dataclass
class ReportRow:
    """One medicine's line in the daily report"""
    no: str
    slot: str
    medicine_no: int
    name: str
    dosage: Optional[str]
    scheduled: str
    taken: str
    status: str
    schedule_vs_taken: str = NOT_AVAILABLE
    scheduled_slot_gap: str = NO_GAP
    actual_taken_slot_gap: str = NO_GAP


@dataclass
class DayReport:
    """Ordered rows plus status counts for one day"""
    date: date
    rows: List[ReportRow] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=datetime.now)
    cancelled: bool = False


def build_rows(
    report_date: date,
    medicines: Iterable[models.Medicine],
    logs: Dict[int, models.DailyLog],
    cancel_event: Optional[threading.Event] = None
) -> DayReport:
    """
    Join medicines with their logs for ``report_date`` and compute metrics.

    Name and scheduled time always come from the current definition, not
    from the snapshot stored in the log.
    """
    ordered = sorted(
        medicines,
        key=lambda m: (slot_order(m.time_slot), m.scheduled_time or "", m.medicine_no)
    )

    report = DayReport(date=report_date)
    for idx, med in enumerate(ordered):
        if cancel_event is not None and cancel_event.is_set():
            report.cancelled = True
            logger.warning(f"Report for {report_date} cancelled after {idx} row(s)")
            break

        status, taken_time = resolve_status(logs.get(med.medicine_no))
        taken = taken_time.strftime("%H:%M") if taken_time else None
        slot = med.time_slot.value if hasattr(med.time_slot, "value") else str(med.time_slot)

        row = ReportRow(
            no=f"{idx + 1:02d}",
            slot=slot,
            medicine_no=med.medicine_no,
            name=med.name,
            dosage=med.dosage,
            scheduled=med.scheduled_time,
            taken=taken or NO_GAP,
            status=status.value,
            schedule_vs_taken=schedule_vs_taken(med.scheduled_time, taken)
        )

        if report.rows:
            prev = report.rows[-1]
            row.scheduled_slot_gap = slot_gap(prev.scheduled, row.scheduled)
            if prev.taken != NO_GAP and row.taken != NO_GAP:
                row.actual_taken_slot_gap = slot_gap(prev.taken, row.taken)

        report.rows.append(row)

    report.summary = {
        "taken": sum(1 for r in report.rows if r.status == DoseStatus.TAKEN.value),
        "missed": sum(1 for r in report.rows if r.status == DoseStatus.MISSED.value),
        "pending": sum(1 for r in report.rows if r.status == DoseStatus.PENDING.value),
        "total": len(report.rows),
    }
    return report


def report_to_dict(report: DayReport) -> Dict[str, Any]:
    """JSON-shaped report for on-screen display"""
    return {
        "date": report.date.isoformat(),
        "rows": [asdict(row) for row in report.rows],
        "summary": dict(report.summary),
        "generated_at": report.generated_at.isoformat(),
        "cancelled": report.cancelled,
    }


_TABLE_COLUMNS = [
    ("No.", "no", 4),
    ("Slot", "slot", 8),
    ("Medicine Name", "name", 20),
    ("Scheduled", "scheduled", 10),
    ("Taken", "taken", 6),
    ("Status", "status", 8),
    ("Schedule vs Taken", "schedule_vs_taken", 18),
    ("Scheduled Slot Gap", "scheduled_slot_gap", 19),
    ("Actual Taken Slot Gap", "actual_taken_slot_gap", 21),
]


def render_table(report: DayReport, app_name: str = "MedicineTT") -> str:
    """Fixed-column plain text rendering of a report"""
    def _line(values: List[str]) -> str:
        cells = []
        for value, (_, _, width) in zip(values, _TABLE_COLUMNS):
            text = str(value)
            if len(text) > width:
                text = text[:width - 1] + "~"
            cells.append(text.ljust(width))
        return " ".join(cells).rstrip()

    header = _line([title for title, _, _ in _TABLE_COLUMNS])
    lines = [
        app_name,
        "Daily Medicine Report",
        f"Date: {report.date.isoformat()}",
        "",
        header,
        "-" * len(header),
    ]
    for row in report.rows:
        lines.append(_line([getattr(row, key) for _, key, _ in _TABLE_COLUMNS]))

    summary = report.summary
    lines.extend([
        "",
        f"Summary: Taken: {summary.get('taken', 0)} | Missed: {summary.get('missed', 0)} "
        f"| Pending: {summary.get('pending', 0)}",
        f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')} | {app_name} System",
    ])
    return "\n".join(lines) + "\n"


class ReportService:
    """
    Service for building daily adherence reports
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

    async def build_report(
        self,
        target_date: Optional[date] = None,
        cancel_event: Optional[threading.Event] = None,
        db: Optional[Session] = None
    ) -> DayReport:
        """
        Build the report for a day (default: today)

        Args:
            target_date: Day to report on
            cancel_event: Checked between rows; a set event stops early
            db: Database session

        Returns:
            DayReport with ordered rows and summary counts

        Raises:
            NoDataError: the registry is empty
        """
        report_date = target_date or self.clock().date()

        def _build(session: Session) -> DayReport:
            medicines = self.medicines.all_medicines(session)
            if not medicines:
                raise NoDataError("No medicines data available to generate report")

            logs = self.log_store.logs_for_date(session, report_date)
            report = build_rows(report_date, medicines, logs, cancel_event)

            logger.info(
                f"Built report for {report_date}: {report.summary['taken']} taken, "
                f"{report.summary['missed']} missed, {report.summary['pending']} pending"
            )
            return report

        if db:
            return _build(db)

        with get_db_context() as session:
            return _build(session)


# Singleton instance
report_service = ReportService()
