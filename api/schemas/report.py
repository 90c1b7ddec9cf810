"""
Report Schemas
Pydantic models for daily report and sweep API requests and responses
"""

from typing import Optional, List, Dict
from datetime import datetime, date as date_type
from pydantic import BaseModel, Field


# ==================== REQUEST SCHEMAS ====================

class ReportRequest(BaseModel):
    """Day to report on; today when omitted"""
    date: Optional[date_type] = None


class SweepRequest(BaseModel):
    """Day to sweep; today when omitted"""
    date: Optional[date_type] = None


# ==================== RESPONSE SCHEMAS ====================

class ReportRowResponse(BaseModel):
    """One row of the daily report"""
    no: str
    slot: str
    medicine_no: int
    name: str
    dosage: Optional[str] = None
    scheduled: str
    taken: str
    status: str
    schedule_vs_taken: str
    scheduled_slot_gap: str
    actual_taken_slot_gap: str


class ReportSummary(BaseModel):
    """Status counts"""
    taken: int = 0
    missed: int = 0
    pending: int = 0
    total: int = 0


class DayReportResponse(BaseModel):
    """Report data for on-screen display"""
    date: date_type
    rows: List[ReportRowResponse]
    summary: ReportSummary
    generated_at: datetime
    cancelled: bool = False


class ReportExportResponse(BaseModel):
    """Where a generated report was written"""
    date: date_type
    files: Dict[str, str]
    summary: ReportSummary


class SweepResponse(BaseModel):
    """Outcome of a missed sweep"""
    date: date_type
    created: List[int] = Field(default_factory=list)
    flipped: List[int] = Field(default_factory=list)
    untouched: List[int] = Field(default_factory=list)
    failed: List[int] = Field(default_factory=list)
    cancelled: bool = False
