"""
Reports API Router
Endpoints for daily adherence reports and the missed sweep
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.report import (
    ReportRequest,
    SweepRequest,
    DayReportResponse,
    ReportExportResponse,
    ReportSummary,
    SweepResponse,
)
from services.report_service import report_to_dict


router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/data", response_model=DayReportResponse)
async def get_report_data(
    request: Optional[ReportRequest] = Body(None),
    db: Session = Depends(get_db)
):
    """
    Report rows and summary for a day (default: today), for on-screen display

    - **date**: Day to report on (YYYY-MM-DD)
    """
    report_service = services.get_report_service()
    target_date = request.date if request else None

    report = await report_service.build_report(target_date=target_date, db=db)
    return DayReportResponse(**report_to_dict(report))


@router.post("/generate", response_model=ReportExportResponse)
async def generate_report(
    request: Optional[ReportRequest] = Body(None),
    db: Session = Depends(get_db)
):
    """
    Build the report for a day and write it to the reports directory
    """
    report_service = services.get_report_service()
    exporter = services.get_report_exporter()
    target_date = request.date if request else None

    report = await report_service.build_report(target_date=target_date, db=db)
    paths = exporter.export(report)
    return ReportExportResponse(
        date=report.date,
        files={kind: str(path) for kind, path in paths.items()},
        summary=ReportSummary(**report.summary)
    )


@router.post("/sweep", response_model=SweepResponse)
async def run_missed_sweep(
    request: Optional[SweepRequest] = Body(None),
    db: Session = Depends(get_db)
):
    """
    Run the missed sweep on demand. Safe to repeat: only absent or
    PENDING logs are changed.
    """
    adherence_service = services.get_adherence_service()
    target_date = request.date if request else None

    result = await adherence_service.run_missed_sweep(target_date=target_date, db=db)
    return SweepResponse(**result.to_dict())
