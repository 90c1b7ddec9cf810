"""
Medicines API Router
Endpoints for the medicine registry and daily dose status
"""

from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.medicine import (
    MedicineCreate,
    MedicineUpdate,
    TakenTimeUpdate,
    MedicineResponse,
    MedicineStatus,
    DailyLogResponse,
    MedicineMessage,
    DailyLogMessage,
    MedicineDeleted,
    SeedResponse,
)


router = APIRouter(prefix="/medicines", tags=["medicines"])


@router.get("/", response_model=List[MedicineStatus])
async def list_medicines_with_status(db: Session = Depends(get_db)):
    """
    All medicines with today's status (PENDING when nothing is logged yet)
    """
    adherence_service = services.get_adherence_service()

    view = await adherence_service.derive_today_view(db=db)
    return [MedicineStatus(**dose.to_dict()) for dose in view]


@router.post("/", response_model=MedicineMessage, status_code=status.HTTP_201_CREATED)
async def create_medicine(
    medicine_data: MedicineCreate,
    db: Session = Depends(get_db)
):
    """
    Add a medicine to the registry

    - **name**: Medicine name
    - **scheduled_time**: Time of day (HH:MM)
    - **time_slot**: Morning, Noon, Evening or Night
    - **frequency**: Daily or Weekly
    """
    medicine_service = services.get_medicine_service()

    medicine = await medicine_service.add_medicine(
        name=medicine_data.name,
        scheduled_time=medicine_data.scheduled_time,
        time_slot=medicine_data.time_slot.value,
        frequency=medicine_data.frequency.value,
        dosage=medicine_data.dosage,
        db=db
    )
    return MedicineMessage(
        message="Medicine created",
        medicine=MedicineResponse.model_validate(medicine)
    )


@router.post("/seed", response_model=SeedResponse)
async def seed_medicines(db: Session = Depends(get_db)):
    """
    Replace the registry with the sample medicines
    """
    medicine_service = services.get_medicine_service()

    medicines = await medicine_service.seed_medicines(db=db)
    return SeedResponse(
        message="Medicines seeded",
        medicines=[MedicineResponse.model_validate(m) for m in medicines]
    )


@router.get("/{medicine_no}", response_model=MedicineResponse)
async def get_medicine(
    medicine_no: int = Path(..., ge=1),
    db: Session = Depends(get_db)
):
    """
    Get a single registry entry
    """
    medicine_service = services.get_medicine_service()

    medicine = await medicine_service.get_medicine(medicine_no, db=db)
    return MedicineResponse.model_validate(medicine)


@router.patch("/{medicine_no}", response_model=MedicineMessage)
async def update_medicine(
    update_data: MedicineUpdate,
    medicine_no: int = Path(..., ge=1),
    db: Session = Depends(get_db)
):
    """
    Partially update a medicine; reports pick up the new name and time
    """
    medicine_service = services.get_medicine_service()

    updates = update_data.model_dump(exclude_unset=True, mode="json")
    medicine = await medicine_service.update_medicine(medicine_no, updates, db=db)
    return MedicineMessage(
        message="Medicine updated",
        medicine=MedicineResponse.model_validate(medicine)
    )


@router.delete("/{medicine_no}", response_model=MedicineDeleted)
async def delete_medicine(
    medicine_no: int = Path(..., ge=1),
    db: Session = Depends(get_db)
):
    """
    Delete a medicine and all of its daily logs
    """
    medicine_service = services.get_medicine_service()

    removed = await medicine_service.delete_medicine(medicine_no, db=db)
    return MedicineDeleted(
        message=f"Medicine {medicine_no} deleted",
        medicine_no=medicine_no,
        logs_removed=removed
    )


@router.post("/{medicine_no}/complete", response_model=DailyLogMessage)
async def mark_medicine_taken(
    medicine_no: int = Path(..., ge=1),
    db: Session = Depends(get_db)
):
    """
    Mark today's dose as taken now (voice command path).
    A second call on the same day is rejected.
    """
    adherence_service = services.get_adherence_service()

    log = await adherence_service.mark_taken(medicine_no, db=db)
    return DailyLogMessage(
        message=f"Medicine {medicine_no} marked as TAKEN",
        log=DailyLogResponse.model_validate(log)
    )


@router.post("/{medicine_no}/taken", response_model=DailyLogMessage)
async def set_taken_time(
    medicine_no: int = Path(..., ge=1),
    taken_data: Optional[TakenTimeUpdate] = Body(None),
    db: Session = Depends(get_db)
):
    """
    Set the taken time explicitly (manual correction). Overwrites an
    existing TAKEN entry.

    - **taken_time**: ISO timestamp, defaults to now
    - **date**: Day of the log (YYYY-MM-DD), defaults to today
    """
    adherence_service = services.get_adherence_service()
    taken_data = taken_data or TakenTimeUpdate()

    log = await adherence_service.set_taken_time(
        medicine_no,
        taken_time=taken_data.taken_time,
        target_date=taken_data.date,
        db=db
    )
    return DailyLogMessage(
        message="Taken time updated",
        log=DailyLogResponse.model_validate(log)
    )
