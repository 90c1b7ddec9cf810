"""
Medicine Schemas
Pydantic models for registry and dose status API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date as date_type
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class TimeSlotEnum(str, Enum):
    """Time slot values"""
    MORNING = "Morning"
    NOON = "Noon"
    EVENING = "Evening"
    NIGHT = "Night"


class FrequencyEnum(str, Enum):
    """Frequency values"""
    DAILY = "Daily"
    WEEKLY = "Weekly"


class DoseStatusEnum(str, Enum):
    """Dose status values"""
    PENDING = "PENDING"
    TAKEN = "TAKEN"
    MISSED = "MISSED"


# ==================== REQUEST SCHEMAS ====================

class MedicineCreate(BaseModel):
    """Schema for adding a medicine"""
    name: str = Field(..., min_length=1, max_length=255)
    scheduled_time: str = Field(..., description="HH:MM, 24h")
    time_slot: TimeSlotEnum
    frequency: FrequencyEnum = FrequencyEnum.DAILY
    dosage: Optional[str] = Field(None, max_length=100)


class MedicineUpdate(BaseModel):
    """Schema for a partial medicine update"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    scheduled_time: Optional[str] = None
    time_slot: Optional[TimeSlotEnum] = None
    frequency: Optional[FrequencyEnum] = None
    dosage: Optional[str] = Field(None, max_length=100)


class TakenTimeUpdate(BaseModel):
    """Schema for setting the taken time explicitly"""
    taken_time: Optional[datetime] = None
    date: Optional[date_type] = None


# ==================== RESPONSE SCHEMAS ====================

class MedicineResponse(BaseModel):
    """Registry entry"""
    medicine_no: int
    name: str
    scheduled_time: str
    time_slot: TimeSlotEnum
    frequency: FrequencyEnum
    dosage: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MedicineStatus(BaseModel):
    """Registry entry with its status for today"""
    medicine_no: int
    name: str
    scheduled_time: str
    time_slot: TimeSlotEnum
    frequency: FrequencyEnum
    dosage: Optional[str] = None
    status: DoseStatusEnum
    taken_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DailyLogResponse(BaseModel):
    """Daily log row"""
    date: date_type
    medicine_no: int
    name: str
    scheduled_time: str
    status: DoseStatusEnum
    taken_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MedicineMessage(BaseModel):
    """Message plus the affected medicine"""
    message: str
    medicine: MedicineResponse


class DailyLogMessage(BaseModel):
    """Message plus the affected daily log"""
    message: str
    log: DailyLogResponse


class MedicineDeleted(BaseModel):
    """Result of deleting a medicine"""
    message: str
    medicine_no: int
    logs_removed: int


class SeedResponse(BaseModel):
    """Result of seeding the registry"""
    message: str
    medicines: List[MedicineResponse]
