"""
Voice API Router
Dispatches parsed text commands to the registry and adherence engine
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.medicine import MedicineResponse, DailyLogResponse
from api.schemas.voice import VoiceCommandRequest, VoiceCommandResponse
from tools.voice_commands import IntentType, HELP_TEXT, parse_command


router = APIRouter(prefix="/voice", tags=["voice"])


@router.post("/command", response_model=VoiceCommandResponse)
async def handle_voice_command(
    command: VoiceCommandRequest,
    db: Session = Depends(get_db)
):
    """
    Handle one recognized utterance:

    - "Medicine 2 completed" marks medicine 2 as taken today
    - "Add medicine Aspirin at 8:30 slot Morning dosage 75mg" adds a medicine
    """
    intent = parse_command(command.text)

    if intent.intent == IntentType.MARK_TAKEN:
        adherence_service = services.get_adherence_service()
        log = await adherence_service.mark_taken(intent.medicine_no, db=db)
        return VoiceCommandResponse(
            intent=intent.intent.value,
            message=f"Medicine {intent.medicine_no} marked as TAKEN",
            result=DailyLogResponse.model_validate(log).model_dump(mode="json")
        )

    if intent.intent == IntentType.ADD_MEDICINE:
        medicine_service = services.get_medicine_service()
        medicine = await medicine_service.add_medicine(
            name=intent.name,
            scheduled_time=intent.scheduled_time,
            time_slot=intent.time_slot,
            dosage=intent.dosage,
            db=db
        )
        return VoiceCommandResponse(
            intent=intent.intent.value,
            message=f"Medicine {medicine.medicine_no} ({medicine.name}) added",
            result=MedicineResponse.model_validate(medicine).model_dump(mode="json")
        )

    raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Command not recognized. {HELP_TEXT}"
    )
