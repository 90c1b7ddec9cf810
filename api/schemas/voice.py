"""
Voice Schemas
Pydantic models for the text command endpoint
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class VoiceCommandRequest(BaseModel):
    """Recognized (and translated) utterance"""
    text: str = Field(..., min_length=1, max_length=500)


class VoiceCommandResponse(BaseModel):
    """Parsed intent and what was done with it"""
    intent: str
    message: str
    result: Optional[Dict[str, Any]] = None
