"""
Voice Command Parser
Turns recognized (already translated) speech into structured intents
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum


logger = logging.getLogger(__name__)


class IntentType(str, Enum):
    """Kinds of parsed command"""
    MARK_TAKEN = "mark_taken"
    ADD_MEDICINE = "add_medicine"
    UNRECOGNIZED = "unrecognized"


@dataclass
class VoiceIntent:
    """Result of parsing one utterance"""
    intent: IntentType
    text: str
    medicine_no: Optional[int] = None
    name: Optional[str] = None
    scheduled_time: Optional[str] = None
    time_slot: Optional[str] = None
    dosage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "text": self.text,
            "medicine_no": self.medicine_no,
            "name": self.name,
            "scheduled_time": self.scheduled_time,
            "time_slot": self.time_slot,
            "dosage": self.dosage,
        }


MARK_TAKEN_PATTERN = re.compile(r"medicine\s+(\d+)\s+(completed|taken)", re.IGNORECASE)
ADD_MEDICINE_PATTERN = re.compile(
    r"add\s+medicine\s+(.+?)\s+at\s+(\d{1,2}:\d{2})"
    r"(?:\s+slot\s+(\w+))?"
    r"(?:\s+dosage\s+(.+))?",
    re.IGNORECASE
)

DEFAULT_TIME_SLOT = "Morning"
HELP_TEXT = 'Try "Medicine <number> completed" or "Add medicine <name> at HH:MM"'


def parse_command(text: str) -> VoiceIntent:
    """
    Recognize one of:

    - ``medicine <n> completed`` / ``medicine <n> taken``
    - ``add medicine <name> at <HH:MM> [slot <slot>] [dosage <text>]``

    Anything else yields an UNRECOGNIZED intent. Slot and time are passed
    through as spoken; the registry validates them.
    """
    text = (text or "").strip()

    match = MARK_TAKEN_PATTERN.search(text)
    if match:
        return VoiceIntent(
            intent=IntentType.MARK_TAKEN,
            text=text,
            medicine_no=int(match.group(1))
        )

    match = ADD_MEDICINE_PATTERN.search(text)
    if match:
        return VoiceIntent(
            intent=IntentType.ADD_MEDICINE,
            text=text,
            name=match.group(1).strip(),
            scheduled_time=match.group(2).strip(),
            time_slot=match.group(3).strip() if match.group(3) else DEFAULT_TIME_SLOT,
            dosage=match.group(4).strip() if match.group(4) else None
        )

    logger.info(f"Unrecognized command: {text!r}")
    return VoiceIntent(intent=IntentType.UNRECOGNIZED, text=text)
