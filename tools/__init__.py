"""
Tools Package
Timer, export and command parsing utilities for the MedicineTT system
"""

from .scheduler import (
    DailyTrigger,
    ScheduledJob,
    next_fire,
    build_daily_trigger
)

from .report_exporter import (
    ReportExporter,
    report_exporter
)

from .voice_commands import (
    IntentType,
    VoiceIntent,
    parse_command
)

__all__ = [
    # Scheduler
    "DailyTrigger",
    "ScheduledJob",
    "next_fire",
    "build_daily_trigger",

    # Report Exporter
    "ReportExporter",
    "report_exporter",

    # Voice Commands
    "IntentType",
    "VoiceIntent",
    "parse_command"
]
