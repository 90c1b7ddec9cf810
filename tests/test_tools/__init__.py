"""
Test Tools Package
Tests for the tools module (daily trigger, report exporter, voice commands)
"""

__all__ = [
    "test_scheduler",
    "test_report_exporter",
    "test_voice_commands",
]
