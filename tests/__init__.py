"""
MedicineTT Test Suite
=====================

This package contains all tests for the MedicineTT adherence tracker.

Test Structure:
- test_api/: API endpoint tests for FastAPI routes
- test_services/: Registry, log store, adherence and report logic
- test_tools/: Daily trigger, report export and command parsing
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_services/

    # Run only marked tests
    pytest -m "api"
    pytest -m "database"
"""

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

__all__ = [
    "TEST_DATABASE_URL",
]
