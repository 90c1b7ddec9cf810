"""
Service Errors
Domain exceptions raised by the registry, adherence engine and report builder
"""


class AdherenceError(Exception):
    """Base class for errors surfaced to callers of the services"""

    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AdherenceError):
    """Unknown medicine number"""
    status_code = 404


class AlreadyTakenError(AdherenceError):
    """Medicine was already marked taken for the day"""
    status_code = 409


class NoDataError(AdherenceError):
    """Registry is empty, nothing to report on"""
    status_code = 400


class ValidationError(AdherenceError):
    """Malformed time string or missing required field"""
    status_code = 422


class StoreError(AdherenceError):
    """Transient persistence failure; the caller may retry"""
    status_code = 503
    retryable = True
