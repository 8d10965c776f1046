"""Service error hierarchy for generation triggers and reconciliation.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- GenerationError: Base for errors that end a generation run as failed
- TriggerError: The edge function call itself failed (fails fast, no polling)
- GenerationTimeoutError: Polling budget exhausted without a result (fails slow)
- ReportedFailureError: The persisted record explicitly reports failure
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class SubjectNotFoundError(ServiceError):
    """Consultation does not exist (or is not visible to the caller)."""

    pass


# Generation errors
class GenerationError(ServiceError):
    """Base exception for errors that end a generation run as failed."""

    pass


class TriggerError(GenerationError):
    """Edge function rejected the request or could not be reached.

    Examples:
    - Network timeouts and connection errors
    - Authentication failures (401, 403)
    - Edge function returned {"error": "..."} or a 5xx
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationTimeoutError(GenerationError):
    """No result appeared within the polling budget (including the final check)."""

    pass


class ReportedFailureError(GenerationError):
    """Persisted record's status field reports the generation as failed."""

    pass
