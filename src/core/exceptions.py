class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class SubmissionInProgressError(DomainError):
    """Exception raised when a submit arrives while an upload is still in flight."""

    pass
