class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class MalformedEventError(ValidationError):
    """Raised when a raw device payload cannot be turned into an event."""


class DataIntegrityError(DomainError):
    """Raised when stored attendance breaks the one-open-session rule.

    Needs operator remediation; never auto-resolved.
    """


class OpenSessionExistsError(DomainError):
    """Store refused a second open session (or a replayed event id) for a worker."""


class SessionAlreadyClosedError(DomainError):
    """Store found the session already closed when writing the check-out."""


class StoreUnavailableError(Exception):
    """Transient storage failure (network, timeout). Callers may retry."""
