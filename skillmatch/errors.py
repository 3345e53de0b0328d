"""Typed failures raised by the profile and document services."""

from dataclasses import dataclass


class ProfileEngineError(Exception):
    """Base class for every failure that crosses the service boundary."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ProfileEngineError):
    """Profile, document or entry is absent or not owned by the caller."""

    status_code = 404


class ValidationFailed(ProfileEngineError):
    """Malformed field, oversized file or disallowed file type."""

    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(message, [{"field": field, "message": message}])


class StorageUnavailable(ProfileEngineError):
    """Artifact store or database could not be reached."""

    status_code = 503


class TransactionConflict(ProfileEngineError):
    """Commit failed because of a concurrent modification."""

    status_code = 409


@dataclass(frozen=True)
class PartialCleanupFailure:
    """Informational record: an artifact could not be removed after the fact.

    Never raised. The primary outcome of the operation stands regardless.
    """

    locator: str
    reason: str
