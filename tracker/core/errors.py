"""Error taxonomy shared by every service.

Each error carries a stable machine-readable ``code``, the HTTP status the
boundary should answer with, and whether resubmitting the same request can
succeed (``retryable``). The FastAPI exception handler in tracker.main
renders them as::

    {"error": {"code": "...", "message": "...", "retryable": false, ...}}

Extra keyword arguments passed to the constructor end up in ``details`` and
are rendered alongside the code.
"""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    code = "internal_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


# --- Validation (malformed input; the client must correct it) ---


class ValidationError(TrackerError):
    code = "validation_error"
    status_code = 422


class InvalidProjectTypeError(ValidationError):
    code = "invalid_project_type"


class InvalidStatusError(ValidationError):
    code = "invalid_status"


class PercentageOutOfRangeError(ValidationError):
    code = "percentage_out_of_range"


# --- Conflicts ---


class ConflictError(TrackerError):
    code = "conflict"
    status_code = 409
    retryable = True


class DuplicateSingletonError(ConflictError):
    code = "duplicate_singleton"
    # The singleton exists; resubmitting cannot succeed.
    retryable = False


class IdentifierConflictError(ConflictError):
    """Allocation kept losing the race for the next identifier."""

    code = "identifier_conflict"


class IdentifierTakenError(Exception):
    """Raised by repos when (curriculum_id, identifier) is already used.

    Internal signal for the allocator's retry loop, never surfaced.
    """

    def __init__(self, curriculum_id: Any, identifier: str) -> None:
        super().__init__(f"identifier {identifier!r} already used in {curriculum_id}")
        self.curriculum_id = curriculum_id
        self.identifier = identifier


# --- Dependency rules ---


class DependencyError(TrackerError):
    code = "dependency_error"
    status_code = 422


class UnknownPrerequisiteError(DependencyError):
    code = "unknown_prerequisite"


class OutOfOrderPrerequisiteError(DependencyError):
    code = "out_of_order_prerequisite"


class HasDependentsError(DependencyError):
    code = "has_dependents"
    status_code = 409


# --- Missing records ---


class NotFoundError(TrackerError):
    code = "not_found"
    status_code = 404


class CurriculumNotFoundError(NotFoundError):
    code = "curriculum_not_found"


class ProjectNotFoundError(NotFoundError):
    code = "project_not_found"


class NoteNotFoundError(NotFoundError):
    code = "note_not_found"


# --- Storage ---


class StorageError(TrackerError):
    code = "storage_error"
    status_code = 503
    retryable = True


class StorageTimeoutError(StorageError):
    code = "storage_timeout"
