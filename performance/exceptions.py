# performance/exceptions.py
"""
Error taxonomy of the appraisal engine.

Every error carries a stable `code`, a human message, optional `details`
and the HTTP status the JSON views answer with.
"""
from __future__ import annotations

from typing import Any, Optional


class AppraisalError(Exception):
    code = "appraisal_error"
    status_code = 400

    def __init__(self, message: str = "", *, details: Optional[dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(AppraisalError):
    """Malformed input: date ordering, missing fields, weight sums."""
    code = "validation_error"

    @classmethod
    def from_django(cls, exc) -> "ValidationError":
        if hasattr(exc, "message_dict"):
            details = {k: [str(m) for m in v] for k, v in exc.message_dict.items()}
            message = "; ".join(f"{k}: {' '.join(v)}" for k, v in details.items())
        else:
            details = {}
            message = " ".join(str(m) for m in exc.messages)
        return cls(message, details=details)


class EmptyTargetError(ValidationError):
    code = "empty_target"


class InvalidStateError(AppraisalError):
    code = "invalid_state"
    status_code = 409

    def __init__(self, message: str = "", *, current=None, expected=None, details=None):
        details = dict(details or {})
        if current is not None:
            details["current"] = str(current)
        if expected is not None:
            details["expected"] = [str(e) for e in expected] if isinstance(expected, (list, tuple, set, frozenset)) else str(expected)
        super().__init__(message, details=details)
        self.current = current
        self.expected = expected


class InvalidTransitionError(InvalidStateError):
    code = "invalid_transition"


class NotPublishedError(InvalidStateError):
    code = "not_published"


class NotFoundError(AppraisalError):
    code = "not_found"
    status_code = 404


class ConflictError(AppraisalError):
    code = "conflict"
    status_code = 409


class DuplicateDisputeError(ConflictError):
    code = "duplicate_dispute"


class PermissionDeniedError(AppraisalError):
    """Role gate failure."""
    code = "permission_denied"
    status_code = 403
