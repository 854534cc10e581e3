"""
Case Engine - Error Taxonomy

ValidationError and NotFoundError propagate to the caller.
UpstreamError covers render/store/deliver failures and is always caught
at the delivery boundary.
"""
from typing import Any, Dict, Optional


class CaseEngineError(Exception):
    """Base class for all case engine errors."""

    error_type = "CASE_ENGINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CaseEngineError):
    """Malformed input: bad stage number, missing identifier, wrong field type."""

    error_type = "VALIDATION_ERROR"


class NotFoundError(CaseEngineError):
    """Case or tracking record absent where one is required."""

    error_type = "NOT_FOUND"


class UpstreamError(CaseEngineError):
    """Rendering, storage or delivery collaborator failed."""

    error_type = "UPSTREAM_ERROR"

    def __init__(self, operation: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        return result
