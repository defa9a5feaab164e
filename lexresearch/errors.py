"""Error taxonomy for the legal research engine.

Only ``ValidationError`` and ``PipelineFailure`` ever reach the caller of
``research()``. ``CollaboratorFailure`` and ``CacheFailure`` are raised by
collaborator clients and are always caught at their call sites, where the
pipeline degrades instead of aborting.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ResearchError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Structured form handed to the surrounding request layer."""
        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class ValidationError(ResearchError):
    """The request violates an input invariant. Raised before any work."""

    def __init__(self, field: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload


class CollaboratorFailure(ResearchError):
    """A source adapter or the text-completion collaborator failed or timed out."""

    def __init__(self, collaborator: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.collaborator = collaborator


class CacheFailure(ResearchError):
    """The cache store could not be read or written."""


class PipelineFailure(ResearchError):
    """Unexpected internal failure in deduplication, ranking or aggregation."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Research pipeline failed at stage {stage}", {"stage": stage})
        self.stage = stage
        self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        # Internal state stays in the logs.
        return {"error": "PipelineFailure", "message": "Internal research failure", "details": {}}


class DeadlineExceeded(ResearchError):
    """The caller-supplied deadline elapsed before the pipeline finished."""

    def __init__(self, deadline_seconds: float):
        super().__init__(
            f"Research did not complete within {deadline_seconds:g}s",
            {"deadline_seconds": deadline_seconds},
        )
        self.deadline_seconds = deadline_seconds
