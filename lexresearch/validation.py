"""Request validation.

``validate_request`` is the only fail-fast stage of the pipeline: it raises
``lexresearch.errors.ValidationError`` naming the offending field. The
advisory ``assess_request`` never fails a request; it returns warnings and
rough cost estimates for the surrounding layer to display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Union

import pydantic
import structlog
from pydantic.alias_generators import to_snake

from lexresearch.errors import ValidationError
from lexresearch.models import ResearchRequest

logger = structlog.get_logger(__name__)

QUERY_MIN_LENGTH = 3
QUERY_MAX_LENGTH = 1000
MAX_JURISDICTIONS = 10
MAX_LEGAL_AREAS = 5
MAX_RESULTS_LIMIT = 100

_FIELD_HINTS = {
    "query": "Provide a more specific search query (3-1000 characters)",
    "jurisdictions": "Select 1-10 valid jurisdictions from the supported list",
    "legal_areas": "Choose 1-5 relevant legal practice areas",
    "document_types": "Select at least one supported document type",
    "languages": "Select supported languages or omit to default to English",
    "max_results": "Set max_results between 1 and 100",
    "confidence_threshold": "Set confidence_threshold between 0 and 1",
    "date_range": "Ensure the date range start is not after its end",
}


def validation_suggestions(fields: List[str]) -> List[str]:
    """Map failing fields to user-facing hints, without duplicates."""
    hints: List[str] = []
    for name in fields:
        hint = _FIELD_HINTS.get(name, f"Check the {name} field")
        if hint not in hints:
            hints.append(hint)
    return hints


def _field_from_error(error: Mapping[str, Any]) -> str:
    loc = error.get("loc") or ()
    if not loc:
        return "request"
    return to_snake(str(loc[0]))


def _check_invariants(request: ResearchRequest) -> None:
    if not QUERY_MIN_LENGTH <= len(request.query.strip()) <= QUERY_MAX_LENGTH:
        raise ValidationError("query", "Query must be between 3 and 1000 characters long")
    if not 1 <= len(request.jurisdictions) <= MAX_JURISDICTIONS:
        raise ValidationError("jurisdictions", "Between 1 and 10 jurisdictions must be specified")
    if not 1 <= len(request.legal_areas) <= MAX_LEGAL_AREAS:
        raise ValidationError("legal_areas", "Between 1 and 5 legal areas must be specified")
    if not request.document_types:
        raise ValidationError("document_types", "At least one document type must be specified")
    if not request.languages:
        raise ValidationError("languages", "At least one language must be specified")
    if not 1 <= request.max_results <= MAX_RESULTS_LIMIT:
        raise ValidationError("max_results", "max_results must be between 1 and 100")
    if not 0.0 <= request.confidence_threshold <= 1.0:
        raise ValidationError("confidence_threshold", "confidence_threshold must be between 0 and 1")
    if request.date_range and request.date_range.date_from > request.date_range.date_to:
        raise ValidationError("date_range", "Date range start must not be after its end")


def validate_request(payload: Union[ResearchRequest, Mapping[str, Any]]) -> ResearchRequest:
    """Validate a request, returning the typed model.

    Args:
        payload: A ``ResearchRequest`` or a transport-deserialised mapping
            (snake_case or camelCase keys).

    Raises:
        ValidationError: carrying the name of the first offending field.
    """
    if isinstance(payload, ResearchRequest):
        request = payload
    else:
        try:
            request = ResearchRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            errors = e.errors()
            fields = [_field_from_error(err) for err in errors]
            first = errors[0] if errors else {}
            logger.info("Research request rejected", fields=fields)
            raise ValidationError(
                fields[0] if fields else "request",
                str(first.get("msg", "Invalid research request")),
                {"fields": fields, "suggestions": validation_suggestions(fields)},
            ) from e

    _check_invariants(request)
    return request


@dataclass
class RequestAssessment:
    """Advisory view of how expensive a valid request is likely to be."""

    warnings: List[str] = field(default_factory=list)
    estimated_results: int = 50
    estimated_time_ms: int = 3000


def assess_request(request: ResearchRequest) -> RequestAssessment:
    """Apply the advisory business rules to a validated request."""
    warnings: List[str] = []
    estimated_results = 50.0
    estimated_time = 3000

    if len(request.jurisdictions) > 5:
        warnings.append("Large number of jurisdictions may slow down search")
        estimated_time += len(request.jurisdictions) * 500

    if request.max_results > 50:
        warnings.append("High result count may increase processing time")
        estimated_time += (request.max_results - 50) * 100

    if not request.semantic_search:
        warnings.append("Disabling semantic search may reduce result quality")
        estimated_results *= 0.7

    if request.include_analysis:
        warnings.append("Analysis generation will increase processing time")
        estimated_time += 2000

    return RequestAssessment(
        warnings=warnings,
        estimated_results=round(estimated_results),
        estimated_time_ms=estimated_time,
    )
