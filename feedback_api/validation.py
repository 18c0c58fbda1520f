"""
Request validation rules and the 400 response for rejected input.

Body rules live on the pydantic schemas; path and query rules are declared
here. Every failure is reported as `{field, message}` so clients never see
pydantic's raw error format.
"""

import logging
from typing import Annotated, Any, Optional

from fastapi import Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .models import Division, Status
from .schemas import envelope

logger = logging.getLogger(__name__)

MAX_ID = 2_147_483_647
MAX_PAGE_SIZE = 100

DIVISIONS = ", ".join(d.value for d in Division)
STATUSES = ", ".join(s.value for s in Status)

LABELS = {
    "name": "Name",
    "email": "Email",
    "eventName": "Event name",
    "division": "Division",
    "rating": "Rating",
    "comment": "Comment",
    "suggestion": "Suggestion",
    "status": "Status",
    "id": "ID",
    "page": "Page",
    "limit": "Limit",
}

INVALID = {
    "name": "Name must be less than 255 characters",
    "email": "Must be a valid email",
    "eventName": "Event name must be less than 255 characters",
    "division": f"Division must be one of: {DIVISIONS}",
    "rating": "Rating must be an integer between 1 and 5",
    "comment": "Comment must be a string",
    "suggestion": "Suggestion must be a string",
    "status": f"Status must be one of: {STATUSES}",
    "id": "ID must be a valid positive integer",
    "page": f"Page must be an integer between 1 and {MAX_ID}",
    "limit": f"Limit must be an integer between 1 and {MAX_PAGE_SIZE}",
}

FeedbackId = Annotated[int, Path(ge=1, le=MAX_ID, description="Feedback ID")]
Page = Annotated[int, Query(ge=1, le=MAX_ID, description="Page number")]
Limit = Annotated[
    int,
    Query(ge=1, le=MAX_PAGE_SIZE, description=f"Items per page (at most {MAX_PAGE_SIZE}; larger values are rejected)"),
]


def feedback_filters(
    status: Annotated[Optional[str], Query(description=f"Filter by status ({STATUSES})")] = None,
    division: Annotated[Optional[str], Query(description=f"Filter by division ({DIVISIONS})")] = None,
) -> dict[str, Any]:
    """Equality filters built from the non-empty query fields."""
    filters: dict[str, Any] = {}
    errors = []
    for key, value, choices in (("status", status, Status), ("division", division, Division)):
        if not value:
            continue
        try:
            filters[key] = choices(value)
        except ValueError:
            errors.append({"type": "enum", "loc": ("query", key), "msg": INVALID[key], "input": value})
    if errors:
        raise RequestValidationError(errors)
    return filters


def _field(loc: tuple) -> str:
    names = [part for part in loc[1:] if isinstance(part, str)]
    return names[0] if names else str(loc[0])


def _is_blank(error: dict) -> bool:
    if error["type"] in ("missing", "string_too_short"):
        return True
    value = error.get("input")
    return value is None or (isinstance(value, str) and not value.strip())


def _message(field: str, error: dict, partial: bool) -> str:
    if field == "body":
        if error["type"] == "json_invalid":
            return "Malformed JSON body"
        if error["type"] == "missing":
            return "Request body is required"
        return "Request body must be a JSON object"
    if field not in LABELS:
        return error.get("msg", "Invalid value")
    if _is_blank(error):
        if partial:
            return f"{LABELS[field]} cannot be empty if provided"
        return f"{LABELS[field]} is required"
    return INVALID[field]


def field_errors(raw_errors, *, partial: bool = False) -> list[dict[str, str]]:
    """One `{field, message}` entry per offending field, in rule order."""
    messages: dict[str, str] = {}
    for error in raw_errors:
        field = _field(tuple(error.get("loc") or ("body",)))
        if field not in messages:
            messages[field] = _message(field, error, partial)
    return [{"field": field, "message": message} for field, message in messages.items()]


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = field_errors(exc.errors(), partial=request.method in ("PUT", "PATCH"))
    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content=envelope("Validation failed", success=False, errors=errors),
    )
