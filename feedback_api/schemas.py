from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .models import Division, Status


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise be read as 1/0
    if isinstance(value, bool):
        raise ValueError("must be an integer")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


NormalizedEmail = Annotated[EmailStr, BeforeValidator(_normalize_email)]
OptionalText = Annotated[Optional[str], AfterValidator(_blank_to_none)]
Rating = Annotated[int, Field(ge=1, le=5), BeforeValidator(_reject_bool)]


class FeedbackIn(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: NormalizedEmail
    event_name: str = Field(min_length=1, max_length=255)
    division: Division
    rating: Rating
    comment: OptionalText = None
    suggestion: OptionalText = None


class FeedbackUpdate(CamelModel):
    """Partial update; only the keys present in the request body are applied.

    Name and email belong to the submitter and are not editable.
    """

    event_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    division: Optional[Division] = None
    rating: Optional[Rating] = None
    comment: OptionalText = None
    suggestion: OptionalText = None
    status: Optional[Status] = None

    @field_validator("event_name", "division", "rating", "status", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # comment and suggestion are the only nullable columns
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class FeedbackOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    email: str
    event_name: str
    division: Division
    rating: int
    comment: Optional[str] = None
    suggestion: Optional[str] = None
    created_at: datetime
    status: Status

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive timestamps; they are stored in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


def serialize(row) -> dict[str, Any]:
    return FeedbackOut.model_validate(row).model_dump(mode="json", by_alias=True)


def envelope(message: str, data: Any = None, *, success: bool = True, **extra: Any) -> dict[str, Any]:
    """Uniform response body: {success, message, data?, errors?, ...}."""
    body: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
