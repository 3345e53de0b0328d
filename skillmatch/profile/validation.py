"""Input validation for profile edits and uploads.

Runs before any artifact is written or a transaction begins.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from skillmatch.errors import ValidationFailed
from skillmatch.models import ExperienceLevel


class ProfileUpdate(BaseModel):
    """Editable profile fields. Omitted or null fields keep their value; blank strings clear it."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    job_title: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    profile_summary: Optional[str] = Field(default=None, max_length=500)
    professional_summary: Optional[str] = Field(default=None, max_length=5000)
    # Form posts send an emptied number input as ""
    years_of_experience: Optional[Union[Annotated[int, Field(ge=0, le=70)], Literal[""]]] = None
    experience_level: Optional[Union[ExperienceLevel, Literal[""]]] = None
    primary_industry: Optional[str] = Field(default=None, max_length=255)
    website_url: Optional[str] = Field(default=None, max_length=512)
    linkedin_url: Optional[str] = Field(default=None, max_length=512)
    github_url: Optional[str] = Field(default=None, max_length=512)

    @field_validator("experience_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("years_of_experience", mode="before")
    @classmethod
    def _strip_years(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("website_url", "linkedin_url", "github_url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be an http(s) URL")
        return value

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually supplied, with blank strings mapped to None."""
        data = self.model_dump(exclude_none=True)
        return {key: (None if value == "" else value) for key, value in data.items()}


def _format_errors(exc: ValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ("unknown",)
        # Union members add their own suffix to the location; report the field only
        field = str(loc[0])
        errors.append({"field": field, "message": err.get("msg", "Invalid value")})
    return errors


def parse_profile_update(fields: dict | ProfileUpdate | None) -> ProfileUpdate:
    """Validate raw profile fields, raising ValidationFailed with per-field messages."""
    if isinstance(fields, ProfileUpdate):
        return fields
    try:
        return ProfileUpdate.model_validate(fields or {})
    except ValidationError as e:
        raise ValidationFailed("Invalid profile fields", _format_errors(e)) from e


@dataclass(frozen=True)
class UploadedFile:
    """Materialized upload handed over by the request layer."""

    content: bytes
    filename: str
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


def validate_upload(
    upload: UploadedFile,
    allowed_types: dict[str, str],
    max_bytes: int,
    field: str = "file",
) -> str:
    """Check size and type of an upload and return the extension to store it under."""
    if upload is None or not upload.content:
        raise ValidationFailed.for_field(field, "Please upload a file")

    if upload.size > max_bytes:
        raise ValidationFailed.for_field(
            field, f"File too large: {upload.size} bytes (limit {max_bytes} bytes)"
        )

    ext = PurePosixPath(upload.filename or "").suffix.lower()
    allowed_exts = {e.lower() for e in allowed_types.values()}
    # JPEG has two common spellings
    if ".jpg" in allowed_exts:
        allowed_exts.add(".jpeg")

    if upload.content_type:
        content_type = upload.content_type.split(";")[0].strip().lower()
        if content_type not in allowed_types:
            raise ValidationFailed.for_field(field, f"Invalid file type: {content_type}")
        return ext if ext in allowed_exts else allowed_types[content_type]

    if ext not in allowed_exts:
        raise ValidationFailed.for_field(field, f"Invalid file type: {ext or 'no extension'}")
    return ext


class _DatedEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    location: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None
    description: Optional[str] = None
    achievements: Optional[str] = None


class ExperienceInput(_DatedEntry):
    company_name: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    responsibilities: Optional[str] = None


class EducationInput(_DatedEntry):
    institution_name: Optional[str] = Field(default=None, max_length=255)
    degree: Optional[str] = Field(default=None, max_length=255)
    field_of_study: Optional[str] = Field(default=None, max_length=255)


def parse_entry(model: type[BaseModel], data: dict | BaseModel | None):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise ValidationFailed("Invalid entry fields", _format_errors(e)) from e


def require_fields(entry: BaseModel, names: tuple[str, ...], message: str):
    missing = [name for name in names if not getattr(entry, name)]
    if missing:
        raise ValidationFailed(message, [{"field": name, "message": "This field is required."} for name in missing])


def resolve_period(
    start_date: date,
    end_date: Optional[date],
    is_current: Optional[bool],
    current_label: str,
) -> Optional[date]:
    """Return the end date to store for a dated entry.

    Current entries never carry an end date. An entry explicitly marked as
    not current needs one, and it cannot precede the start date.
    """
    if is_current:
        return None
    if end_date is None:
        if is_current is False:
            raise ValidationFailed.for_field("end_date", f"End date is required if not {current_label}.")
        return None
    if end_date < start_date:
        raise ValidationFailed.for_field("end_date", "End date cannot be before start date.")
    return end_date
