"""
Form sanitization and validation for create/update requests.

Submitted fields are first prepared (trimmed, genre normalized to a list),
then validated by a pydantic form model. Every field is checked; within one
field the first failing rule supplies the message.
"""

import re
from datetime import date, timezone
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .models import BookInstanceStatus

ALPHANUMERIC = re.compile(r"^[0-9A-Za-z]+$")

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})


def trim(value: Any) -> str:
    """Coerce a submitted value to a stripped string; None becomes ''."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else ""
    return str(value).strip()


def escape(value: str) -> str:
    """Replace HTML-significant characters with entities."""
    return value.translate(_HTML_ESCAPES)


def parse_iso_date(value: str) -> Optional[date]:
    """
    Parse an ISO-8601 date or datetime string; None when it is not one.

    Reduced precision (YYYY, YYYY-MM) is accepted. Values with an offset are
    converted to UTC before the date is taken.
    """
    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def echo_date(value: str) -> str:
    """Render submitted date input for echoing: normalized when it parses, as given otherwise."""
    parsed = parse_iso_date(value) if value else None
    return parsed.strftime("%Y-%m-%d") if parsed else value


def normalize_list(value: Any) -> List[str]:
    """Absent becomes [], a scalar becomes a one-element list, a list is kept."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("form_field", message)


class CatalogForm(BaseModel):
    """Base form: fields default to empty so every rule runs on missing input."""

    model_config = ConfigDict(validate_default=True, extra="ignore")

    @classmethod
    def prepare(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Trim every declared field of the submitted mapping."""
        return {name: trim(fields.get(name)) for name in cls.model_fields}

    @classmethod
    def check(cls, data: Dict[str, Any]) -> Tuple[Optional["CatalogForm"], Dict[str, str]]:
        """
        Validate prepared data.

        Returns:
            (form, {}) on success, (None, {field: message}) on failure
        """
        try:
            return cls.model_validate(data), {}
        except ValidationError as e:
            errors: Dict[str, str] = {}
            for error in e.errors():
                field_name = str(error["loc"][0]) if error["loc"] else "form"
                errors.setdefault(field_name, error["msg"])
            return None, errors


class AuthorForm(CatalogForm):
    name_labels: ClassVar[Dict[str, str]] = {
        "first_name": "First name",
        "last_name": "Last name",
    }

    first_name: str = ""
    last_name: str = ""
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    @classmethod
    def prepare(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Trim as usual, except that a name made only of whitespace is kept
        as submitted: it counts as present and fails the alphanumeric rule.
        """
        data = super().prepare(fields)
        for name in cls.name_labels:
            raw = fields.get(name)
            if isinstance(raw, str) and raw and not data[name]:
                data[name] = raw
        return data

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def check_name(cls, v, info: ValidationInfo):
        label = cls.name_labels[info.field_name]
        if not v:
            raise _fail(f"{label} must be specified.")
        if not ALPHANUMERIC.match(v):
            raise _fail(f"{label} has non-alphanumeric characters.")
        return escape(v)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def check_date_of_birth(cls, v):
        parsed = parse_iso_date(v) if v else None
        if parsed is None:
            raise _fail("Invalid date of birth")
        return parsed

    @field_validator("date_of_death", mode="before")
    @classmethod
    def check_date_of_death(cls, v):
        if not v:
            return None
        parsed = parse_iso_date(v)
        if parsed is None:
            raise _fail("Invalid date of death")
        return parsed


class AuthorUpdateForm(AuthorForm):
    name_labels: ClassVar[Dict[str, str]] = {
        "first_name": "First name",
        "last_name": "last name",
    }


class BookForm(CatalogForm):
    messages: ClassVar[Dict[str, str]] = {
        "title": "Title must not be empty.",
        "summary": "Summary must not be empty.",
        "author": "Select an author",
        "isbn": "ISBN must not be empty",
    }

    title: str = ""
    summary: str = ""
    author: str = ""
    isbn: str = ""
    genre: List[str] = []

    @classmethod
    def prepare(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = super().prepare(fields)
        data["genre"] = normalize_list(fields.get("genre"))
        return data

    @field_validator("title", "summary", "author", "isbn", mode="before")
    @classmethod
    def check_required(cls, v, info: ValidationInfo):
        if not v:
            raise _fail(cls.messages[info.field_name])
        return v


class BookUpdateForm(BookForm):
    messages: ClassVar[Dict[str, str]] = {
        **BookForm.messages,
        "author": "Author must not be empty.",
    }


class GenreForm(CatalogForm):
    min_length: ClassVar[int] = 2
    message: ClassVar[str] = "Genre name required and min length 2"

    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, v):
        if len(v) < cls.min_length:
            raise _fail(cls.message)
        return escape(v)


class GenreUpdateForm(GenreForm):
    min_length: ClassVar[int] = 1
    message: ClassVar[str] = "Genre name required"


class BookInstanceForm(CatalogForm):
    book: str = ""
    imprint: str = ""
    status: BookInstanceStatus = BookInstanceStatus.MAINTENANCE
    due_back: Optional[date] = None

    @field_validator("book", mode="before")
    @classmethod
    def check_book(cls, v):
        if not v:
            raise _fail("Book must be specified")
        return escape(v)

    @field_validator("imprint", mode="before")
    @classmethod
    def check_imprint(cls, v):
        if not v:
            raise _fail("Imprint must be specified")
        return escape(v)

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v):
        if not v:
            return BookInstanceStatus.MAINTENANCE
        try:
            return BookInstanceStatus(escape(v))
        except ValueError:
            raise _fail("Invalid status")

    @field_validator("due_back", mode="before")
    @classmethod
    def check_due_back(cls, v):
        if not v:
            return None
        parsed = parse_iso_date(v)
        if parsed is None:
            raise _fail("Invalid date")
        return parsed


class DeleteForm(CatalogForm):
    id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def check_id(cls, v):
        if not v:
            raise _fail("Id must be specified")
        return v
