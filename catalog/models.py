"""
Pydantic models for the catalog entities.
Implements Author, Book, Genre and BookInstance with their derived fields
and the conversion to and from MongoDB documents.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Generate a new entity identifier."""
    return str(ObjectId())


def format_date(value: Optional[date]) -> str:
    """Render a date as YYYY-MM-DD, or an empty string when absent."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def ordinal(day: int) -> str:
    """Return the day of month with its English ordinal suffix (1st, 22nd)."""
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_long_date(value: Optional[date]) -> str:
    """Render a date as e.g. 'June 1st 2021', or an empty string when absent."""
    if value is None:
        return ""
    return f"{value.strftime('%B')} {ordinal(value.day)} {value.year}"


class BookInstanceStatus(str, Enum):
    """Enum for the availability of a physical book copy."""
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


class CatalogEntity(BaseModel):
    """
    Base class for stored catalog entities.

    Subclasses name their MongoDB collection and the path prefix used to
    build the entity url.
    """

    collection: ClassVar[str]
    url_prefix: ClassVar[str]
    date_fields: ClassVar[tuple] = ()

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=new_id, description="Entity identifier")

    @property
    def url(self) -> str:
        return f"{self.url_prefix}/{self.id}"

    def to_document(self) -> Dict[str, Any]:
        """
        Convert to a MongoDB document without the identifier.

        Dates are stored as midnight datetimes.
        """
        doc = self.model_dump(exclude={"id"})
        for field_name in self.date_fields:
            if doc.get(field_name) is not None:
                doc[field_name] = datetime.combine(doc[field_name], time.min)
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        """Build an entity from a MongoDB document."""
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls(**data)


def _to_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


class Author(CatalogEntity):
    collection: ClassVar[str] = "authors"
    url_prefix: ClassVar[str] = "/author"
    date_fields: ClassVar[tuple] = ("date_of_birth", "date_of_death")

    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    date_of_death: Optional[date] = Field(None, description="Date of death")

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def normalize_dates(cls, v):
        return _to_date(v)

    @property
    def name(self) -> str:
        """Full name as 'last, first'; empty when either part is missing."""
        if self.first_name and self.last_name:
            return f"{self.last_name}, {self.first_name}"
        return ""

    @property
    def lifespan(self) -> str:
        if self.date_of_birth is None:
            return ""
        return f"{format_date(self.date_of_birth)} - {format_date(self.date_of_death)}"


class Genre(CatalogEntity):
    collection: ClassVar[str] = "genres"
    url_prefix: ClassVar[str] = "/genre"

    name: str = Field(..., description="Genre name")


class Book(CatalogEntity):
    collection: ClassVar[str] = "books"
    url_prefix: ClassVar[str] = "/book"

    title: str = Field(..., description="Book title")
    summary: str = Field(..., description="Short summary")
    isbn: str = Field(..., description="ISBN")
    author: str = Field(..., description="Author reference")
    genre: List[str] = Field(default_factory=list, description="Genre references")


class BookInstance(CatalogEntity):
    collection: ClassVar[str] = "bookinstances"
    url_prefix: ClassVar[str] = "/bookinstance"
    date_fields: ClassVar[tuple] = ("due_back",)

    book: str = Field(..., description="Book reference")
    imprint: str = Field(..., description="Imprint of this copy")
    status: BookInstanceStatus = Field(BookInstanceStatus.MAINTENANCE.value, description="Copy status")
    due_back: Optional[date] = Field(None, description="Date the copy is due back")

    @field_validator("due_back", mode="before")
    @classmethod
    def normalize_due_back(cls, v):
        return _to_date(v)
