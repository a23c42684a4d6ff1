"""
BookInstance controller: list, detail, create, update and delete of
physical book copies.
"""

from typing import Any, Dict, List, Mapping

import structlog

from .base import EntityController
from .errors import DanglingReferenceError, FormValidationError, NotFoundError
from .forms import BookInstanceForm, echo_date, escape
from .models import Book, BookInstance, format_date, format_long_date, new_id

logger = structlog.get_logger(__name__)


def instance_fields(instance: BookInstance) -> Dict[str, Any]:
    return {
        "id": instance.id,
        "book": instance.book,
        "imprint": instance.imprint,
        "status": instance.status,
        "due_back": format_date(instance.due_back),
    }


def echo_instance(instance_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": instance_id,
        "book": escape(data["book"]),
        "imprint": escape(data["imprint"]),
        "status": escape(data["status"]),
        "due_back": echo_date(data["due_back"]),
    }


class BookInstanceController(EntityController):
    entity_key = "bookInstance"

    async def list(self) -> List[Dict[str, Any]]:
        instances = await self.db.find(BookInstance)
        books = await self.db.find_by_ids(Book, [instance.book for instance in instances])

        rows = []
        for instance in instances:
            book = books.get(instance.book)
            if book is None:
                raise DanglingReferenceError(
                    f"BookInstance '{instance.id}' references missing Book '{instance.book}'"
                )
            rows.append({
                "id": instance.id,
                "url": instance.url,
                "book": {"title": book.title},
                "imprint": instance.imprint,
                "status": instance.status,
                "due_back": format_long_date(instance.due_back),
            })
        return rows

    async def detail(self, instance_id: str) -> Dict[str, Any]:
        instance = await self.db.find_by_id(BookInstance, instance_id)
        if instance is None:
            raise NotFoundError("Book copy not found")

        book = await self.expand(Book, instance.book, f"BookInstance '{instance.id}'")
        return {
            "bookInstance": {
                "id": instance.id,
                "url": instance.url,
                "book": {"id": book.id, "url": book.url, "title": book.title},
                "imprint": instance.imprint,
                "status": instance.status,
                "due_back": format_date(instance.due_back),
            }
        }

    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = BookInstanceForm.prepare(fields)
        form, errors = BookInstanceForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, echo_instance(new_id(), data), errors)

        instance = await self.db.insert(BookInstance(**form.model_dump()))
        logger.info("Book copy created", instance_id=instance.id, book_id=instance.book)
        return {"bookInstance": instance_fields(instance)}

    async def update(self, instance_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Replace a copy's fields and return the record as the store wrote it."""
        data = BookInstanceForm.prepare(fields)
        form, errors = BookInstanceForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, echo_instance(instance_id, data), errors)

        updated = await self.db.replace(BookInstance(id=instance_id, **form.model_dump()))
        if updated is None:
            raise NotFoundError("Book copy not found")
        logger.info("Book copy updated", instance_id=instance_id, status=updated.status)
        return {"bookInstance": instance_fields(updated)}

    async def delete(self, instance_id: str) -> Dict[str, Any]:
        instance_id = self.require_id(instance_id)
        await self.db.delete_by_id(BookInstance, instance_id)
        logger.info("Book copy deleted", instance_id=instance_id)
        return {"bookInstance": "Book copy has been deleted"}
