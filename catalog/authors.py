"""
Author controller: list, detail, create, update and delete.
"""

import asyncio
from typing import Any, Dict, List, Mapping

import structlog

from .base import EntityController
from .errors import ConflictError, FormValidationError, NotFoundError
from .forms import AuthorForm, AuthorUpdateForm, echo_date, escape, trim
from .models import Author, Book, format_date, new_id

logger = structlog.get_logger(__name__)


def author_fields(author: Author) -> Dict[str, Any]:
    return {
        "id": author.id,
        "first_name": author.first_name,
        "last_name": author.last_name,
        "date_of_birth": format_date(author.date_of_birth),
        "date_of_death": format_date(author.date_of_death),
    }


def echo_author(author_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """The unsaved author built from submitted fields, for a failed create/update."""
    return {
        "id": author_id,
        "first_name": escape(trim(data["first_name"])),
        "last_name": escape(trim(data["last_name"])),
        "date_of_birth": echo_date(data["date_of_birth"]),
        "date_of_death": echo_date(data["date_of_death"]),
    }


class AuthorController(EntityController):
    entity_key = "author"

    async def list(self) -> List[Dict[str, Any]]:
        authors = await self.db.find(Author)
        return [
            {
                "id": author.id,
                "name": author.name,
                "url": author.url,
                "date_of_birth": format_date(author.date_of_birth),
                "date_of_death": format_date(author.date_of_death),
                "lifespan": author.lifespan,
            }
            for author in authors
        ]

    async def detail(self, author_id: str) -> Dict[str, Any]:
        """Author with the title and summary of each of their books."""
        author, books = await asyncio.gather(
            self.db.find_by_id(Author, author_id),
            self.db.find(Book, {"author": author_id}),
        )
        if author is None:
            raise NotFoundError("Author not found")

        return {
            "author": {
                **author_fields(author),
                "name": author.name,
                "lifespan": author.lifespan,
            },
            "author_books": [
                {"id": book.id, "title": book.title, "summary": book.summary}
                for book in books
            ],
        }

    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = AuthorForm.prepare(fields)
        form, errors = AuthorForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, echo_author(new_id(), data), errors)

        author = await self.db.insert(Author(**form.model_dump()))
        logger.info("Author created", author_id=author.id)
        return {"author": author_fields(author)}

    async def update(self, author_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = AuthorUpdateForm.prepare(fields)
        form, errors = AuthorUpdateForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, echo_author(author_id, data), errors)

        updated = await self.db.replace(Author(id=author_id, **form.model_dump()))
        if updated is None:
            raise NotFoundError("Author not found")
        logger.info("Author updated", author_id=author_id)
        return {"author": author_fields(updated)}

    async def delete(self, author_id: str) -> Dict[str, Any]:
        author_id = self.require_id(author_id)
        author, books = await asyncio.gather(
            self.db.find_by_id(Author, author_id),
            self.db.find(Book, {"author": author_id}),
        )
        if books:
            raise ConflictError(
                self.entity_key,
                "Unable to delete author, Author has books associated with it"
            )

        await self.db.delete_by_id(Author, author_id)
        logger.info("Author deleted", author_id=author_id, existed=author is not None)
        return {"author": "Author deleted"}
