"""
Book controller: dashboard counts, list, detail, create, update and delete.
"""

import asyncio
from typing import Any, Dict, List, Mapping

import structlog

from .base import EntityController
from .errors import ConflictError, DanglingReferenceError, FormValidationError, NotFoundError
from .forms import BookForm, BookUpdateForm
from .models import Author, Book, BookInstance, BookInstanceStatus, Genre, format_date, new_id

logger = structlog.get_logger(__name__)


def book_fields(book: Book) -> Dict[str, Any]:
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "summary": book.summary,
        "isbn": book.isbn,
        "genre": list(book.genre),
    }


class BookController(EntityController):
    entity_key = "book"

    async def index(self) -> Dict[str, int]:
        """Record counts for the catalog home page."""
        counts = await asyncio.gather(
            self.db.count(Book),
            self.db.count(BookInstance),
            self.db.count(BookInstance, {"status": BookInstanceStatus.AVAILABLE.value}),
            self.db.count(Author),
            self.db.count(Genre),
        )
        keys = (
            "bookCount",
            "bookInstanceCount",
            "bookInstanceAvailableCount",
            "authorCount",
            "genreCount",
        )
        return dict(zip(keys, counts))

    async def list(self) -> List[Dict[str, Any]]:
        """All books with their author's name, ordered by title ignoring case."""
        books = await self.db.find(Book)
        authors = await self.db.find_by_ids(Author, [book.author for book in books])

        rows = []
        for book in sorted(books, key=lambda b: b.title.upper()):
            author = authors.get(book.author)
            if author is None:
                raise DanglingReferenceError(
                    f"Book '{book.id}' references missing Author '{book.author}'"
                )
            rows.append({"id": book.id, "title": book.title, "author": {"name": author.name}})
        return rows

    async def detail(self, book_id: str) -> Dict[str, Any]:
        book, instances = await asyncio.gather(
            self.db.find_by_id(Book, book_id),
            self.db.find(BookInstance, {"book": book_id}),
        )
        if book is None:
            raise NotFoundError("Book not found")

        author, genres = await asyncio.gather(
            self.expand(Author, book.author, f"Book '{book.id}'"),
            self.expand_many(Genre, book.genre),
        )

        return {
            "book": {
                "id": book.id,
                "url": book.url,
                "title": book.title,
                "author": {"id": author.id, "url": author.url, "name": author.name},
                "summary": book.summary,
                "isbn": book.isbn,
                "genre": [{"id": g.id, "url": g.url, "name": g.name} for g in genres],
            },
            "bookInstances": [
                {
                    "id": instance.id,
                    "status": instance.status,
                    "imprint": instance.imprint,
                    "due_back": format_date(instance.due_back),
                    "url": instance.url,
                }
                for instance in instances
            ],
        }

    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = BookForm.prepare(fields)
        form, errors = BookForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, {"id": new_id(), **data}, errors)

        book = await self.db.insert(Book(**form.model_dump()))
        logger.info("Book created", book_id=book.id, title=book.title)
        return {"book": book_fields(book)}

    async def update(self, book_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        data = BookUpdateForm.prepare(fields)
        form, errors = BookUpdateForm.check(data)
        if errors:
            raise FormValidationError(self.entity_key, {"id": book_id, **data}, errors)

        updated = await self.db.replace(Book(id=book_id, **form.model_dump()))
        if updated is None:
            raise NotFoundError("Book not found")
        logger.info("Book updated", book_id=book_id)
        return {"book": book_fields(updated)}

    async def delete(self, book_id: str) -> Dict[str, Any]:
        book_id = self.require_id(book_id)
        book, copies = await asyncio.gather(
            self.db.find_by_id(Book, book_id),
            self.db.find(BookInstance, {"book": book_id}),
        )
        if copies:
            raise ConflictError(self.entity_key, "Unable to delete book, this book has copies")

        await self.db.delete_by_id(Book, book_id)
        logger.info("Book deleted", book_id=book_id, existed=book is not None)
        return {"book": "Book deleted"}
