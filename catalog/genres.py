"""
Genre controller: list, detail, create, update and delete.
"""

import asyncio
from typing import Any, Dict, List, Mapping

import structlog

from .base import EntityController
from .errors import ConflictError, FormValidationError, NotFoundError
from .forms import GenreForm, GenreUpdateForm, escape
from .models import Book, Genre, new_id

logger = structlog.get_logger(__name__)


class GenreController(EntityController):
    entity_key = "genre"

    async def list(self) -> List[Dict[str, Any]]:
        genres = await self.db.find(Genre)
        return [{"id": genre.id, "name": genre.name} for genre in genres]

    async def detail(self, genre_id: str) -> Dict[str, Any]:
        genre, books = await asyncio.gather(
            self.db.find_by_id(Genre, genre_id),
            self.db.find(Book, {"genre": genre_id}),
        )
        if genre is None:
            raise NotFoundError("Genre not found")

        return {
            "genre": {"id": genre.id, "name": genre.name, "url": genre.url},
            "genreBooks": [
                {"id": book.id, "title": book.title, "summary": book.summary, "url": book.url}
                for book in books
            ],
        }

    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a genre unless one with exactly the same name exists."""
        data = GenreForm.prepare(fields)
        form, errors = GenreForm.check(data)
        if errors:
            echo = {"id": new_id(), "name": escape(data["name"])}
            raise FormValidationError(self.entity_key, echo, errors)

        existing = await self.db.find_one(Genre, {"name": form.name})
        if existing is not None:
            logger.info("Genre already exists", genre_id=existing.id, name=form.name)
            raise ConflictError("name", "Genre Already exists", status_code=409)

        genre = await self.db.insert(Genre(name=form.name))
        logger.info("Genre created", genre_id=genre.id, name=genre.name)
        return {"genre": {"id": genre.id, "name": genre.name}}

    async def update(self, genre_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        # Name uniqueness is only enforced on create.
        data = GenreUpdateForm.prepare(fields)
        form, errors = GenreUpdateForm.check(data)
        if errors:
            echo = {"id": genre_id, "name": escape(data["name"])}
            raise FormValidationError(self.entity_key, echo, errors)

        updated = await self.db.replace(Genre(id=genre_id, name=form.name))
        if updated is None:
            raise NotFoundError("Genre not found")
        logger.info("Genre updated", genre_id=genre_id)
        return {"genre": {"id": updated.id, "name": updated.name}}

    async def delete(self, genre_id: str) -> Dict[str, Any]:
        genre_id = self.require_id(genre_id)
        genre, books = await asyncio.gather(
            self.db.find_by_id(Genre, genre_id),
            self.db.find(Book, {"genre": genre_id}),
        )
        if books:
            raise ConflictError(
                self.entity_key,
                "Unable to delete genre, Genre has books associated with it"
            )

        await self.db.delete_by_id(Genre, genre_id)
        logger.info("Genre deleted", genre_id=genre_id, existed=genre is not None)
        return {"genre": "Genre deleted"}
