"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from typing import Any, Dict, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.database import get_database
from api.main import app
from catalog.database import ENTITY_TYPES, to_object_id
from catalog.models import Author, Book, BookInstance, BookInstanceStatus, Genre


class InMemoryCatalogDatabase:
    """
    Dictionary-backed stand-in exposing the same methods as CatalogDatabase.

    Filters support plain equality, with a list field matching when it
    contains the expected value, as in MongoDB.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            entity_cls.collection: {} for entity_cls in ENTITY_TYPES
        }

    @staticmethod
    def _matches(doc: Dict[str, Any], filter_query: Optional[Dict[str, Any]]) -> bool:
        for key, expected in (filter_query or {}).items():
            value = doc.get(key)
            if isinstance(value, list):
                if expected not in value:
                    return False
            elif value != expected:
                return False
        return True

    def _load(self, entity_cls, entity_id, doc):
        return entity_cls.from_document({"_id": ObjectId(entity_id), **doc})

    async def find(self, entity_cls, filter_query=None):
        return [
            self._load(entity_cls, entity_id, doc)
            for entity_id, doc in self.collections[entity_cls.collection].items()
            if self._matches(doc, filter_query)
        ]

    async def find_one(self, entity_cls, filter_query):
        found = await self.find(entity_cls, filter_query)
        return found[0] if found else None

    async def find_by_id(self, entity_cls, entity_id):
        to_object_id(entity_id)
        doc = self.collections[entity_cls.collection].get(entity_id)
        return self._load(entity_cls, entity_id, doc) if doc is not None else None

    async def find_by_ids(self, entity_cls, entity_ids):
        found = {}
        for entity_id in set(entity_ids):
            if not ObjectId.is_valid(entity_id):
                continue
            entity = await self.find_by_id(entity_cls, entity_id)
            if entity is not None:
                found[entity_id] = entity
        return found

    async def count(self, entity_cls, filter_query=None):
        return len(await self.find(entity_cls, filter_query))

    def add(self, entity):
        """Store an entity synchronously, for seeding tests."""
        to_object_id(entity.id)
        self.collections[entity.collection][entity.id] = entity.to_document()
        return entity

    async def insert(self, entity):
        return self.add(entity)

    async def replace(self, entity):
        to_object_id(entity.id)
        collection = self.collections[entity.collection]
        if entity.id not in collection:
            return None
        collection[entity.id] = entity.to_document()
        return self._load(type(entity), entity.id, collection[entity.id])

    async def delete_by_id(self, entity_cls, entity_id):
        to_object_id(entity_id)
        return self.collections[entity_cls.collection].pop(entity_id, None) is not None

    async def health_check(self):
        return {"status": "healthy"}

    def ids(self, entity_cls):
        return list(self.collections[entity_cls.collection].keys())


@pytest.fixture
def memory_db():
    """Create an empty in-memory catalog database."""
    return InMemoryCatalogDatabase()


@pytest.fixture
def client(memory_db):
    """Create a test client wired to the in-memory database."""
    app.dependency_overrides[get_database] = lambda: memory_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_author():
    return Author(
        first_name="Frank",
        last_name="Herbert",
        date_of_birth=date(1920, 10, 8),
        date_of_death=date(1986, 2, 11),
    )


@pytest.fixture
def sample_genre():
    return Genre(name="Science Fiction")


@pytest.fixture
def sample_book(sample_author, sample_genre):
    return Book(
        title="Dune",
        summary="A desert planet and its spice.",
        isbn="9780441013593",
        author=sample_author.id,
        genre=[sample_genre.id],
    )


@pytest.fixture
def sample_instance(sample_book):
    return BookInstance(
        book=sample_book.id,
        imprint="Ace, 1990",
        status=BookInstanceStatus.LOANED,
        due_back=date(2021, 6, 1),
    )


@pytest.fixture
def seeded_db(memory_db, sample_author, sample_genre, sample_book, sample_instance):
    """In-memory database holding one author, genre, book and book copy."""
    for entity in (sample_author, sample_genre, sample_book, sample_instance):
        memory_db.add(entity)
    return memory_db
