"""
Tests for the book controller.
"""

import pytest
from bson import ObjectId

from catalog.books import BookController
from catalog.errors import (
    ConflictError, DanglingReferenceError, FormValidationError, NotFoundError
)
from catalog.models import Author, Book, BookInstance, BookInstanceStatus


def make_book(author_id, title, genre=None):
    return Book(title=title, summary="...", isbn="123", author=author_id, genre=genre or [])


class TestBookController:
    """Test cases for BookController."""

    @pytest.mark.asyncio
    async def test_index_counts(self, seeded_db, sample_book):
        seeded_db.add(BookInstance(book=sample_book.id, imprint="Ace", status=BookInstanceStatus.AVAILABLE))
        seeded_db.add(BookInstance(book=sample_book.id, imprint="Ace", status=BookInstanceStatus.AVAILABLE))

        counts = await BookController(seeded_db).index()

        assert counts == {
            "bookCount": 1,
            "bookInstanceCount": 3,
            "bookInstanceAvailableCount": 2,
            "authorCount": 1,
            "genreCount": 1,
        }

    @pytest.mark.asyncio
    async def test_index_empty(self, memory_db):
        counts = await BookController(memory_db).index()
        assert set(counts.values()) == {0}

    @pytest.mark.asyncio
    async def test_list_sorted_by_title_ignoring_case(self, memory_db, sample_author):
        memory_db.add(sample_author)
        for title in ("dune messiah", "Children of Dune", "Dune", "a Whisper"):
            memory_db.add(make_book(sample_author.id, title))

        books = await BookController(memory_db).list()

        assert [book["title"] for book in books] == [
            "a Whisper", "Children of Dune", "Dune", "dune messiah"
        ]
        assert books[0]["author"] == {"name": "Herbert, Frank"}

    @pytest.mark.asyncio
    async def test_list_ties_keep_store_order(self, memory_db, sample_author):
        memory_db.add(sample_author)
        first = memory_db.add(make_book(sample_author.id, "dune"))
        second = memory_db.add(make_book(sample_author.id, "DUNE"))

        books = await BookController(memory_db).list()

        assert [book["id"] for book in books] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_list_dangling_author(self, memory_db):
        memory_db.add(make_book(str(ObjectId()), "Orphan"))

        with pytest.raises(DanglingReferenceError):
            await BookController(memory_db).list()

    @pytest.mark.asyncio
    async def test_detail(self, seeded_db, sample_book, sample_author, sample_genre, sample_instance):
        result = await BookController(seeded_db).detail(sample_book.id)

        book = result["book"]
        assert book["url"] == f"/book/{sample_book.id}"
        assert book["author"] == {
            "id": sample_author.id,
            "url": f"/author/{sample_author.id}",
            "name": "Herbert, Frank",
        }
        assert book["genre"] == [{
            "id": sample_genre.id,
            "url": f"/genre/{sample_genre.id}",
            "name": "Science Fiction",
        }]
        assert result["bookInstances"] == [{
            "id": sample_instance.id,
            "status": "Loaned",
            "imprint": "Ace, 1990",
            "due_back": "2021-06-01",
            "url": f"/bookinstance/{sample_instance.id}",
        }]

    @pytest.mark.asyncio
    async def test_detail_skips_unresolved_genres(self, memory_db, sample_author):
        memory_db.add(sample_author)
        book = memory_db.add(make_book(sample_author.id, "Dune", genre=["SciFi"]))

        result = await BookController(memory_db).detail(book.id)

        assert result["book"]["genre"] == []

    @pytest.mark.asyncio
    async def test_detail_not_found(self, memory_db):
        with pytest.raises(NotFoundError) as exc_info:
            await BookController(memory_db).detail(str(ObjectId()))
        assert exc_info.value.message == "Book not found"

    @pytest.mark.asyncio
    async def test_detail_dangling_author(self, memory_db):
        book = memory_db.add(make_book(str(ObjectId()), "Orphan"))

        with pytest.raises(DanglingReferenceError):
            await BookController(memory_db).detail(book.id)

    @pytest.mark.asyncio
    async def test_create_normalizes_scalar_genre(self, memory_db, sample_author):
        result = await BookController(memory_db).create({
            "title": "Dune",
            "summary": "...",
            "author": sample_author.id,
            "isbn": "9780441013593",
            "genre": "SciFi",
        })

        book = result["book"]
        assert book["genre"] == ["SciFi"]
        assert book["title"] == "Dune"
        assert book["author"] == sample_author.id
        stored = await memory_db.find_by_id(Book, book["id"])
        assert stored.genre == ["SciFi"]

    @pytest.mark.asyncio
    async def test_create_does_not_check_author_exists(self, memory_db):
        result = await BookController(memory_db).create({
            "title": "Dune", "summary": "...", "author": "someone", "isbn": "1"
        })
        assert result["book"]["author"] == "someone"
        assert result["book"]["genre"] == []

    @pytest.mark.asyncio
    async def test_create_invalid(self, memory_db):
        with pytest.raises(FormValidationError) as exc_info:
            await BookController(memory_db).create({"title": "Dune", "genre": ["a", "b"]})

        error = exc_info.value
        assert set(error.errors) == {"summary", "author", "isbn"}
        assert error.echo["title"] == "Dune"
        assert error.echo["genre"] == ["a", "b"]
        assert memory_db.ids(Book) == []

    @pytest.mark.asyncio
    async def test_update(self, seeded_db, sample_book, sample_author):
        result = await BookController(seeded_db).update(sample_book.id, {
            "title": "Dune (Deluxe)",
            "summary": "...",
            "author": sample_author.id,
            "isbn": "9780593099322",
        })

        assert result["book"]["id"] == sample_book.id
        assert result["book"]["title"] == "Dune (Deluxe)"
        assert result["book"]["genre"] == []
        assert seeded_db.ids(Book) == [sample_book.id]

    @pytest.mark.asyncio
    async def test_update_missing_book(self, memory_db):
        with pytest.raises(NotFoundError):
            await BookController(memory_db).update(str(ObjectId()), {
                "title": "Dune", "summary": "...", "author": "a", "isbn": "1"
            })

    @pytest.mark.asyncio
    async def test_delete_blocked_by_copies(self, seeded_db, sample_book, sample_instance):
        with pytest.raises(ConflictError) as exc_info:
            await BookController(seeded_db).delete(sample_book.id)

        assert exc_info.value.message == "Unable to delete book, this book has copies"
        assert seeded_db.ids(Book) == [sample_book.id]
        assert seeded_db.ids(BookInstance) == [sample_instance.id]

    @pytest.mark.asyncio
    async def test_delete_then_detail_not_found(self, memory_db, sample_author):
        memory_db.add(sample_author)
        book = memory_db.add(make_book(sample_author.id, "Dune"))
        controller = BookController(memory_db)

        assert await controller.delete(book.id) == {"book": "Book deleted"}
        with pytest.raises(NotFoundError):
            await controller.detail(book.id)
