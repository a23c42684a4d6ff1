"""
Reference integrity report.

Delete guards and their deletes are not atomic, so a record created between
the two can be left pointing at nothing. This module finds such records.
"""

from typing import Dict, List

import structlog

from .database import CatalogDatabase
from .models import Author, Book, BookInstance, Genre

logger = structlog.get_logger(__name__)


async def find_dangling_references(db: CatalogDatabase) -> Dict[str, List[Dict[str, str]]]:
    """
    Find references that no longer resolve.

    Returns:
        Dictionary with one list per reference kind:
        books_missing_author, books_missing_genre, copies_missing_book
    """
    books = await db.find(Book)
    copies = await db.find(BookInstance)

    author_ids = set((await db.find_by_ids(Author, [book.author for book in books])).keys())
    genre_ids = set((await db.find_by_ids(
        Genre, [ref for book in books for ref in book.genre]
    )).keys())
    book_ids = {book.id for book in books}

    report = {
        "books_missing_author": [
            {"id": book.id, "title": book.title, "author": book.author}
            for book in books if book.author not in author_ids
        ],
        "books_missing_genre": [
            {"id": book.id, "title": book.title, "genre": ref}
            for book in books for ref in book.genre if ref not in genre_ids
        ],
        "copies_missing_book": [
            {"id": copy.id, "imprint": copy.imprint, "book": copy.book}
            for copy in copies if copy.book not in book_ids
        ],
    }

    logger.info(
        "Reference integrity checked",
        books=len(books),
        copies=len(copies),
        **{kind: len(rows) for kind, rows in report.items()}
    )
    return report
