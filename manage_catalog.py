#!/usr/bin/env python3
"""
Catalog Management Utility

This script provides utilities to inspect the catalog database:
- Show record counts
- List records whose references no longer resolve
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from utilities.logger import setup_logging, get_logger
from utilities.config import config
from catalog.books import BookController
from catalog.database import CatalogDatabase
from catalog.integrity import find_dangling_references


async def show_statistics(db: CatalogDatabase):
    """Show catalog record counts."""
    print("\nCATALOG STATISTICS")
    print("=" * 80)

    counts = await BookController(db).index()
    print(f"Books:            {counts['bookCount']}")
    print(f"Book copies:      {counts['bookInstanceCount']}")
    print(f"  available:      {counts['bookInstanceAvailableCount']}")
    print(f"Authors:          {counts['authorCount']}")
    print(f"Genres:           {counts['genreCount']}")


async def show_orphans(db: CatalogDatabase) -> int:
    """List dangling references. Returns how many were found."""
    print("\nDANGLING REFERENCES")
    print("=" * 80)

    report = await find_dangling_references(db)

    for row in report["books_missing_author"]:
        print(f"Book {row['id']} ({row['title']}) -> missing author {row['author']}")
    for row in report["books_missing_genre"]:
        print(f"Book {row['id']} ({row['title']}) -> missing genre {row['genre']}")
    for row in report["copies_missing_book"]:
        print(f"Copy {row['id']} ({row['imprint']}) -> missing book {row['book']}")

    total = sum(len(rows) for rows in report.values())
    if total == 0:
        print("No dangling references found")
    else:
        print(f"\nWarning: {total} dangling references found")
    return total


async def main():
    """Main function."""
    if len(sys.argv) < 2:
        print("Catalog Management Utility")
        print("Usage: python manage_catalog.py <command>")
        print()
        print("Commands:")
        print("  stats    - Show record counts")
        print("  orphans  - List records whose references no longer resolve")
        sys.exit(1)

    command = sys.argv[1].lower()
    if command not in ("stats", "orphans"):
        print(f"Unknown command: {command}")
        print("Available commands: stats, orphans")
        sys.exit(1)

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger = get_logger(__name__)
    logger.info("Running catalog command", command=command, database=config.mongodb_database)

    db = CatalogDatabase(config.mongodb_url, config.mongodb_database)
    await db.connect()
    try:
        if command == "stats":
            await show_statistics(db)
        elif await show_orphans(db):
            sys.exit(2)
    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
