"""
Catalog package for the local library.

This package contains:
- Entity models (Author, Book, Genre, BookInstance)
- MongoDB data access
- Form sanitization and validation
- One controller per entity
"""

__version__ = "1.0.0"
