"""
Exceptions raised by the catalog controllers and the data store.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormValidationError(CatalogError):
    """
    One or more submitted fields failed validation.

    Carries the unsaved entity as it was built from the submitted fields so
    it can be echoed back next to the per-field messages.
    """

    status_code = 400

    def __init__(self, entity: str, echo: Optional[Dict[str, Any]], errors: Dict[str, str]):
        super().__init__(f"Invalid {entity} form")
        self.entity = entity
        self.echo = echo
        self.errors = errors


class NotFoundError(CatalogError):
    status_code = 404


class ConflictError(CatalogError):
    """A delete blocked by dependent records, or a duplicate genre name."""

    status_code = 400

    def __init__(self, key: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.key = key
        self.status_code = status_code


class StoreError(CatalogError):
    """Any failure in the underlying data store, including malformed ids."""


class DanglingReferenceError(StoreError):
    """A required reference points to a record that no longer exists."""
