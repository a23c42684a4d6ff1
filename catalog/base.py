"""
Shared plumbing for the entity controllers.
"""

from typing import Dict, Iterable, List, Optional, Type

from .database import CatalogDatabase, EntityT
from .errors import DanglingReferenceError, FormValidationError
from .forms import DeleteForm


class EntityController:
    """Base class holding the database handle and the response key of one entity."""

    entity_key: str = ""

    def __init__(self, db: CatalogDatabase):
        self.db = db

    def require_id(self, entity_id: Optional[str]) -> str:
        """Validate the id submitted in a delete request body."""
        form, errors = DeleteForm.check(DeleteForm.prepare({"id": entity_id}))
        if errors:
            raise FormValidationError(self.entity_key, None, errors)
        return form.id

    async def expand(self, entity_cls: Type[EntityT], ref: str, owner: str) -> EntityT:
        """
        Resolve a required reference.

        Raises:
            DanglingReferenceError: If the referenced record does not exist
        """
        resolved = await self.db.find_by_ids(entity_cls, [ref])
        if ref not in resolved:
            raise DanglingReferenceError(
                f"{owner} references missing {entity_cls.__name__} '{ref}'"
            )
        return resolved[ref]

    async def expand_many(self, entity_cls: Type[EntityT], refs: Iterable[str]) -> List[EntityT]:
        """Resolve a list of optional references, keeping order and dropping missing ones."""
        refs = list(refs)
        resolved: Dict[str, EntityT] = await self.db.find_by_ids(entity_cls, refs)
        return [resolved[ref] for ref in refs if ref in resolved]
