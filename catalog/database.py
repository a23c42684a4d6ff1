"""
MongoDB data access for the catalog.
Handles connection, indexing, and CRUD operations for the four entity collections.
"""

from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError

from .errors import StoreError
from .models import Author, Book, BookInstance, CatalogEntity, Genre

logger = structlog.get_logger(__name__)

EntityT = TypeVar("EntityT", bound=CatalogEntity)

ENTITY_TYPES = (Author, Book, Genre, BookInstance)


def to_object_id(entity_id: str) -> ObjectId:
    """Convert an id string to an ObjectId, raising StoreError when malformed."""
    if not isinstance(entity_id, str) or not ObjectId.is_valid(entity_id):
        raise StoreError(f"Malformed id '{entity_id}'")
    return ObjectId(entity_id)



class CatalogDatabase:
    """
    Async MongoDB access for catalog entities.

    Every method takes the entity class to pick the collection and returns
    entity models; driver failures are logged and re-raised as StoreError.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize the catalog database.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and make sure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            # Test connection
            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """
        Create indexes for the reference lookups used by detail views and
        delete guards.
        """
        try:
            await self._collection(Book).create_index("author")
            await self._collection(Book).create_index("genre")
            await self._collection(Book).create_index("title")
            await self._collection(BookInstance).create_index("book")
            await self._collection(BookInstance).create_index("status")
            await self._collection(Genre).create_index("name")

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    def _collection(self, entity_cls: Type[CatalogEntity]) -> AsyncIOMotorCollection:
        return self.database[entity_cls.collection]

    async def find(
        self,
        entity_cls: Type[EntityT],
        filter_query: Optional[Dict[str, Any]] = None
    ) -> List[EntityT]:
        """
        Find all entities matching an equality filter, in store order.

        Args:
            entity_cls: Entity class selecting the collection
            filter_query: MongoDB filter; None matches everything

        Returns:
            List of entities
        """
        try:
            cursor = self._collection(entity_cls).find(filter_query or {})
            docs = await cursor.to_list(length=None)
            return [entity_cls.from_document(doc) for doc in docs]
        except PyMongoError as e:
            logger.error("Failed to find documents", collection=entity_cls.collection,
                         filter=filter_query, error=str(e))
            raise StoreError(str(e)) from e

    async def find_one(
        self,
        entity_cls: Type[EntityT],
        filter_query: Dict[str, Any]
    ) -> Optional[EntityT]:
        """Find the first entity matching a filter."""
        try:
            doc = await self._collection(entity_cls).find_one(filter_query)
        except PyMongoError as e:
            logger.error("Failed to find document", collection=entity_cls.collection,
                         filter=filter_query, error=str(e))
            raise StoreError(str(e)) from e
        return entity_cls.from_document(doc) if doc else None

    async def find_by_id(self, entity_cls: Type[EntityT], entity_id: str) -> Optional[EntityT]:
        """
        Get an entity by id.

        Returns:
            The entity, or None if no such record exists

        Raises:
            StoreError: If the id is malformed or the query fails
        """
        return await self.find_one(entity_cls, {"_id": to_object_id(entity_id)})

    async def find_by_ids(
        self,
        entity_cls: Type[EntityT],
        entity_ids: Iterable[str]
    ) -> Dict[str, EntityT]:
        """
        Resolve a set of references in one query.

        Ids that are not valid ObjectIds cannot match any record and are
        skipped rather than rejected.

        Returns:
            Mapping of id to entity for every id that resolved
        """
        object_ids = [ObjectId(i) for i in set(entity_ids) if ObjectId.is_valid(i)]
        if not object_ids:
            return {}
        entities = await self.find(entity_cls, {"_id": {"$in": object_ids}})
        return {entity.id: entity for entity in entities}

    async def count(
        self,
        entity_cls: Type[CatalogEntity],
        filter_query: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count entities matching a filter."""
        try:
            return await self._collection(entity_cls).count_documents(filter_query or {})
        except PyMongoError as e:
            logger.error("Failed to count documents", collection=entity_cls.collection, error=str(e))
            raise StoreError(str(e)) from e

    async def insert(self, entity: EntityT) -> EntityT:
        """Insert a new entity under its pre-generated id."""
        doc = entity.to_document()
        doc["_id"] = to_object_id(entity.id)
        try:
            await self._collection(type(entity)).insert_one(doc)
        except PyMongoError as e:
            logger.error("Failed to insert document", collection=entity.collection, error=str(e))
            raise StoreError(str(e)) from e
        logger.debug("Inserted document", collection=entity.collection, entity_id=entity.id)
        return entity

    async def replace(self, entity: EntityT) -> Optional[EntityT]:
        """
        Replace the stored fields of an existing entity, keeping its id.

        Returns:
            The entity as stored after the update, or None if no record has that id
        """
        try:
            doc = await self._collection(type(entity)).find_one_and_replace(
                {"_id": to_object_id(entity.id)},
                entity.to_document(),
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error("Failed to replace document", collection=entity.collection,
                         entity_id=entity.id, error=str(e))
            raise StoreError(str(e)) from e

        if doc is None:
            logger.warning("Document not found for update", collection=entity.collection,
                           entity_id=entity.id)
            return None
        return type(entity).from_document(doc)

    async def delete_by_id(self, entity_cls: Type[CatalogEntity], entity_id: str) -> bool:
        """
        Delete an entity by id.

        Returns:
            bool: True if deleted, False if not found
        """
        try:
            result = await self._collection(entity_cls).delete_one({"_id": to_object_id(entity_id)})
        except PyMongoError as e:
            logger.error("Failed to delete document", collection=entity_cls.collection,
                         entity_id=entity_id, error=str(e))
            raise StoreError(str(e)) from e

        if result.deleted_count > 0:
            logger.debug("Deleted document", collection=entity_cls.collection, entity_id=entity_id)
            return True
        logger.warning("Document not found for deletion", collection=entity_cls.collection,
                       entity_id=entity_id)
        return False

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")

            counts = {}
            for entity_cls in ENTITY_TYPES:
                counts[f"{entity_cls.collection}_count"] = await self.count(entity_cls)

            return {"status": "healthy", **counts}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
