"""
Database handle shared by the request handlers.
"""

from typing import Optional

from fastapi import HTTPException, status

from catalog.database import CatalogDatabase

# Set by the application lifespan once MongoDB is reachable
db_service: Optional[CatalogDatabase] = None


def get_database() -> CatalogDatabase:
    """FastAPI dependency returning the connected catalog database."""
    if db_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return db_service
