"""
API response models for the FastAPI application.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DashboardResponse(BaseModel):
    """Record counts shown on the catalog home page."""
    bookCount: int = Field(..., description="Number of books")
    bookInstanceCount: int = Field(..., description="Number of book copies")
    bookInstanceAvailableCount: int = Field(..., description="Number of copies with status Available")
    authorCount: int = Field(..., description="Number of authors")
    genreCount: int = Field(..., description="Number of genres")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
