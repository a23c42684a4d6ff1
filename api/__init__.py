"""
FastAPI REST API for the Local Library catalog.

This module provides endpoints for:
- Dashboard record counts
- Listing, viewing, creating, updating and deleting books, authors,
  genres and book copies
- Service health
"""
