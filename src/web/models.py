"""
Web tier Data Models

This module defines the Pydantic models of the page responses.
"""

from typing import List, Optional
from pydantic import BaseModel


class PageRecord(BaseModel):
    """A stored page."""
    uid: int
    name: Optional[str] = None


class PageListResponse(BaseModel):
    """Response model for the page index."""
    pages: List[PageRecord]


class PageLookupResponse(BaseModel):
    """Response model for a page lookup; uid/name only when found."""
    found: bool
    uid: Optional[int] = None
    name: Optional[str] = None


class ErrorResponse(BaseModel):
    """Generic error response model."""
    error: str
    details: Optional[str] = None
    failureCode: Optional[str] = None
