"""
Smart Reviews API Models
========================

Pydantic models for API request/response serialization.
Field names match the JSON contract consumed by shop storefronts.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class ReviewInput(BaseModel):
    """A customer review as submitted by a shop."""
    author: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1)


class ProductInput(BaseModel):
    """Review submission body: the shop owning the product and the review."""
    shop_id: str = Field(..., min_length=1)
    review: ReviewInput


class ReviewResponse(BaseModel):
    author: str
    title: str
    content: str
    rating: int
    review_date: str


class ProductResponse(BaseModel):
    """Aggregated review data for one product."""
    id: str
    average_rating: float
    reviews_quantity: int
    ai_summary: Optional[str] = None
    keywords: Optional[List[str]] = None
    reviews: Optional[List[ReviewResponse]] = None


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str
    database_version: Optional[str] = None
    llm_provider: Optional[str] = None
    llm_configured: bool = False
