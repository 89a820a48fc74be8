"""
Review Data Models
==================

Products and reviews as stored by the review store.
These map directly to the `products` and `reviews` tables.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


# Reserved author/title of the synthesized summary review
SYNTHETIC_LABEL = "AI Generated Summary Review"

# Rating of the synthesized review; not a rating
SYNTHETIC_RATING = 0


@dataclass
class Review:
    """A review of a product, either written by a customer or synthesized."""
    product_id: Optional[int]
    author: str
    title: str
    content: str
    rating: int
    is_synthetic: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def synthetic(cls, product_id: int, content: str) -> "Review":
        """Build a new synthesized summary review for a product."""
        return cls(
            product_id=product_id,
            author=SYNTHETIC_LABEL,
            title=SYNTHETIC_LABEL,
            content=content,
            rating=SYNTHETIC_RATING,
            is_synthetic=True,
        )


@dataclass
class Product:
    """A shop product, identified by the shop through external_id."""
    external_id: str
    shop_id: str
    keywords: str = ""
    id: Optional[int] = None
    reviews: List[Review] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def human_reviews(self) -> List[Review]:
        return [r for r in self.reviews if not r.is_synthetic]

    @property
    def summary(self) -> Optional[str]:
        """Content of the synthesized summary review, if any."""
        for review in self.reviews:
            if review.is_synthetic:
                return review.content
        return None
