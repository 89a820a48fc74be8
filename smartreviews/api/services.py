"""
Smart Reviews API Services
==========================

Business logic layer for the API: review submission and the
aggregated read views of products and shops.
"""

import logging
from typing import List

from ..errors import NotFoundError
from ..reviews.prompts import parse_keywords
from ..reviews.review_models import Product, Review
from ..reviews.review_store import ReviewStore
from ..reviews.synthesis import SynthesisCoordinator
from .models import ProductInput, ProductResponse, ReviewResponse

logger = logging.getLogger(__name__)


def _format_date(review: Review) -> str:
    return review.created_at.isoformat() if review.created_at else ""


class ReviewService:
    """
    Submission handler and read-side aggregation over a ReviewStore.
    """

    def __init__(self, store: ReviewStore, coordinator: SynthesisCoordinator):
        self.store = store
        self.coordinator = coordinator

    def submit_review(self, external_id: str, submission: ProductInput) -> int:
        """
        Store a customer review, creating the product on first sight.

        Summary and keyword synthesis run before the review is stored;
        their errors propagate and leave the review unstored.
        """
        product = self.store.get_product(external_id)
        if product is None:
            product = Product(external_id=external_id, shop_id=submission.shop_id)
            self.store.create_product(product)

        review = Review(
            product_id=product.id,
            author=submission.review.author,
            title=submission.review.title,
            content=submission.review.content,
            rating=submission.review.rating,
        )
        return self.coordinator.submit_review(product, review)

    def get_product_reviews(self, external_id: str) -> ProductResponse:
        """
        Full review view of a product.

        Raises:
            NotFoundError: unknown product, or product without human reviews
        """
        product = self.store.get_product_with_reviews(external_id)
        if product is None:
            raise NotFoundError("Product not found")

        human = product.human_reviews
        if not human:
            raise NotFoundError("Reviews not found")

        return ProductResponse(
            id=product.external_id,
            average_rating=self.store.get_average_rating(external_id),
            reviews_quantity=self.store.get_review_count(external_id),
            ai_summary=product.summary or None,
            keywords=parse_keywords(product.keywords) or None,
            reviews=[
                ReviewResponse(
                    author=r.author,
                    title=r.title,
                    content=r.content,
                    rating=r.rating,
                    review_date=_format_date(r),
                )
                for r in human
            ],
        )

    def get_shop_products(self, shop_id: str) -> List[ProductResponse]:
        """
        Rating overview of every product of a shop.

        Raises:
            NotFoundError: the shop has no products
        """
        products = self.store.get_products_by_shop(shop_id)
        if not products:
            raise NotFoundError("Products not found")

        return [
            ProductResponse(
                id=p.external_id,
                average_rating=self.store.get_average_rating(p.external_id),
                reviews_quantity=self.store.get_review_count(p.external_id),
            )
            for p in products
        ]


def build_review_service(store: ReviewStore, llm_client, settings=None) -> ReviewService:
    """Wire a ReviewService and its coordinator from settings."""
    from ..config import get_settings

    settings = settings or get_settings()
    coordinator = SynthesisCoordinator(
        store,
        llm_client,
        config=settings.synthesis,
        llm_config=settings.llm,
    )
    return ReviewService(store, coordinator)
