"""
Shared test doubles: an in-memory review store and a scripted
completion client.
"""

import itertools
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from smartreviews.ai.llm_client import LLMClient, LLMProvider, LLMResponse
from smartreviews.config import LLMConfig, SynthesisConfig
from smartreviews.errors import GenerationError, NotFoundError
from smartreviews.reviews.review_models import Product, Review
from smartreviews.reviews.review_store import ReviewStore
from smartreviews.reviews.synthesis import SynthesisCoordinator


class InMemoryReviewStore(ReviewStore):
    """ReviewStore keeping copies of records in dicts."""

    def __init__(self):
        self.products: Dict[int, Product] = {}
        self.reviews: Dict[int, Review] = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1)
        self.upsert_calls = 0

    def _now(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    @staticmethod
    def _copy_product(p: Product) -> Product:
        return Product(
            id=p.id, external_id=p.external_id, shop_id=p.shop_id,
            keywords=p.keywords, created_at=p.created_at, updated_at=p.updated_at,
        )

    @staticmethod
    def _copy_review(r: Review) -> Review:
        return Review(
            id=r.id, product_id=r.product_id, author=r.author, title=r.title,
            content=r.content, rating=r.rating, is_synthetic=r.is_synthetic,
            created_at=r.created_at, updated_at=r.updated_at,
        )

    def _find_product(self, external_id: str) -> Optional[Product]:
        for p in self.products.values():
            if p.external_id == external_id:
                return p
        return None

    def get_product(self, external_id):
        p = self._find_product(external_id)
        return self._copy_product(p) if p else None

    def create_product(self, product):
        existing = self._find_product(product.external_id)
        if existing is not None:
            product.id = existing.id
            return existing.id
        product.id = next(self._ids)
        product.created_at = product.updated_at = self._now()
        self.products[product.id] = self._copy_product(product)
        return product.id

    def save_product(self, product):
        if product.id is None:
            return self.create_product(product)
        if product.id not in self.products:
            raise NotFoundError(f"Product {product.id} not found")
        product.updated_at = self._now()
        self.products[product.id] = self._copy_product(product)
        return product.id

    def get_products_by_shop(self, shop_id):
        return [self._copy_product(p) for p in self.products.values() if p.shop_id == shop_id]

    def get_reviews(self, external_id):
        p = self._find_product(external_id)
        if p is None:
            return []
        rows = [r for r in self.reviews.values() if r.product_id == p.id]
        rows.sort(key=lambda r: (not r.is_synthetic, r.created_at, r.id))
        return [self._copy_review(r) for r in rows]

    def get_synthetic_review(self, product_id):
        for r in self.reviews.values():
            if r.product_id == product_id and r.is_synthetic:
                return self._copy_review(r)
        return None

    def upsert_review(self, review):
        self.upsert_calls += 1
        if review.id is None:
            review.id = next(self._ids)
            review.created_at = self._now()
        elif review.id not in self.reviews:
            raise NotFoundError(f"Review {review.id} not found")
        review.updated_at = self._now()
        self.reviews[review.id] = self._copy_review(review)
        return review.id

    def _human(self, external_id) -> List[Review]:
        return [r for r in self.get_reviews(external_id) if not r.is_synthetic]

    def get_average_rating(self, external_id):
        human = self._human(external_id)
        if not human:
            return 0.0
        return sum(r.rating for r in human) / len(human)

    def get_review_count(self, external_id):
        return len(self._human(external_id))

    # Test helpers

    def add_product(self, external_id="sku-1", shop_id="shop-1", keywords="") -> Product:
        product = Product(external_id=external_id, shop_id=shop_id, keywords=keywords)
        self.create_product(product)
        return product

    def add_human_review(self, product: Product, content: str, title: str = "Title", rating: int = 5) -> Review:
        review = Review(
            product_id=product.id, author="Customer", title=title,
            content=content, rating=rating,
        )
        self.upsert_review(review)
        return review

    def synthetic_reviews(self, product_id: int) -> List[Review]:
        return [r for r in self.reviews.values() if r.product_id == product_id and r.is_synthetic]


class StubLLMClient(LLMClient):
    """Completion client returning scripted responses and recording prompts."""

    def __init__(self, responses: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt, system=None, max_tokens=1024, temperature=0.7):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else f"completion {len(self.prompts)}"
        return LLMResponse(
            content=content,
            model="stub",
            provider=LLMProvider.ANTHROPIC,
            tokens_input=10,
            tokens_output=5,
            cost_usd=0.001,
        )


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def llm():
    return StubLLMClient()


@pytest.fixture
def failing_llm():
    return StubLLMClient(error=GenerationError("completion service unavailable"))


@pytest.fixture
def synthesis_config():
    return SynthesisConfig(summary_period=3, keyword_period=2)


@pytest.fixture
def llm_config():
    return LLMConfig(provider=None, model=None, max_tokens=256, temperature=0.2, timeout_seconds=None)


@pytest.fixture
def coordinator(store, llm, synthesis_config, llm_config):
    return SynthesisCoordinator(store, llm, config=synthesis_config, llm_config=llm_config)
