"""
Review Synthesis Coordinator
============================

Keeps the AI-derived content of a product in step with its reviews.

On every review submission, before the new review is stored:
1. Summary: every SUMMARY_PERIOD reviews, the human reviews are
   summarized and the product's single synthesized review is
   created or rewritten in place.
2. Keywords: every KEYWORD_PERIOD reviews, recurring keywords are
   extracted and written to the product, replacing the previous set.

The review count that drives both triggers is the count of all stored
reviews, the synthesized summary included.

Usage:
    coordinator = SynthesisCoordinator(store, get_llm_client())
    review_id = coordinator.submit_review(product, pending_review)
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..ai.llm_client import LLMClient
from ..config import LLMConfig, SynthesisConfig
from ..errors import NotFoundError
from .prompts import build_keyword_prompt, build_summary_prompt
from .review_models import Product, Review
from .review_store import ReviewStore
from .triggers import should_trigger

logger = logging.getLogger(__name__)

ARTIFACT_SUMMARY = "summary"
ARTIFACT_KEYWORDS = "keywords"


@dataclass
class SynthesisResult:
    """Outcome of one synchronization step."""
    external_id: str
    artifact: str
    review_count: int
    triggered: bool = False
    content: Optional[str] = None
    cost_usd: float = 0.0


class SynthesisCoordinator:
    """
    Runs trigger evaluation, prompt assembly, completion and upsert for
    the summary and keyword artifacts.

    Storage and generation errors are never caught here: they reach the
    caller, and submit_review does not store the pending review.
    """

    def __init__(
        self,
        store: ReviewStore,
        llm_client: LLMClient,
        config: Optional[SynthesisConfig] = None,
        llm_config: Optional[LLMConfig] = None,
    ):
        self.store = store
        self.llm_client = llm_client
        self.config = config or SynthesisConfig()
        self.llm_config = llm_config or LLMConfig()

        # external_id -> [lock, holders + waiters]; dropped when unused
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _product_lock(self, external_id: str):
        with self._locks_guard:
            entry = self._locks.setdefault(external_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[external_id]

    def _complete(self, prompt: str) -> Tuple[str, float]:
        response = self.llm_client.generate(
            prompt,
            max_tokens=self.llm_config.max_tokens,
            temperature=self.llm_config.temperature,
        )
        return response.content, response.cost_usd

    # =========================================================================
    # Summary
    # =========================================================================

    def synchronize_summary(self, external_id: str) -> SynthesisResult:
        """Regenerate the summary review if the next review lands on the summary period."""
        return self._summary_step(external_id, self.store.get_reviews(external_id))

    def _summary_step(self, external_id: str, reviews: List[Review]) -> SynthesisResult:
        result = SynthesisResult(
            external_id=external_id,
            artifact=ARTIFACT_SUMMARY,
            review_count=len(reviews),
        )

        if not reviews:
            return result

        if not should_trigger(len(reviews), self.config.summary_period):
            logger.debug(
                f"Summary not due for {external_id} ({len(reviews)} reviews)",
                extra={"external_id": external_id, "artifact": ARTIFACT_SUMMARY},
            )
            return result

        start = time.monotonic()
        summary, cost = self._complete(build_summary_prompt(reviews))

        product_id = reviews[0].product_id
        existing = self.store.get_synthetic_review(product_id)
        if existing is not None:
            existing.content = summary
            self.store.upsert_review(existing)
            action = "updated"
        else:
            self.store.upsert_review(Review.synthetic(product_id, summary))
            action = "created"

        result.triggered = True
        result.content = summary
        result.cost_usd = cost
        logger.info(
            f"Summary {action} for {external_id} from {len(reviews)} reviews "
            f"(${cost:.4f}, {time.monotonic() - start:.1f}s)",
            extra={
                "external_id": external_id,
                "artifact": ARTIFACT_SUMMARY,
                "review_count": len(reviews),
                "cost_usd": cost,
            },
        )
        return result

    # =========================================================================
    # Keywords
    # =========================================================================

    def synchronize_keywords(self, external_id: str) -> SynthesisResult:
        """Regenerate the product keywords if the next review lands on the keyword period."""
        return self._keyword_step(external_id, self.store.get_reviews(external_id))

    def _keyword_step(self, external_id: str, reviews: List[Review]) -> SynthesisResult:
        result = SynthesisResult(
            external_id=external_id,
            artifact=ARTIFACT_KEYWORDS,
            review_count=len(reviews),
        )

        if not reviews:
            return result

        if not should_trigger(len(reviews), self.config.keyword_period):
            logger.debug(
                f"Keywords not due for {external_id} ({len(reviews)} reviews)",
                extra={"external_id": external_id, "artifact": ARTIFACT_KEYWORDS},
            )
            return result

        keywords, cost = self._complete(build_keyword_prompt(reviews))

        product = self.store.get_product(external_id)
        if product is None:
            raise NotFoundError(f"Product {external_id} not found")

        # Stored verbatim, replacing the previous set
        product.keywords = keywords
        self.store.save_product(product)

        result.triggered = True
        result.content = keywords
        result.cost_usd = cost
        logger.info(
            f"Keywords updated for {external_id} from {len(reviews)} reviews: {keywords}",
            extra={
                "external_id": external_id,
                "artifact": ARTIFACT_KEYWORDS,
                "review_count": len(reviews),
                "cost_usd": cost,
            },
        )
        return result

    # =========================================================================
    # Submission
    # =========================================================================

    def submit_review(self, product: Product, pending_review: Review) -> int:
        """
        Synchronize the derived content against the stored reviews, then
        store pending_review.

        Both triggers are evaluated on the same snapshot of the stored
        reviews, taken before the summary step: a summary created by this
        submission does not shift the keyword count until the next one.
        The pending review is excluded from both counts. If either step
        raises, the pending review is not stored.

        Args:
            product: Stored product (must have an id)
            pending_review: Human review to add

        Returns:
            Id of the stored review
        """
        if product.id is None:
            raise ValueError(f"Product {product.external_id} must be stored before reviews are added")
        if pending_review.is_synthetic:
            raise ValueError("Only human reviews can be submitted")

        with self._product_lock(product.external_id):
            reviews = self.store.get_reviews(product.external_id)
            self._summary_step(product.external_id, reviews)
            self._keyword_step(product.external_id, reviews)

            pending_review.product_id = product.id
            review_id = self.store.upsert_review(pending_review)

        logger.info(
            f"Review {review_id} stored for {product.external_id}",
            extra={"external_id": product.external_id},
        )
        return review_id
