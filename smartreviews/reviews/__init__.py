"""
Smart Reviews Review Pipeline
=============================

Review storage and synthesized-content pipeline.

Modules:
    review_models: Data models (Product, Review)
    review_store : Storage interface and PostgreSQL implementation
    triggers     : Regeneration period checks
    prompts      : Summary and keyword prompt assembly
    synthesis    : Coordinator keeping summary and keywords up to date
"""

from .review_models import Product, Review, SYNTHETIC_LABEL
from .review_store import ReviewStore, PostgresReviewStore
from .triggers import should_trigger, SUMMARY_PERIOD, KEYWORD_PERIOD
from .prompts import build_summary_prompt, build_keyword_prompt, parse_keywords
from .synthesis import SynthesisCoordinator, SynthesisResult
