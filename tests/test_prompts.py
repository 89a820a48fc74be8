"""
Tests for summary and keyword prompt assembly.

Usage:
    pytest tests/test_prompts.py -v
"""

from smartreviews.reviews.prompts import (
    SUMMARY_DIRECTIVE,
    KEYWORD_DIRECTIVE,
    build_summary_prompt,
    build_keyword_prompt,
    human_reviews,
    parse_keywords,
)
from smartreviews.reviews.review_models import Review


def make_review(content: str, title: str = "Title", rating: int = 4) -> Review:
    return Review(product_id=1, author="Customer", title=title, content=content, rating=rating)


REVIEWS = [
    make_review("Battery lasts two days.", title="Great battery"),
    make_review("Screen scratches easily.", title="Fragile screen", rating=2),
]

SYNTHETIC = Review.synthetic(1, "PREVIOUS SUMMARY TEXT")


class TestSummaryPrompt:

    def test_starts_with_directive(self):
        prompt = build_summary_prompt(REVIEWS)
        assert prompt.startswith(SUMMARY_DIRECTIVE)
        assert "200 characters" in SUMMARY_DIRECTIVE
        assert "English" in SUMMARY_DIRECTIVE

    def test_includes_title_and_content_per_review(self):
        prompt = build_summary_prompt(REVIEWS)
        assert "title:Great battery Review:Battery lasts two days.\n" in prompt
        assert "title:Fragile screen Review:Screen scratches easily.\n" in prompt

    def test_keeps_review_order(self):
        prompt = build_summary_prompt(REVIEWS)
        assert prompt.index("Great battery") < prompt.index("Fragile screen")

    def test_excludes_synthetic_review(self):
        prompt = build_summary_prompt([SYNTHETIC] + REVIEWS)
        assert "PREVIOUS SUMMARY TEXT" not in prompt
        assert prompt == build_summary_prompt(REVIEWS)

    def test_empty_input_yields_directive_only(self):
        assert build_summary_prompt([]) == SUMMARY_DIRECTIVE
        assert build_summary_prompt([SYNTHETIC]) == SUMMARY_DIRECTIVE


class TestKeywordPrompt:

    def test_starts_with_directive(self):
        prompt = build_keyword_prompt(REVIEWS)
        assert prompt.startswith(KEYWORD_DIRECTIVE)
        assert "word1,word2,word3,word4,word5" in KEYWORD_DIRECTIVE

    def test_content_only(self):
        prompt = build_keyword_prompt(REVIEWS)
        assert "Battery lasts two days.\n" in prompt
        assert "Great battery" not in prompt

    def test_excludes_synthetic_review(self):
        prompt = build_keyword_prompt(REVIEWS + [SYNTHETIC])
        assert "PREVIOUS SUMMARY TEXT" not in prompt

    def test_empty_input_yields_directive_only(self):
        assert build_keyword_prompt([]) == KEYWORD_DIRECTIVE


class TestHelpers:

    def test_human_reviews_filters_synthetic(self):
        assert human_reviews([SYNTHETIC] + REVIEWS) == REVIEWS

    def test_parse_keywords_splits_on_commas(self):
        assert parse_keywords("battery,screen,price") == ["battery", "screen", "price"]

    def test_parse_keywords_is_literal(self):
        """No trimming: the stored value is trusted as formatted."""
        assert parse_keywords("battery, screen") == ["battery", " screen"]

    def test_parse_keywords_empty(self):
        assert parse_keywords("") == []
