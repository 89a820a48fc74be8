"""
Prompt assembly for review synthesis.

Only human reviews feed the prompts; the synthesized summary review is
filtered out so generation never consumes its own output.
"""

from typing import Iterable, List

from .review_models import Review


SUMMARY_DIRECTIVE = (
    "Need a summary of these reviews in English with less than 200 characters. "
    "Return only the summary, do not add anything else.\n"
)

KEYWORD_DIRECTIVE = (
    "Of this list of reviews separated by a new line, take at most the 5 most important "
    "and repeated keywords and only return them in this format: "
    "word1,word2,word3,word4,word5\n"
)


def human_reviews(reviews: Iterable[Review]) -> List[Review]:
    """Drop synthesized reviews, keeping the input order."""
    return [r for r in reviews if not r.is_synthetic]


def build_summary_prompt(reviews: Iterable[Review]) -> str:
    """Summary directive followed by one `title:... Review:...` line per human review."""
    lines = [
        f"title:{r.title} Review:{r.content}\n"
        for r in human_reviews(reviews)
    ]
    return SUMMARY_DIRECTIVE + "".join(lines)


def build_keyword_prompt(reviews: Iterable[Review]) -> str:
    """Keyword directive followed by the content of each human review, one per line."""
    lines = [f"{r.content}\n" for r in human_reviews(reviews)]
    return KEYWORD_DIRECTIVE + "".join(lines)


def parse_keywords(keywords: str) -> List[str]:
    """Split a stored keyword string for display. Empty string gives no keywords."""
    if not keywords:
        return []
    return keywords.split(",")
