"""
Regeneration triggers for the synthesized review artifacts.

Evaluated before the incoming review is stored: a fire at count `c`
means the review being submitted is the (c+1)-th and lands on a
period boundary.
"""

SUMMARY_PERIOD = 3
KEYWORD_PERIOD = 2


def should_trigger(current_review_count: int, period: int) -> bool:
    """True iff (current_review_count + 1) is a multiple of period."""
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")
    if current_review_count < 0:
        raise ValueError(f"review count cannot be negative, got {current_review_count}")
    return (current_review_count + 1) % period == 0
