"""
Smart Reviews error types shared across the store, the completion
clients and the synthesis pipeline.
"""


class SmartReviewsError(Exception):
    """Base class for errors surfaced to the submission caller."""
    pass


class NotFoundError(SmartReviewsError):
    """A product or review required by id does not exist."""
    pass


class StorageError(SmartReviewsError):
    """Database operation error."""
    pass


class GenerationError(SmartReviewsError):
    """The completion service failed or returned unusable text."""
    pass
