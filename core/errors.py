"""
Iwry Review – Error types
==========================
Raised by the review store and at the outcome boundary. The scheduler
itself is total over its input domain and raises none of these.
"""


class ReviewError(Exception):
    """Base class for review scheduling errors."""


class ItemNotFound(ReviewError, LookupError):
    """The store has no review item with the requested id (for this owner)."""

    def __init__(self, item_id) -> None:
        super().__init__(f"review item {item_id!r} not found")
        self.item_id = item_id


class InvalidOutcome(ReviewError, ValueError):
    """A review outcome that is not a plain boolean."""

    def __init__(self, value) -> None:
        super().__init__(f"was_correct must be a bool, got {value!r}")
        self.value = value


class ConcurrentUpdate(ReviewError):
    """The item changed between read and write (version mismatch)."""

    def __init__(self, item_id, expected_version: int) -> None:
        super().__init__(
            f"review item {item_id!r} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.item_id = item_id
        self.expected_version = expected_version
