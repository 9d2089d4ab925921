class ReviewError(Exception):
    """Base exception for the upload review workflow."""


class ReviewValidationError(ReviewError):
    """Raised when a review request is refused before any write, e.g. an empty rejection reason."""


class InvalidTransitionError(ReviewError):
    """Raised when an action is not allowed from the upload's current status."""


class ConcurrentUpdateRejected(ReviewError):
    """Raised when a transition is already in flight for the same upload."""

    def __init__(self, upload_id: str) -> None:
        super().__init__("Update already in progress")
        self.upload_id = upload_id


class UploadNotFoundError(ReviewError):
    """Raised when an upload record cannot be found in storage."""


class StaleStatusError(ReviewError):
    """Raised when a conditional write finds the upload no longer in the expected status."""
