from dataclasses import dataclass
from enum import Enum


class UploadStatus(str, Enum):
    """Lifecycle status of an uploaded sustainability report."""

    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """No admin action other than delete is offered from this status."""
        return self in (UploadStatus.COMPLETED, UploadStatus.REJECTED, UploadStatus.FAILED)


class ReviewAction(str, Enum):
    """Events that move an upload between statuses."""

    APPROVE = "approve"
    REJECT = "reject"
    MARK_PROCESSING = "mark_processing"
    MARK_COMPLETED = "mark_completed"
    MARK_FAILED = "mark_failed"
    DELETE = "delete"


@dataclass(frozen=True)
class Notification:
    """Toast-style message shown to the admin after a review request."""

    title: str
    description: str
    variant: str = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of one review request as seen by the admin session."""

    upload_id: str
    action: ReviewAction
    ok: bool
    status: UploadStatus | None = None
    message: str = ""
