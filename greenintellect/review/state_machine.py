"""Transition rules for the upload review lifecycle.

Pure functions only: they decide what a transition writes, never perform it.

    pending            --approve-->          approved    (clear error)
    rejected | failed  --approve-->          approved    (admin override, clear error)
    pending            --reject(reason)-->   rejected    (error = reason)
    pending | approved --mark_processing-->  processing  (clear error)
    processing         --mark_completed-->   completed   (attach analysis)
    processing         --mark_failed-->      failed      (error = detail)
    any                --delete-->           (row removed)
"""

from typing import Any

from greenintellect.database.models import StatusUpdate, UploadRecord
from greenintellect.review.exceptions import InvalidTransitionError, ReviewValidationError
from greenintellect.review.models import ReviewAction, UploadStatus

TRANSITIONS: dict[ReviewAction, tuple[frozenset[UploadStatus], UploadStatus]] = {
    ReviewAction.APPROVE: (
        frozenset({UploadStatus.PENDING, UploadStatus.REJECTED, UploadStatus.FAILED}),
        UploadStatus.APPROVED,
    ),
    ReviewAction.REJECT: (frozenset({UploadStatus.PENDING}), UploadStatus.REJECTED),
    ReviewAction.MARK_PROCESSING: (
        frozenset({UploadStatus.PENDING, UploadStatus.APPROVED}),
        UploadStatus.PROCESSING,
    ),
    ReviewAction.MARK_COMPLETED: (frozenset({UploadStatus.PROCESSING}), UploadStatus.COMPLETED),
    ReviewAction.MARK_FAILED: (frozenset({UploadStatus.PROCESSING}), UploadStatus.FAILED),
}

# What the review queue offers. Narrower than TRANSITIONS: terminal uploads only offer delete.
OFFERED_FROM: dict[ReviewAction, frozenset[UploadStatus]] = {
    ReviewAction.APPROVE: frozenset({UploadStatus.PENDING}),
    ReviewAction.REJECT: frozenset({UploadStatus.PENDING}),
    ReviewAction.DELETE: frozenset(UploadStatus),
}


def target_status(action: ReviewAction) -> UploadStatus:
    """Return the status an action moves an upload into."""
    if action is ReviewAction.DELETE:
        raise InvalidTransitionError("delete removes the record and has no target status")
    return TRANSITIONS[action][1]


def can_apply(status: UploadStatus, action: ReviewAction) -> bool:
    if action is ReviewAction.DELETE:
        return True
    allowed_from, _target = TRANSITIONS[action]
    return status in allowed_from


def available_actions(status: UploadStatus) -> list[ReviewAction]:
    """Admin actions offered for an upload in the given status."""
    return [action for action, offered in OFFERED_FROM.items() if status in offered]


def plan_transition(
    record: UploadRecord,
    action: ReviewAction,
    *,
    reason: str | None = None,
    analysis_results: dict[str, Any] | None = None,
) -> StatusUpdate:
    """Validate an action against a record and build the columns it writes.

    Args:
        record: The upload as last loaded from storage.
        action: Any action except delete.
        reason: Rejection reason or failure detail. Required for reject and mark_failed.
        analysis_results: Payload attached on mark_completed.

    Raises:
        ReviewValidationError: if a required reason is missing or blank.
        InvalidTransitionError: if the action is not allowed from the record's status.
    """
    if action is ReviewAction.DELETE:
        raise InvalidTransitionError("delete is not a status transition")

    cleaned_reason = (reason or "").strip()
    if action is ReviewAction.REJECT and not cleaned_reason:
        raise ReviewValidationError("A rejection reason is required")
    if action is ReviewAction.MARK_FAILED and not cleaned_reason:
        raise ReviewValidationError("A failure detail is required")

    if not can_apply(record.status, action):
        raise InvalidTransitionError(
            f"Cannot {action.value} upload {record.id} in status '{record.status.value}'"
        )

    target = target_status(action)
    if target in (UploadStatus.REJECTED, UploadStatus.FAILED):
        return StatusUpdate(status=target, error_message=cleaned_reason)
    if target is UploadStatus.COMPLETED:
        return StatusUpdate(status=target, analysis_results=analysis_results or {})
    if action is ReviewAction.MARK_PROCESSING:
        return StatusUpdate(status=target, expected_status=record.status)
    return StatusUpdate(status=target)
