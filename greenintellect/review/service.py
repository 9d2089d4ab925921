"""Admin review workflow for uploaded reports.

One UploadReviewService belongs to one admin session. It allows at most one
in-flight transition per upload id, never treats a transition as committed
until the storage write returns, and reconciles with storage by reloading
the record set a fixed delay after each successful write.

The guard is local to the session. Two admins in different sessions can
still race on the same row and the last write wins.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from greenintellect.database.models import StatusUpdate, UploadRecord
from greenintellect.logging.logger import Log
from greenintellect.review.exceptions import ConcurrentUpdateRejected, ReviewError
from greenintellect.review.models import Notification, ReviewAction, ReviewResult, UploadStatus
from greenintellect.review.state_machine import plan_transition

Notifier = Callable[[Notification], None]
Refresher = Callable[[], Awaitable[None]]
Sleeper = Callable[[float], Awaitable[None]]


class UploadStore(Protocol):
    """Storage operations the review workflow depends on."""

    async def update_status(self, upload_id: str, update: StatusUpdate) -> UploadRecord: ...

    async def delete(self, upload_id: str) -> None: ...


def log_notifier(notification: Notification) -> None:
    """Default notifier: write the toast to the application log."""
    if notification.is_error:
        Log.error(f"{notification.title}: {notification.description}")
    else:
        Log.info(f"{notification.title}: {notification.description}")


class UploadReviewService:
    """Applies review transitions to uploads with a per-record single-flight guard."""

    def __init__(
        self,
        store: UploadStore,
        *,
        refresh_delay_seconds: float = 1.0,
        notifier: Notifier | None = None,
        on_refresh: Refresher | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._store = store
        self._refresh_delay_seconds = refresh_delay_seconds
        self._notify = notifier or log_notifier
        self._on_refresh = on_refresh
        self._sleep = sleep
        self._updating: set[str] = set()
        self._pending_refreshes: set[asyncio.Task[None]] = set()
        self._alive = True

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def busy(self) -> bool:
        """True while any transition is in flight (disables bulk refresh)."""
        return bool(self._updating)

    def is_updating(self, upload_id: str) -> bool:
        return upload_id in self._updating

    async def approve(self, record: UploadRecord) -> ReviewResult:
        return await self._transition(record, ReviewAction.APPROVE)

    async def reject(self, record: UploadRecord, reason: str) -> ReviewResult:
        return await self._transition(record, ReviewAction.REJECT, reason=reason)

    async def mark_processing(self, record: UploadRecord) -> ReviewResult:
        return await self._transition(record, ReviewAction.MARK_PROCESSING)

    async def mark_completed(
        self, record: UploadRecord, analysis_results: dict[str, Any]
    ) -> ReviewResult:
        return await self._transition(
            record, ReviewAction.MARK_COMPLETED, analysis_results=analysis_results
        )

    async def mark_failed(self, record: UploadRecord, detail: str) -> ReviewResult:
        return await self._transition(record, ReviewAction.MARK_FAILED, reason=detail)

    async def delete(self, record: UploadRecord) -> ReviewResult:
        """Remove an upload. Allowed from any status and irreversible."""
        action = ReviewAction.DELETE
        try:
            self._ensure_not_in_flight(record.id, action)
        except ConcurrentUpdateRejected as exc:
            return self._refused(record, action, exc)

        self._updating.add(record.id)
        try:
            await self._store.delete(record.id)
        except Exception as exc:
            Log.error(f"Failed to delete upload {record.id}: {exc}")
            if self._alive:
                self._notify(Notification("Error", "Failed to delete upload.", "destructive"))
            return _failed(record, action, str(exc))
        finally:
            self._updating.discard(record.id)

        Log.info(f"Upload {record.id} deleted")
        if self._alive:
            self._notify(Notification("Success", "Upload deleted successfully."))
            if self._on_refresh is not None:
                await self._on_refresh()
        return ReviewResult(record.id, action, ok=True)

    async def wait_for_reconciliation(self) -> None:
        """Wait until every scheduled reload has run."""
        while self._pending_refreshes:
            await asyncio.gather(*list(self._pending_refreshes), return_exceptions=True)

    async def close(self) -> None:
        """Detach the session: stop notifying and drop scheduled reloads."""
        self._alive = False
        for task in list(self._pending_refreshes):
            task.cancel()
        if self._pending_refreshes:
            await asyncio.gather(*self._pending_refreshes, return_exceptions=True)
        self._pending_refreshes.clear()

    async def _transition(
        self,
        record: UploadRecord,
        action: ReviewAction,
        *,
        reason: str | None = None,
        analysis_results: dict[str, Any] | None = None,
    ) -> ReviewResult:
        try:
            self._ensure_not_in_flight(record.id, action)
            update = plan_transition(
                record, action, reason=reason, analysis_results=analysis_results
            )
        except ReviewError as exc:
            return self._refused(record, action, exc)

        Log.info(f"Upload {record.id}: {record.status.value} -> {update.status.value}")
        self._updating.add(record.id)
        try:
            stored = await self._store.update_status(record.id, update)
        except Exception as exc:
            message = f"Database update failed: {exc}"
            Log.error(f"Upload {record.id} status update failed: {exc}")
            if self._alive:
                self._notify(Notification("Update Failed", message, "destructive"))
            return _failed(record, action, message)
        finally:
            self._updating.discard(record.id)

        Log.debug(f"Upload {record.id} stored as {stored.status.value}")
        if self._alive:
            self._notify(
                Notification("Status Updated Successfully", f"Upload {_describe(update)}.")
            )
            self._schedule_refresh()
        return ReviewResult(record.id, action, ok=True, status=update.status)

    def _ensure_not_in_flight(self, upload_id: str, action: ReviewAction) -> None:
        if upload_id in self._updating:
            Log.warning(f"Ignoring {action.value} on upload {upload_id}: update already in flight")
            raise ConcurrentUpdateRejected(upload_id)

    def _refused(
        self, record: UploadRecord, action: ReviewAction, exc: ReviewError
    ) -> ReviewResult:
        """Report a request refused before any write. Storage is left untouched."""
        Log.warning(f"Refused {action.value} on upload {record.id}: {exc}")
        if self._alive:
            self._notify(Notification("Update Failed", str(exc), "destructive"))
        return _failed(record, action, str(exc))

    def _schedule_refresh(self) -> None:
        if self._on_refresh is None:
            return
        task = asyncio.get_running_loop().create_task(self._refresh_later())
        self._pending_refreshes.add(task)
        task.add_done_callback(self._pending_refreshes.discard)

    async def _refresh_later(self) -> None:
        await self._sleep(self._refresh_delay_seconds)
        if not self._alive or self._on_refresh is None:
            return
        Log.debug("Reloading uploads to reconcile with storage")
        await self._on_refresh()


def _describe(update: StatusUpdate) -> str:
    if update.status is UploadStatus.REJECTED:
        return f"rejected: {update.error_message}"
    return update.status.value


def _failed(record: UploadRecord, action: ReviewAction, message: str) -> ReviewResult:
    return ReviewResult(record.id, action, ok=False, status=record.status, message=message)
