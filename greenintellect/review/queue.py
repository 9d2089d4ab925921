import math
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from greenintellect.database.models import UploadRecord
from greenintellect.logging.logger import Log
from greenintellect.review.models import Notification, ReviewAction, UploadStatus
from greenintellect.review.service import Notifier, log_notifier
from greenintellect.review.state_machine import available_actions

PAGE_SIZE = 8


@dataclass(frozen=True)
class QueueStats:
    """Counts shown above the admin review list."""

    total: int
    by_status: dict[UploadStatus, int] = field(default_factory=dict)
    unique_companies: int = 0

    def count(self, status: UploadStatus) -> int:
        return self.by_status.get(status, 0)


class ReviewQueue:
    """The admin's loaded set of uploads, reloaded from storage on demand."""

    def __init__(
        self,
        loader: Callable[[], Awaitable[list[UploadRecord]]],
        *,
        notifier: Notifier | None = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._loader = loader
        self._notify = notifier or log_notifier
        self._page_size = page_size
        self.records: list[UploadRecord] = []

    async def reload(self) -> None:
        """Replace the record set with storage's. Keeps the old set on failure."""
        try:
            records = await self._loader()
        except Exception as exc:
            Log.error(f"Error fetching uploads: {exc}")
            self._notify(Notification("Error", "Failed to load uploads.", "destructive"))
            return
        self.records = records
        Log.debug(f"Loaded {len(records)} uploads")

    def find(self, upload_id: str) -> UploadRecord | None:
        return next((r for r in self.records if r.id == upload_id), None)

    def search(self, term: str) -> list[UploadRecord]:
        """Case-insensitive match on file name, company name or uploader name."""
        needle = term.strip().lower()
        if not needle:
            return list(self.records)
        return [
            record
            for record in self.records
            if any(
                needle in value.lower()
                for value in (record.file_name, record.company_name, record.user_full_name)
                if value
            )
        ]

    def total_pages(self, records: list[UploadRecord]) -> int:
        return math.ceil(len(records) / self._page_size)

    def page(self, records: list[UploadRecord], number: int) -> list[UploadRecord]:
        """Return the 1-based page of records. Out-of-range pages are clamped."""
        last = max(1, self.total_pages(records))
        number = min(max(1, number), last)
        start = (number - 1) * self._page_size
        return records[start : start + self._page_size]

    def stats(self) -> QueueStats:
        companies = {r.company_name for r in self.records if r.company_name}
        return QueueStats(
            total=len(self.records),
            by_status=dict(Counter(r.status for r in self.records)),
            unique_companies=len(companies),
        )

    @staticmethod
    def available_actions(record: UploadRecord) -> list[ReviewAction]:
        return available_actions(record.status)
