from dataclasses import dataclass

from greenintellect.config.settings import Settings
from greenintellect.database.repositories.pdf_uploads_repository import PdfUploadsRepository
from greenintellect.review.queue import ReviewQueue
from greenintellect.review.service import Notifier, UploadReviewService


@dataclass
class AdminReviewSession:
    """The review queue and the service that reconciles it, for one admin."""

    queue: ReviewQueue
    service: UploadReviewService

    async def close(self) -> None:
        await self.service.close()


async def open_review_session(
    repo: PdfUploadsRepository,
    settings: Settings,
    notifier: Notifier | None = None,
) -> AdminReviewSession:
    """Load the queue and wire the service to reload it after each write."""
    queue = ReviewQueue(repo.list_all, notifier=notifier)
    service = UploadReviewService(
        repo,
        refresh_delay_seconds=settings.review_refresh_delay_seconds,
        notifier=notifier,
        on_refresh=queue.reload,
    )
    await queue.reload()
    return AdminReviewSession(queue=queue, service=service)
