import asyncio

from greenintellect.config.settings import Settings
from greenintellect.database.models import UploadRecord
from greenintellect.database.repositories.pdf_uploads_repository import PdfUploadsRepository
from greenintellect.logging.logger import Log
from greenintellect.worker.job_runner import AnalysisJobRunner, JobResult


class Worker:
    """Poll loop: find approved upload -> analyze -> sleep when idle."""

    def __init__(
        self,
        upload_repo: PdfUploadsRepository,
        job_runner: AnalysisJobRunner,
        settings: Settings,
    ) -> None:
        self._upload_repo = upload_repo
        self._job_runner = job_runner
        self._settings = settings

    async def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until cancelled or interrupted.

        If max_jobs is set, stop after processing that many uploads (for testing).
        """
        Log.info("Worker started, polling for approved uploads")
        jobs_done = 0
        try:
            while max_jobs is None or jobs_done < max_jobs:
                record = await self._try_claim_upload()
                if record is None:
                    Log.debug("No approved uploads, sleeping")
                    await asyncio.sleep(self._settings.worker_poll_interval_seconds)
                    continue
                result = await self._job_runner.run(record)
                jobs_done += 1
                if result is JobResult.NOT_CLAIMED:
                    Log.debug("Upload was not claimed, backing off before the next poll")
                    await asyncio.sleep(self._settings.worker_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        except asyncio.CancelledError:
            Log.info("Worker cancelled, shutting down")
            raise

    async def _try_claim_upload(self) -> UploadRecord | None:
        """Fetch the next approved upload. Database errors are logged and retried later."""
        try:
            return await self._upload_repo.find_next_approved()
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
