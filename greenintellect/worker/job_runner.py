from dataclasses import replace
from enum import Enum

from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.prompt_builder import PromptBuilder
from greenintellect.database.models import UploadRecord
from greenintellect.logging.logger import Log
from greenintellect.review.models import UploadStatus
from greenintellect.review.service import UploadReviewService


class JobResult(str, Enum):
    """How one pass over an approved upload ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    NOT_CLAIMED = "not_claimed"


class AnalysisJobRunner:
    """Analyze one approved upload and record the result through the review workflow."""

    def __init__(
        self,
        review_service: UploadReviewService,
        analysis_client: BaseAnalysisClient,
        prompt_builder: PromptBuilder,
    ) -> None:
        self._review = review_service
        self._client = analysis_client
        self._prompts = prompt_builder

    async def run(self, record: UploadRecord) -> JobResult:
        """Process one upload.

        Once the upload is claimed it never stays in processing: if the
        completed write fails, the runner falls back to marking it failed.
        """
        Log.info(f"Analyzing upload {record.id} ({record.file_name})")
        claimed = await self._review.mark_processing(record)
        if not claimed.ok:
            Log.warning(f"Upload {record.id} could not be claimed: {claimed.message}")
            return JobResult.NOT_CLAIMED

        processing = replace(record, status=UploadStatus.PROCESSING, error_message=None)
        try:
            prompt = self._prompts.build_for_upload(
                record.company_name or record.file_name, record.report_year
            )
            outcome = await self._client.generate(prompt)
        except Exception as exc:
            Log.error(f"Upload {record.id} analysis crashed: {exc}")
            await self._fail(processing, f"Unexpected analysis error: {exc}")
            return JobResult.FAILED

        if not outcome.ok:
            Log.error(f"Upload {record.id} analysis failed: {outcome.message}")
            await self._fail(processing, outcome.message)
            return JobResult.FAILED

        result = await self._review.mark_completed(
            processing, {"analysis": outcome.analysis_text, "attempts": outcome.attempts}
        )
        if not result.ok:
            Log.error(f"Upload {record.id} analysis could not be stored: {result.message}")
            await self._fail(processing, f"Could not store analysis result: {result.message}")
            return JobResult.FAILED

        Log.info(f"Upload {record.id} analysis completed")
        return JobResult.COMPLETED

    async def _fail(self, processing: UploadRecord, detail: str) -> None:
        result = await self._review.mark_failed(processing, detail)
        if not result.ok:
            Log.error(
                f"Upload {processing.id} is stuck in processing, "
                f"failure could not be recorded: {result.message}"
            )
