from dataclasses import dataclass
from datetime import datetime
from typing import Any

from greenintellect.review.models import UploadStatus


@dataclass
class UploadRecord:
    """Represents a row from the pdf_uploads table."""

    id: str
    user_id: str
    file_name: str
    status: UploadStatus
    company_name: str | None = None
    report_year: int | None = None
    file_path: str | None = None
    error_message: str | None = None
    analysis_results: dict[str, Any] | None = None
    user_full_name: str | None = None
    analyzed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class StatusUpdate:
    """Column values written by a single review transition."""

    status: UploadStatus
    error_message: str | None = None
    analysis_results: dict[str, Any] | None = None
    # When set, the write only applies while the row still holds this status.
    expected_status: UploadStatus | None = None
