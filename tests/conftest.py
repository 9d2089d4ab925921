from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from greenintellect.database.models import UploadRecord
from greenintellect.review.models import UploadStatus


class RecordingSleep:
    """Async sleep stand-in that returns immediately and remembers each delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def delays_ms(self) -> list[int]:
        return [round(d * 1000) for d in self.delays]


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def make_record() -> Callable[..., UploadRecord]:
    """Build an UploadRecord with sensible defaults."""

    def _make(
        upload_id: str = "U1",
        status: UploadStatus = UploadStatus.PENDING,
        **overrides: object,
    ) -> UploadRecord:
        values: dict[str, object] = {
            "id": upload_id,
            "user_id": "user-1",
            "file_name": "Acme_2023_report.pdf",
            "status": status,
            "company_name": "Acme",
            "report_year": 2023,
            "file_path": "user-1/Acme_2023_report.pdf",
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return UploadRecord(**values)  # type: ignore[arg-type]

    return _make
