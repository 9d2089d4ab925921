from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from greenintellect.database.connection import get_connection
from greenintellect.database.models import StatusUpdate, UploadRecord
from greenintellect.review.exceptions import StaleStatusError, UploadNotFoundError
from greenintellect.review.models import UploadStatus

_COLUMNS = """
    u.id, u.user_id, u.company_name, u.report_year, u.file_name, u.file_path,
    u.upload_status, u.error_message, u.analysis_results, u.analyzed_at,
    u.created_at, u.updated_at, p.full_name AS user_full_name
"""

_FROM = "FROM pdf_uploads u LEFT JOIN profiles p ON p.id = u.user_id"


def _to_record(row: dict[str, Any]) -> UploadRecord:
    return UploadRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        file_name=row["file_name"],
        status=UploadStatus(row["upload_status"]),
        company_name=row.get("company_name"),
        report_year=row.get("report_year"),
        file_path=row.get("file_path"),
        error_message=row.get("error_message"),
        analysis_results=row.get("analysis_results"),
        user_full_name=row.get("user_full_name"),
        analyzed_at=row.get("analyzed_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class PdfUploadsRepository:
    """Database operations for the pdf_uploads table."""

    async def create(
        self,
        *,
        user_id: str,
        company_name: str,
        report_year: int,
        file_name: str,
        file_path: str,
    ) -> UploadRecord:
        """Insert a new upload in the pending status and return it."""
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    INSERT INTO pdf_uploads
                        (user_id, company_name, report_year, file_name, file_path,
                         upload_status, processing_progress)
                    VALUES (%s, %s, %s, %s, %s, 'pending', 0)
                    RETURNING id
                    """,
                    (user_id, company_name, report_year, file_name, file_path),
                )
                row = await cur.fetchone()
            await conn.commit()

        return await self.find_by_id(str(row["id"]))

    async def find_by_id(self, upload_id: str) -> UploadRecord:
        """Find an upload by ID.

        Raises:
            UploadNotFoundError: if no upload with this ID exists.
        """
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"SELECT {_COLUMNS} {_FROM} WHERE u.id = %s",
                    (upload_id,),
                )
                row = await cur.fetchone()

        if row is None:
            raise UploadNotFoundError(f"Upload {upload_id} not found")
        return _to_record(row)

    async def list_all(self) -> list[UploadRecord]:
        """Return every upload, newest first, with the uploader's display name."""
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(f"SELECT {_COLUMNS} {_FROM} ORDER BY u.created_at DESC")
                rows = await cur.fetchall()
        return [_to_record(row) for row in rows]

    async def list_for_user(self, user_id: str) -> list[UploadRecord]:
        """Return one user's uploads, newest first."""
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"SELECT {_COLUMNS} {_FROM} WHERE u.user_id = %s ORDER BY u.created_at DESC",
                    (user_id,),
                )
                rows = await cur.fetchall()
        return [_to_record(row) for row in rows]

    async def find_next_approved(self) -> UploadRecord | None:
        """Return the oldest approved upload waiting for analysis, if any."""
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    f"""
                    SELECT {_COLUMNS} {_FROM}
                    WHERE u.upload_status = 'approved'
                    ORDER BY u.created_at
                    LIMIT 1
                    """
                )
                row = await cur.fetchone()
        return _to_record(row) if row is not None else None

    async def update_status(self, upload_id: str, update: StatusUpdate) -> UploadRecord:
        """Write a status transition and return the post-write row.

        error_message is always written, so any status other than rejected or
        failed leaves it NULL. analysis_results and analyzed_at are only set
        on completion. When update.expected_status is set the write is a
        compare-and-set on upload_status, so two workers cannot both claim
        the same approved upload.

        Raises:
            UploadNotFoundError: if no upload with this ID exists.
            StaleStatusError: if the row no longer holds update.expected_status.
        """
        if update.status is UploadStatus.COMPLETED:
            query = """
                UPDATE pdf_uploads
                SET upload_status = %s, error_message = %s, updated_at = NOW(),
                    analysis_results = %s, analyzed_at = NOW()
                WHERE id = %s
            """
            params: tuple[Any, ...] = (
                update.status.value,
                update.error_message,
                Jsonb(update.analysis_results or {}),
                upload_id,
            )
        else:
            query = """
                UPDATE pdf_uploads
                SET upload_status = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s
            """
            params = (update.status.value, update.error_message, upload_id)

        if update.expected_status is not None:
            query += " AND upload_status = %s"
            params = (*params, update.expected_status.value)

        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                if cur.rowcount == 0:
                    if update.expected_status is not None:
                        raise StaleStatusError(
                            f"Upload {upload_id} is no longer '{update.expected_status.value}'"
                        )
                    raise UploadNotFoundError(f"Upload {upload_id} not found")
            await conn.commit()

        return await self.find_by_id(upload_id)

    async def delete(self, upload_id: str) -> None:
        """Remove an upload row.

        Raises:
            UploadNotFoundError: if no upload with this ID exists.
        """
        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM pdf_uploads WHERE id = %s", (upload_id,))
                if cur.rowcount == 0:
                    raise UploadNotFoundError(f"Upload {upload_id} not found")
            await conn.commit()

    async def delete_for_user(self, upload_id: str, user_id: str) -> None:
        """Remove an upload only if it belongs to the given user."""
        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "DELETE FROM pdf_uploads WHERE id = %s AND user_id = %s",
                    (upload_id, user_id),
                )
                if cur.rowcount == 0:
                    raise UploadNotFoundError(f"Upload {upload_id} not found for user {user_id}")
            await conn.commit()
