"""File catalog: listing and uploading the current user's files.

Uploads go to the write service, listings come from the read service. Both
answer with FileRecord payloads whose original/short URL pairs are already
unified by the backend; the client only aggregates, orders and picks the
preferred link.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from chloride.api.service_router import Service, ServiceRouter
from chloride.core.constants import (
    MSG_UPLOAD_FAILED,
    MSG_UPLOAD_MULTIPLE_OK,
    MSG_UPLOAD_SINGLE_OK,
    MY_FILES_PATH,
    QUOTA_MESSAGE_MARKERS,
    QUOTA_STATUS_CODES,
    UPLOAD_MULTIPLE_FIELD,
    UPLOAD_MULTIPLE_PATH,
    UPLOAD_SINGLE_FIELD,
    UPLOAD_SINGLE_PATH,
    Settings,
    get_settings,
)
from chloride.models.error_models import (
    ChlorideError,
    MalformedResponse,
    QuotaExceeded,
    RequestRejected,
    UploadRejected,
)
from chloride.models.schemas.auth import Session
from chloride.models.schemas.files import FileRecord, ShareLinks, UploadFile
from chloride.utils.json_utils import bare_list, bare_object, decode_collection, wrapped_list, wrapped_object
from chloride.utils.logger import logger

_LISTING_SHAPES = (wrapped_list("files"), bare_list)
_UPLOAD_SHAPES = (
    wrapped_list("files"),
    wrapped_object("file"),
    bare_list,
    bare_object(("id",)),
)


@dataclass
class UploadOutcome:
    """Result of upload_and_refresh: what was created and the listing fetched after it."""

    uploaded: list[FileRecord]
    listing: list[FileRecord] = field(default_factory=list)
    message: str = ""


def decode_file_records(data: Any, shapes: Sequence[Any] = _LISTING_SHAPES, what: str = "file listing") -> list[FileRecord]:
    """Validate every record of a bare or wrapped collection.

    Raises:
        MalformedResponse: unknown shape or an invalid record
    """
    items = decode_collection(data, shapes, what)
    try:
        return [FileRecord.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedResponse(f"Invalid file record in {what}") from e


def select_recent(files: Sequence[FileRecord], limit: int) -> list[FileRecord]:
    """Last ``limit`` records of a listing, most recent first.

    The read service returns insertion order and offers no server-side
    "recent" sort, so recency is the tail of the listing.
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")
    if limit == 0:
        return []
    return list(reversed(files[-limit:]))


def share_links(record: FileRecord) -> ShareLinks:
    return ShareLinks(
        file_id=record.id,
        view_url=record.preferred_view_url,
        download_url=record.preferred_download_url,
        shortened=record.has_short_links,
    )


def upload_success_message(count: int) -> str:
    if count == 1:
        return MSG_UPLOAD_SINGLE_OK
    return MSG_UPLOAD_MULTIPLE_OK.format(count=count)


def _translate_upload_error(error: RequestRejected) -> ChlorideError:
    lowered = (error.detail or "").lower()
    if error.status_code in QUOTA_STATUS_CODES or any(marker in lowered for marker in QUOTA_MESSAGE_MARKERS):
        return QuotaExceeded(error.detail, status_code=error.status_code)
    return UploadRejected(error.detail or MSG_UPLOAD_FAILED, status_code=error.status_code)


class FileCatalog:
    """Lists and uploads files for the session's owner."""

    def __init__(self, router: ServiceRouter, settings: Settings | None = None):
        self.router = router
        self.settings = settings or get_settings()

    async def list_my_files(self, session: Session) -> list[FileRecord]:
        """All of the user's files in service order (typically insertion order).

        An empty listing is an empty list, not an error.
        """
        response = await self.router.call(Service.READ, MY_FILES_PATH, authorized=True, session=session)
        files = decode_file_records(response.data)
        logger.debug(f"Listed {len(files)} files for subject {session.subject_id}")
        return files

    async def recent_files(self, session: Session, limit: int | None = None) -> list[FileRecord]:
        """Most recent ``limit`` files, newest first.

        A failed fetch degrades to an empty list so the calling view still renders.
        """
        limit = self.settings.recent_files_limit if limit is None else limit
        try:
            files = await self.list_my_files(session)
        except ChlorideError as e:
            logger.warning(f"Recent files unavailable: {e.message}")
            return []
        return select_recent(files, limit)

    async def upload_single(self, session: Session, file: UploadFile) -> FileRecord:
        """Upload one file through the single-file endpoint.

        Raises:
            QuotaExceeded: the write service reports a quota/limit violation
            UploadRejected: any other rejection, with the server's message
            ServiceUnavailable: network failure or 5xx
        """
        records = await self._upload(session, UPLOAD_SINGLE_PATH, [file.as_multipart(UPLOAD_SINGLE_FIELD)])
        if not records:
            raise MalformedResponse("Upload response carries no file record")
        return records[0]

    async def upload_multiple(self, session: Session, files: Sequence[UploadFile]) -> list[FileRecord]:
        """Upload several files in one call.

        The per-call ceiling is plan-dependent and enforced by the write
        service; its rejection is surfaced verbatim.
        """
        if not files:
            raise ValueError("upload_multiple needs at least one file")
        return await self._upload(session, UPLOAD_MULTIPLE_PATH, [f.as_multipart(UPLOAD_MULTIPLE_FIELD) for f in files])

    async def upload_and_refresh(self, session: Session, files: Sequence[UploadFile]) -> UploadOutcome:
        """Upload, then re-list only after the upload succeeded.

        One file goes through the single endpoint, more through the multi
        endpoint. Upload failures propagate and no listing is fetched.
        """
        if len(files) == 1:
            uploaded = [await self.upload_single(session, files[0])]
        else:
            uploaded = await self.upload_multiple(session, files)

        listing = await self.list_my_files(session)
        return UploadOutcome(uploaded=uploaded, listing=listing, message=upload_success_message(len(files)))

    async def _upload(
        self,
        session: Session,
        path: str,
        parts: list[tuple[str, tuple[str, bytes, str]]],
    ) -> list[FileRecord]:
        logger.info(f"Uploading {len(parts)} file(s) for subject {session.subject_id}")
        try:
            response = await self.router.call(Service.WRITE, path, "POST", files=parts, authorized=True, session=session)
        except RequestRejected as e:
            raise _translate_upload_error(e) from e

        records = decode_file_records(response.data, _UPLOAD_SHAPES, "upload")
        logger.info(f"Uploaded {len(records)} file(s)")
        return records
