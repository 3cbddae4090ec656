"""Tests for file listing and uploads."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import pytest

from chloride.api.service_router import ServiceRouter
from chloride.api.services.file_catalog import (
    FileCatalog,
    select_recent,
    share_links,
    upload_success_message,
)
from chloride.core.constants import Settings
from chloride.models.error_models import (
    MalformedResponse,
    QuotaExceeded,
    ServiceUnavailable,
    Unauthorized,
    UploadRejected,
)
from chloride.models.schemas.auth import Session
from chloride.models.schemas.files import FileRecord, UploadFile

if TYPE_CHECKING:
    from conftest import FakeBackend

FILES_URL = "http://read.test/api/files/my-files"
SINGLE_URL = "http://write.test/api/upload/single"
MULTIPLE_URL = "http://write.test/api/upload/multiple"

FileBody = Callable[..., dict[str, Any]]


@pytest.fixture
def catalog(router: ServiceRouter, settings: Settings) -> FileCatalog:
    return FileCatalog(router, settings=settings)


def _records(file_body: FileBody, *ids: int) -> list[FileRecord]:
    return [FileRecord.model_validate(file_body(i)) for i in ids]


class TestSelectRecent:
    """Tests for select_recent."""

    def test_tail_newest_first(self, file_body: FileBody) -> None:
        files = _records(file_body, 1, 2, 3, 4, 5, 6, 7)

        recent = select_recent(files, 5)

        assert [f.id for f in recent] == [7, 6, 5, 4, 3]

    def test_fewer_than_limit(self, file_body: FileBody) -> None:
        files = _records(file_body, 1, 2)

        assert [f.id for f in select_recent(files, 5)] == [2, 1]

    def test_zero_limit(self, file_body: FileBody) -> None:
        assert select_recent(_records(file_body, 1), 0) == []

    def test_negative_limit(self) -> None:
        with pytest.raises(ValueError):
            select_recent([], -1)


class TestHelpers:
    def test_share_links_prefer_short(self, file_body: FileBody) -> None:
        links = share_links(FileRecord.model_validate(file_body(3)))

        assert links.view_url == "http://read.test/v3"
        assert links.download_url == "http://read.test/d3"
        assert links.shortened is True

    def test_share_links_fall_back_to_original(self, file_body: FileBody) -> None:
        links = share_links(FileRecord.model_validate(file_body(3, short=False)))

        assert links.view_url == "http://read.test/files/k3/view"
        assert links.shortened is False

    def test_upload_success_message(self) -> None:
        assert upload_success_message(1) == "File uploaded successfully!"
        assert upload_success_message(3) == "3 files uploaded successfully!"


class TestListMyFiles:
    """Tests for FileCatalog.list_my_files."""

    @pytest.mark.asyncio
    async def test_bare_list(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("GET", FILES_URL, json=[file_body(1), file_body(2)])

        files = await catalog.list_my_files(user_session)

        assert [f.id for f in files] == [1, 2]

    @pytest.mark.asyncio
    async def test_wrapped_list(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("GET", FILES_URL, json={"files": [file_body(1)]})

        files = await catalog.list_my_files(user_session)

        assert files[0].display_name == "file-1.txt"

    @pytest.mark.asyncio
    async def test_empty_listing(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("GET", FILES_URL, json={"files": []})

        assert await catalog.list_my_files(user_session) == []

    @pytest.mark.asyncio
    async def test_unknown_shape(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("GET", FILES_URL, json={"items": []})

        with pytest.raises(MalformedResponse):
            await catalog.list_my_files(user_session)

    @pytest.mark.asyncio
    async def test_invalid_record(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("GET", FILES_URL, json=[{"id": 1}])

        with pytest.raises(MalformedResponse):
            await catalog.list_my_files(user_session)

    @pytest.mark.asyncio
    async def test_sends_bearer(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("GET", FILES_URL, json=[])

        await catalog.list_my_files(user_session)

        assert backend.requests[0].headers["authorization"] == f"Bearer {user_session.token}"


class TestRecentFiles:
    @pytest.mark.asyncio
    async def test_default_limit(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("GET", FILES_URL, json=[file_body(i) for i in range(1, 9)])

        recent = await catalog.recent_files(user_session)

        assert [f.id for f in recent] == [8, 7, 6, 5, 4]

    @pytest.mark.asyncio
    async def test_failure_degrades_to_empty(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session
    ) -> None:
        backend.add("GET", FILES_URL, status=500)

        assert await catalog.recent_files(user_session, 3) == []


class TestUploads:
    """Tests for single/multi uploads."""

    @pytest.mark.asyncio
    async def test_single_upload_multipart_field(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("POST", SINGLE_URL, status=201, json={"file": file_body(10, name="a.txt")})

        record = await catalog.upload_single(user_session, UploadFile(filename="a.txt", content=b"hello"))

        assert record.id == 10
        request = backend.requests[0]
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="file"; filename="a.txt"' in request.content
        assert request.headers["authorization"] == f"Bearer {user_session.token}"

    @pytest.mark.asyncio
    async def test_single_upload_bare_object(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("POST", SINGLE_URL, json=file_body(11))

        record = await catalog.upload_single(user_session, UploadFile(filename="b.txt", content=b"x"))

        assert record.id == 11

    @pytest.mark.asyncio
    async def test_multiple_upload_uses_files_field(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("POST", MULTIPLE_URL, json={"files": [file_body(1), file_body(2)]})
        uploads = [UploadFile(filename=f"{n}.txt", content=b"x") for n in ("one", "two")]

        records = await catalog.upload_multiple(user_session, uploads)

        assert [r.id for r in records] == [1, 2]
        body = backend.requests[0].content
        assert body.count(b'name="files"') == 2

    @pytest.mark.asyncio
    async def test_multiple_upload_requires_files(self, catalog: FileCatalog, user_session: Session) -> None:
        with pytest.raises(ValueError):
            await catalog.upload_multiple(user_session, [])

    @pytest.mark.asyncio
    async def test_quota_by_status(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("POST", SINGLE_URL, status=413, json={"message": "Payload too large"})

        with pytest.raises(QuotaExceeded, match="Payload too large"):
            await catalog.upload_single(user_session, UploadFile(filename="big.bin", content=b"x"))

    @pytest.mark.asyncio
    async def test_quota_by_message(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("POST", MULTIPLE_URL, status=400, json={"message": "File limit exceeded for plan FREE"})

        with pytest.raises(QuotaExceeded) as exc_info:
            await catalog.upload_multiple(user_session, [UploadFile(filename="a", content=b"x")] * 2)

        assert exc_info.value.message == "File limit exceeded for plan FREE"

    @pytest.mark.asyncio
    async def test_other_rejection(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.add("POST", SINGLE_URL, status=400)

        with pytest.raises(UploadRejected, match="Upload failed"):
            await catalog.upload_single(user_session, UploadFile(filename="a", content=b"x"))

    @pytest.mark.asyncio
    async def test_network_failure(self, catalog: FileCatalog, backend: FakeBackend, user_session: Session) -> None:
        backend.fail("POST", SINGLE_URL)

        with pytest.raises(ServiceUnavailable):
            await catalog.upload_single(user_session, UploadFile(filename="a", content=b"x"))

    @pytest.mark.asyncio
    async def test_expired_token(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session
    ) -> None:
        backend.add("POST", SINGLE_URL, status=401)

        with pytest.raises(Unauthorized):
            await catalog.upload_single(user_session, UploadFile(filename="a", content=b"x"))


class TestUploadAndRefresh:
    """Listing is fetched only after a successful upload."""

    @pytest.mark.asyncio
    async def test_single_file_then_listing(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session, file_body: FileBody
    ) -> None:
        backend.add("POST", SINGLE_URL, json={"file": file_body(3)})
        backend.add("GET", FILES_URL, json=[file_body(1), file_body(2), file_body(3)])

        outcome = await catalog.upload_and_refresh(user_session, [UploadFile(filename="c.txt", content=b"c")])

        assert [f.id for f in outcome.uploaded] == [3]
        assert [f.id for f in outcome.listing] == [1, 2, 3]
        assert outcome.message == "File uploaded successfully!"
        assert [r.method for r in backend.requests] == ["POST", "GET"]

    @pytest.mark.asyncio
    async def test_failed_upload_skips_listing(
        self, catalog: FileCatalog, backend: FakeBackend, user_session: Session
    ) -> None:
        backend.add("POST", MULTIPLE_URL, status=400, json={"message": "Too many files"})

        with pytest.raises(UploadRejected):
            await catalog.upload_and_refresh(
                user_session, [UploadFile(filename=f"{i}", content=b"x") for i in range(2)]
            )

        assert backend.requests_to("GET", FILES_URL) == []
