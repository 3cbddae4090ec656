"""
File-related schemas.

FileRecord unifies the original/short URL pairs produced by the write and
read services into one display-ready record.
"""

from __future__ import annotations

import mimetypes

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FileRecord(BaseModel):
    """A stored file as reported by the write service (upload) or read service (listing).

    ``original_*`` URLs always resolve directly against the read service.
    ``short_*`` URLs exist only when the shortening step succeeded and are
    preferred for display and sharing when present.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 7,
                "name": "report.pdf",
                "size": 245760,
                "keyId": "k_9f2c",
                "OriginalViewUrl": "http://localhost:8080/files/k_9f2c/view",
                "OriginalDownloadUrl": "http://localhost:8080/files/k_9f2c/download",
                "ShortViewUrl": "http://localhost:8080/aZ3x",
                "ShortDownloadUrl": "http://localhost:8080/bQ7y",
                "createdAt": "2025-01-15T10:30:00Z",
            }
        },
    )

    id: int | str
    display_name: str = Field(..., validation_alias=AliasChoices("display_name", "name", "displayName", "filename"))
    size_bytes: int = Field(default=0, ge=0, validation_alias=AliasChoices("size_bytes", "size", "sizeBytes"))
    key_id: str | None = Field(default=None, validation_alias=AliasChoices("key_id", "keyId"))
    original_view_url: str = Field(
        ..., validation_alias=AliasChoices("original_view_url", "OriginalViewUrl", "originalViewUrl")
    )
    original_download_url: str = Field(
        ..., validation_alias=AliasChoices("original_download_url", "OriginalDownloadUrl", "originalDownloadUrl")
    )
    short_view_url: str | None = Field(
        default=None, validation_alias=AliasChoices("short_view_url", "ShortViewUrl", "shortViewUrl")
    )
    short_download_url: str | None = Field(
        default=None, validation_alias=AliasChoices("short_download_url", "ShortDownloadUrl", "shortDownloadUrl")
    )
    created_at: datetime | None = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("short_view_url", "short_download_url", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("key_id", mode="before")
    @classmethod
    def key_as_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def preferred_view_url(self) -> str:
        return self.short_view_url or self.original_view_url

    @property
    def preferred_download_url(self) -> str:
        return self.short_download_url or self.original_download_url

    @property
    def has_short_links(self) -> bool:
        return self.short_view_url is not None or self.short_download_url is not None


class ShareLinks(BaseModel):
    """Preferred view/download links for one file."""

    model_config = ConfigDict(frozen=True)

    file_id: int | str
    view_url: str
    download_url: str
    shortened: bool


class UploadFile(BaseModel):
    """In-memory file handed to the write service as one multipart part."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1)
    content: bytes = Field(..., repr=False)
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> UploadFile:
        file_path = Path(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return cls(
            filename=file_path.name,
            content=file_path.read_bytes(),
            content_type=content_type or guessed or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)

    def as_multipart(self, field_name: str) -> tuple[str, tuple[str, bytes, str]]:
        """httpx ``files=`` entry for this file."""
        return (field_name, (self.filename, self.content, self.content_type))
