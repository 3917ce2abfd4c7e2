"""Schemas describing stored uploads."""
from __future__ import annotations

from .common import CamelModel


class UploadedFileResponse(CamelModel):
    url: str
    original_name: str | None = None
    size: int
    mimetype: str


class MultipleUploadResponse(CamelModel):
    urls: list[str]
    files: list[UploadedFileResponse]


__all__ = ["UploadedFileResponse", "MultipleUploadResponse"]
