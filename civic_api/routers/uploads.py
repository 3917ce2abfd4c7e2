"""Image upload endpoints backed by DigitalOcean Spaces."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from ..config import get_settings
from ..errors import InternalError, UpstreamError, ValidationError
from ..models import User
from ..schemas import ApiResponse, MultipleUploadResponse, UploadedFileResponse
from ..services import (
    StorageConfigurationError,
    StorageUploadError,
    get_current_user,
    process_image,
    upload_bytes,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["uploads"])

MAX_FILES_PER_REQUEST = 5


async def _read_validated(file: UploadFile) -> bytes:
    settings = get_settings()
    content_type = (file.content_type or "").strip().lower()
    allowed = settings.allowed_file_type_list
    if content_type not in allowed:
        raise ValidationError(f"Invalid file type. Allowed types: {', '.join(allowed)}")

    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > settings.max_file_size:
        raise ValidationError(f"File too large. Maximum size is {settings.max_file_size // (1024 * 1024)}MB")
    return data


async def _store(file: UploadFile, *, folder: str) -> UploadedFileResponse:
    """Validate, convert to WebP and upload a single file.

    Storage misconfiguration surfaces as 500 and a failed upload as 502.
    """

    data = await _read_validated(file)
    processed = process_image(data)
    try:
        stored = await upload_bytes(processed.data, content_type=processed.content_type, folder=folder)
    except StorageConfigurationError as exc:
        logger.error("File storage is not configured: %s", exc)
        raise InternalError("File storage is not configured") from exc
    except StorageUploadError as exc:  # pragma: no cover - network bound
        raise UpstreamError("Failed to upload file") from exc

    return UploadedFileResponse(
        url=stored.url,
        original_name=file.filename,
        size=len(data),
        mimetype=file.content_type or processed.content_type,
    )


@router.post("/single", response_model=ApiResponse[UploadedFileResponse])
async def upload_single_endpoint(
    file: UploadFile = File(...),
    _: User = Depends(get_current_user),
) -> ApiResponse[UploadedFileResponse]:
    return ApiResponse(data=await _store(file, folder="reports"), message="File uploaded successfully")


@router.post("/multiple", response_model=ApiResponse[MultipleUploadResponse])
async def upload_multiple_endpoint(
    files: list[UploadFile] = File(...),
    _: User = Depends(get_current_user),
) -> ApiResponse[MultipleUploadResponse]:
    if len(files) > MAX_FILES_PER_REQUEST:
        raise ValidationError(f"Too many files. Maximum is {MAX_FILES_PER_REQUEST}")

    # Validate everything before the first upload so a bad file stores nothing.
    for file in files:
        await _read_validated(file)
        await file.seek(0)

    stored = [await _store(file, folder="reports") for file in files]
    return ApiResponse(
        data=MultipleUploadResponse(urls=[item.url for item in stored], files=stored),
        message=f"{len(stored)} files uploaded successfully",
    )


@router.post("/report-image", response_model=ApiResponse[UploadedFileResponse])
async def upload_report_image_endpoint(
    file: UploadFile = File(...),
    _: User = Depends(get_current_user),
) -> ApiResponse[UploadedFileResponse]:
    return ApiResponse(data=await _store(file, folder="reports"), message="Report image uploaded successfully")


@router.post("/avatar", response_model=ApiResponse[UploadedFileResponse])
async def upload_avatar_endpoint(
    avatar: UploadFile = File(...),
    _: User = Depends(get_current_user),
) -> ApiResponse[UploadedFileResponse]:
    return ApiResponse(data=await _store(avatar, folder="avatars"), message="Avatar uploaded successfully")
