"""Storage for files shared in group chats."""
from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from hr_chat.application.exceptions import ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


@dataclass(frozen=True, slots=True)
class StoredFile:
    url: str
    original_name: str
    stored_name: str
    size: int


def _generated_name(original: str) -> str:
    ext = Path(original).suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def _write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_upload(
    upload: UploadFile,
    upload_dir: str | os.PathLike[str],
    *,
    max_bytes: int,
    allowed_types: list[str],
) -> StoredFile:
    original = Path(upload.filename or "").name
    if not original:
        raise ValidationError("No file uploaded")
    if upload.content_type not in allowed_types:
        raise ValidationError(f"File type {upload.content_type} is not allowed")

    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(f"File is larger than {max_bytes} bytes")
    if not data:
        raise ValidationError("Uploaded file is empty")

    stored_name = _generated_name(original)
    await run_in_threadpool(_write, Path(upload_dir) / stored_name, data)
    logger.info("Stored upload %s as %s (%d bytes)", original, stored_name, len(data))
    return StoredFile(
        url=f"{URL_PREFIX}/{stored_name}",
        original_name=original,
        stored_name=stored_name,
        size=len(data),
    )
