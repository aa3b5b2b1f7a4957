"""
Attachment storage on local disk, served back under ``/uploads``.
"""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from fastapi import HTTPException, UploadFile

from app.core.config import settings

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


async def save_upload(file: UploadFile, prefix: str) -> str:
    """Persist *file* and return its relative URL, e.g. ``/uploads/supplier-….pdf``."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")

    suffix = Path(file.filename or "").suffix.lower()[:10]
    name = f"{prefix}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
    (upload_root() / name).write_bytes(content)
    logger.info("Stored attachment %s (%d bytes)", name, len(content))
    return f"/uploads/{name}"
