import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import ValidationFailed

IMAGE_TYPES = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/png": ".png", "image/webp": ".webp"}
AUDIO_TYPES = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mp4": ".m4a",
    "audio/x-m4a": ".m4a",
}


def upload_dir() -> Path:
    path = Path(get_settings().upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_upload(file: Optional[UploadFile], prefix: str, allowed: dict) -> Optional[str]:
    """Writes the upload under the upload dir; returns its public path."""
    if file is None or not file.filename:
        return None
    ext = allowed.get(file.content_type or "")
    if ext is None:
        raise ValidationFailed(f"Unsupported file type: {file.content_type}")

    safe_name = f"{prefix}-{uuid.uuid4().hex}{ext}"
    (upload_dir() / safe_name).write_bytes(await file.read())
    return f"/uploads/{safe_name}"
