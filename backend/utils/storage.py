# backend/utils/storage.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import settings
from utils.errors import TransientStoreError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _size_of(file: UploadFile) -> int:
    f = file.file
    f.seek(0, 2)
    size = f.tell()
    f.seek(0)
    return size


# Store an uploaded profile picture and return its opaque public URL
def save_profile_picture(file: Optional[UploadFile]) -> Optional[str]:
    if file is None or not file.filename:
        return None
    try:
        ext = ALLOWED_CONTENT_TYPES.get(file.content_type)
        if ext is None:
            raise ValidationError("Invalid file type. Allowed: jpg, jpeg, png, gif, webp")
        if _size_of(file) > settings.MAX_PROFILE_PICTURE_BYTES:
            raise ValidationError("Profile picture is too large")

        unique_filename = f"{uuid.uuid4()}.{ext}"
        save_path = upload_dir() / unique_filename
        try:
            with open(save_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
        except OSError as e:
            logger.exception("Failed to store profile picture")
            raise TransientStoreError("Failed to store profile picture", details={"error": str(e)})
        return f"/uploads/{unique_filename}"
    finally:
        file.file.close()


# Best effort removal of a previously stored picture after it has been replaced
def discard_profile_picture(url: Optional[str]) -> None:
    if not url or not url.startswith("/uploads/"):
        return
    path = upload_dir() / url.rsplit("/", 1)[-1]
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove old profile picture %s", path)
