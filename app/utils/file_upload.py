"""
File Upload Utility - store uploaded resumes and documents on disk.

The database only ever records the returned path.

Allowed: PDF, Word, plain text and common image formats.
Max file size: settings.max_upload_mb (5MB by default)
"""

import os
import re
import time
from typing import Tuple
from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import ValidationError

ALLOWED_EXTENSIONS = {'.pdf', '.doc', '.docx', '.txt', '.png', '.jpg', '.jpeg'}
RESUME_EXTENSIONS = {'.pdf', '.doc', '.docx'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def safe_filename(filename: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-]."""
    name = os.path.basename(filename.replace('\\', '/'))
    name = re.sub(r'[^A-Za-z0-9._-]+', '_', name).strip('._')
    return name or 'upload'


async def save_upload(file: UploadFile, subdir: str = "", allowed: set = ALLOWED_EXTENSIONS) -> Tuple[str, str]:
    """
    Validate and store an uploaded file.

    Returns:
        Tuple of (stored_path, original_filename)

    Raises:
        ValidationError on a missing name, bad extension, empty or oversized file
    """
    settings = get_settings()

    if not file.filename:
        raise ValidationError("No file uploaded.")

    ext = get_file_extension(file.filename)
    if ext not in allowed:
        raise ValidationError(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(allowed))}"
        )

    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty.")
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise ValidationError(f"File too large. Maximum size: {settings.max_upload_mb}MB")

    target_dir = os.path.join(settings.upload_dir, subdir) if subdir else settings.upload_dir
    os.makedirs(target_dir, exist_ok=True)

    stored_name = f"{int(time.time() * 1000)}-{safe_filename(file.filename)}"
    path = os.path.join(target_dir, stored_name)
    with open(path, 'wb') as out:
        out.write(content)

    return path, file.filename
