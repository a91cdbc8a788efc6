"""Image upload storage on the local filesystem.

Files land in the configured uploads directory under a generated name and
are addressed by `<url_prefix><filename>`. A previous URL may be passed so
the replaced file is removed; removal failures never fail the upload.
"""

from __future__ import annotations

import logging
import os
import random
import time
from pathlib import Path

from quizflow.config import UploadsConfig
from quizflow.errors import ValidationFailure

logger = logging.getLogger(__name__)


def _delete_previous(directory: Path, url_prefix: str, old_url: str) -> None:
    if not old_url.startswith(url_prefix):
        return
    target = (directory / old_url[len(url_prefix):]).resolve()
    # Only files inside the uploads directory may be removed
    if directory.resolve() not in target.parents:
        logger.warning("upload_old_url_outside_dir old_url=%s", old_url)
        return
    try:
        if target.exists():
            target.unlink()
            logger.info("upload_previous_deleted filename=%s", target.name)
    except OSError:
        logger.warning("upload_previous_delete_failed old_url=%s", old_url, exc_info=True)


def store_upload(
    content: bytes,
    *,
    filename: str | None,
    content_type: str | None,
    cfg: UploadsConfig,
    old_url: str | None = None,
) -> dict:
    """Persist an uploaded image and return ``{url, filename}``."""
    if content_type not in cfg.allowed_types:
        raise ValidationFailure("Invalid file type. Only images are allowed.")
    directory = Path(cfg.directory)
    if old_url:
        _delete_previous(directory, cfg.url_prefix, old_url)

    directory.mkdir(parents=True, exist_ok=True)
    ext = os.path.splitext(filename or "")[1] or ".jpg"
    stored_name = f"upload-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
    (directory / stored_name).write_bytes(content)
    logger.info("upload_stored filename=%s bytes=%s", stored_name, len(content))
    return {"url": f"{cfg.url_prefix}{stored_name}", "filename": stored_name}


__all__ = ["store_upload"]
