# tracker_backend/services/upload_service.py
"""
Local-disk storage for order images.

Files are written as-is (no content sniffing, no size limit) under a
generated name and served back from /uploads by the app.
"""

import logging
import os
import re
import secrets
import time
from typing import BinaryIO

from ..config.settings import UPLOADS_DIR, UPLOADS_URL_PREFIX

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"^[A-Za-z0-9]{1,10}$")
_CHUNK_SIZE = 1024 * 1024


class UploadService:
    def __init__(self, uploads_dir: str = UPLOADS_DIR, url_prefix: str = UPLOADS_URL_PREFIX):
        self.uploads_dir = uploads_dir
        self.url_prefix = url_prefix.rstrip("/")

    def _generate_filename(self, original_name: str) -> str:
        """<ms timestamp>_<random token>.<ext>; falls back to jpg for odd extensions."""
        base = os.path.basename(original_name or "")
        ext = base.rsplit(".", 1)[-1] if "." in base else ""
        if not _EXT_RE.match(ext):
            ext = "jpg"
        timestamp = int(time.time() * 1000)
        return f"{timestamp}_{secrets.token_hex(8)}.{ext.lower()}"

    def save(self, stream: BinaryIO, original_name: str) -> str:
        """
        Persist the stream and return its public URL.

        A write that fails part way removes the partial file before the
        error propagates.
        """
        os.makedirs(self.uploads_dir, exist_ok=True)
        filename = self._generate_filename(original_name)
        path = os.path.join(self.uploads_dir, filename)

        try:
            with open(path, "wb") as out:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
        except Exception:
            if os.path.exists(path):
                os.remove(path)
            raise

        logger.info("Stored upload %s (%d bytes)", filename, os.path.getsize(path))
        return f"{self.url_prefix}/{filename}"


upload_service = UploadService()


def get_upload_service() -> UploadService:
    return upload_service
