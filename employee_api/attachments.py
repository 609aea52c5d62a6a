# attachments.py
"""
Storage for employee profile pictures.

A stored binary is identified by an opaque ``AttachmentRef``. Records keep
only the handle; the manager maps it to a file on disk and to the public
URL path the static mount serves it under.
"""
import logging
import os
import re
import secrets
import tempfile
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from .exceptions import UploadRejected

logger = logging.getLogger(__name__)

ALLOWED_TYPES = ("jpeg", "jpg", "png", "gif")
_HANDLE_RE = re.compile(r"^\d{13}-\d{9}\.(jpeg|jpg|png|gif)$")


def _describe_size(size: int) -> str:
    mib = 1024 * 1024
    if size >= mib and size % mib == 0:
        return f"{size // mib}MB"
    return f"{size} bytes"


@dataclass(frozen=True)
class AttachmentRef:
    handle: str


class AttachmentManager:
    def __init__(self, upload_dir: str, url_prefix: str = "/uploads", max_bytes: int = 5 * 1024 * 1024):
        self.upload_dir = os.path.abspath(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        os.makedirs(self.upload_dir, exist_ok=True)

    # --- naming ---

    @staticmethod
    def _new_handle(ext: str) -> str:
        millis = int(time.time() * 1000)
        suffix = secrets.randbelow(10 ** 9)
        return f"{millis:013d}-{suffix:09d}.{ext}"

    def _path_for(self, ref: AttachmentRef) -> str:
        if not _HANDLE_RE.match(ref.handle):
            raise ValueError(f"Malformed attachment handle: {ref.handle!r}")
        return os.path.join(self.upload_dir, ref.handle)

    def check(self, size: int, filename: str, content_type: Optional[str] = None) -> str:
        """Returns the normalized extension, or raises UploadRejected."""
        if size > self.max_bytes:
            raise UploadRejected(f"File size must be at most {_describe_size(self.max_bytes)}")
        ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
        if ext not in ALLOWED_TYPES:
            raise UploadRejected("Only image files (jpeg, jpg, png, gif) are allowed")
        if content_type:
            subtype = content_type.split(";")[0].strip().lower().rpartition("/")[2]
            if subtype not in ALLOWED_TYPES:
                raise UploadRejected("Only image files (jpeg, jpg, png, gif) are allowed")
        return ext

    # --- operations ---

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> AttachmentRef:
        ext = self.check(len(data), filename, content_type)
        ref = AttachmentRef(self._new_handle(ext))
        target = self._path_for(ref)

        fd, tmp_path = tempfile.mkstemp(dir=self.upload_dir, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            with suppress(FileNotFoundError):
                os.remove(tmp_path)
            raise

        logger.info(f"Stored attachment {ref.handle} ({len(data)} bytes)")
        return ref

    def delete(self, ref: Optional[AttachmentRef]) -> None:
        """Removes the binary; missing files are not an error."""
        if ref is None:
            return
        try:
            os.remove(self._path_for(ref))
        except FileNotFoundError:
            return
        logger.info(f"Deleted attachment {ref.handle}")

    def exists(self, ref: AttachmentRef) -> bool:
        return os.path.isfile(self._path_for(ref))

    def public_path(self, ref: Optional[AttachmentRef]) -> Optional[str]:
        if ref is None:
            return None
        return f"{self.url_prefix}/{ref.handle}"

    # --- async wrappers for request handlers ---

    async def store_upload(self, upload: UploadFile) -> AttachmentRef:
        # Read at most one byte past the limit; bounds the memory the read can use
        data = await upload.read(self.max_bytes + 1)
        self.check(len(data), upload.filename, upload.content_type)
        return await run_in_threadpool(self.store, data, upload.filename, upload.content_type)

    async def discard(self, ref: Optional[AttachmentRef]) -> None:
        await run_in_threadpool(self.delete, ref)


def to_ref(handle: Optional[str]) -> Optional[AttachmentRef]:
    return AttachmentRef(handle) if handle else None
