"""
Local large-file store.

Files live under ``UPLOAD_DIR`` keyed by an opaque reference, with a JSON
sidecar holding filename, content type and caller metadata. Write failures
surface as ``FileStoreError``.
"""
import json
import logging
import uuid
from pathlib import Path
from typing import AsyncIterator, Optional
from urllib.parse import quote

import aiofiles

from core.config import UPLOAD_DIR

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class FileStoreError(Exception):
    pass


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """
    Header value safe for any stored name: an ASCII ``filename`` for old
    clients plus the UTF-8 ``filename*`` form (RFC 5987).
    """
    fallback = "".join(c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in filename or "")
    value = f'{disposition}; filename="{fallback or "download"}"'
    if filename and fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


class FileStore:
    def __init__(self, root: Path = UPLOAD_DIR):
        self.root = Path(root)

    def _paths(self, file_ref: str):
        # refs are hex uuids; anything else could escape the root
        if not file_ref or not all(c in "0123456789abcdef" for c in file_ref):
            raise FileStoreError(f"Invalid file reference: {file_ref!r}")
        return self.root / file_ref, self.root / f"{file_ref}.json"

    async def save(self, data: bytes, filename: str, content_type: str, metadata: Optional[dict] = None) -> str:
        file_ref = uuid.uuid4().hex
        data_path, meta_path = self._paths(file_ref)
        info = {
            "filename": filename,
            "content_type": content_type,
            "length": len(data),
            "metadata": metadata or {},
        }
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(data_path, "wb") as out_file:
                await out_file.write(data)
            async with aiofiles.open(meta_path, "w") as out_file:
                await out_file.write(json.dumps(info, default=str))
        except OSError as e:
            logger.error("Failed to store %s: %s", filename, e)
            raise FileStoreError(str(e)) from e
        logger.info("Stored %s (%d bytes) as %s", filename, len(data), file_ref)
        return file_ref

    def exists(self, file_ref: str) -> bool:
        data_path, _ = self._paths(file_ref)
        return data_path.exists()

    async def stream(self, file_ref: str) -> AsyncIterator[bytes]:
        data_path, _ = self._paths(file_ref)
        if not data_path.exists():
            raise FileStoreError(f"File {file_ref} not found")
        async with aiofiles.open(data_path, "rb") as in_file:
            while True:
                chunk = await in_file.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def delete(self, file_ref: str):
        for path in self._paths(file_ref):
            try:
                path.unlink()
            except FileNotFoundError:
                pass


file_store = FileStore()


def get_file_store() -> FileStore:
    return file_store
