"""
Local filesystem image storage.

Images are written below a media root and served by the API under the
media base URL. Logical names may contain "/" to namespace files, e.g.
"products/12/image-0-638400000000000000".
"""

import asyncio
import base64
import binascii
from pathlib import Path
from typing import BinaryIO, Optional

from loguru import logger

from salehunter.errors import ExternalServiceError

# Magic-byte prefixes -> file extension
IMAGE_SIGNATURES = [
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
    (b"BM", "bmp"),
]


def detect_extension(data: bytes) -> str:
    """File extension from magic bytes, defaulting to jpg."""
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    for signature, extension in IMAGE_SIGNATURES:
        if data.startswith(signature):
            return extension
    return "jpg"


def decode_base64_image(data: str) -> bytes:
    """
    Decode a base64 payload, accepting an optional data-URL prefix.

    Raises:
        ValueError: If the payload is empty or not valid base64.
    """
    if not data or not data.strip():
        raise ValueError("Image data is empty")

    payload = data.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image data is not valid base64") from e

    if not raw:
        raise ValueError("Image data is empty")
    return raw


class LocalImageStorage:
    """
    Stores image blobs on disk.

    Args:
        root: Directory files are written to
        base_url: Public URL prefix the root is served under
        timeout_seconds: Upper bound for a single write
    """

    def __init__(self, root: str = "./media", base_url: str = "/media", timeout_seconds: float = 10.0):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def upload_base64(self, data: str, name: str) -> str:
        raw = decode_base64_image(data)
        return await self._write(raw, name, detect_extension(raw))

    async def upload_stream(self, stream: BinaryIO, name: str, extension: Optional[str] = None) -> str:
        raw = stream.read()
        if not raw:
            raise ValueError("Image stream is empty")
        return await self._write(raw, name, extension or detect_extension(raw))

    async def delete(self, name: str) -> bool:
        """Delete every stored file for the logical name."""
        path = self._resolve(name)
        removed = False
        for candidate in path.parent.glob(f"{path.name}.*"):
            candidate.unlink(missing_ok=True)
            removed = True
        if path.is_file():
            path.unlink()
            removed = True
        if not removed:
            logger.debug(f"No stored image for {name}")
        return removed

    def get_url(self, name: str) -> str:
        return f"{self.base_url}/{name.strip('/')}"

    async def _write(self, raw: bytes, name: str, extension: str) -> str:
        filename = f"{name.strip('/')}.{extension}"
        path = self._resolve(filename)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._write_file, path, raw),
                timeout=self.timeout_seconds,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise ExternalServiceError("Image storage", f"{type(e).__name__}: {e}") from e
        logger.debug(f"Stored image {filename} ({len(raw)} bytes)")
        return self.get_url(filename)

    @staticmethod
    def _write_file(path: Path, raw: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw)

    def _resolve(self, name: str) -> Path:
        path = (self.root / name.strip("/")).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Invalid image name: {name}")
        return path
