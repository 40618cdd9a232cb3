"""Object storage for catalog images.

Two backends: files on local disk served at /uploads/ (default), or
Cloudinary's upload API when CLOUDINARY_CLOUD_NAME is configured. Both return
only the public URI; the catalog never stores image bytes.
"""
import asyncio
import hashlib
import logging
import time
import uuid
from pathlib import Path
from typing import NamedTuple, Optional

import httpx

from catalog_api.core.config import Settings
from catalog_api.core.errors import UploadError

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT_SECONDS = 30


class UploadedImage(NamedTuple):
    uri: str


class ImageUploader:
    """Interface: store one image and return where it can be fetched from."""

    backend = "custom"

    async def upload(self, content: bytes, filename: Optional[str] = None) -> UploadedImage:
        raise NotImplementedError


class LocalImageUploader(ImageUploader):
    backend = "local"

    def __init__(self, upload_dir: str, public_base_url: str = ""):
        self.directory = Path(upload_dir) / "items"
        self.public_base_url = public_base_url.rstrip("/")

    def _write(self, name: str, content: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(content)

    async def upload(self, content: bytes, filename: Optional[str] = None) -> UploadedImage:
        ext = Path(filename or "").suffix.lower() or ".jpg"
        name = f"{uuid.uuid4().hex}{ext}"
        try:
            # Disk I/O stays off the event loop
            await asyncio.to_thread(self._write, name, content)
        except OSError as e:
            logger.error("Writing image %s to %s failed: %s", name, self.directory, e)
            raise UploadError(f"Image upload failed: {e}") from e
        return UploadedImage(uri=f"{self.public_base_url}/uploads/items/{name}")


def _cloudinary_signature(params: dict[str, str], api_secret: str) -> str:
    """
    Signature for Cloudinary signed uploads.

    Parameters are sorted by key, joined as ``k=v`` pairs with ``&`` and the
    API secret is appended before hashing with SHA-1.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode()).hexdigest()


class CloudinaryUploader(ImageUploader):
    backend = "cloudinary"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "products_services",
        base_url: str = "https://api.cloudinary.com/v1_1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def upload(self, content: bytes, filename: Optional[str] = None) -> UploadedImage:
        params = {"folder": self.folder, "timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": self.api_key,
            "signature": _cloudinary_signature(params, self.api_secret),
        }
        url = f"{self.base_url}/{self.cloud_name}/image/upload"
        try:
            async with httpx.AsyncClient(timeout=UPLOAD_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await client.post(url, data=data, files={"file": (filename or "image", content)})
                response.raise_for_status()
                secure_url = response.json().get("secure_url")
        except httpx.HTTPStatusError as e:
            logger.error("Cloudinary upload error: %s - %s", e.response.status_code, e.response.text)
            raise UploadError("Image upload failed") from e
        except httpx.HTTPError as e:
            logger.error("Cloudinary upload request failed: %s", e)
            raise UploadError("Image upload failed") from e
        except ValueError as e:
            raise UploadError("Image upload failed: unreadable response") from e
        if not secure_url:
            raise UploadError("Image upload failed: no URL returned")
        return UploadedImage(uri=secure_url)


def build_uploader(settings: Settings) -> ImageUploader:
    if settings.CLOUDINARY_CLOUD_NAME:
        return CloudinaryUploader(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER,
            base_url=settings.CLOUDINARY_BASE_URL,
        )
    return LocalImageUploader(settings.UPLOAD_DIR, settings.PUBLIC_BASE_URL)
