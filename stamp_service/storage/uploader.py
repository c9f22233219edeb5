# stamp_service/storage/uploader.py
from __future__ import annotations

from typing import Any, Dict, Protocol

import httpx

from stamp_service.config import BACKEND_S3, Settings
from stamp_service.errors import ResponseShapeError
from stamp_service.storage.cloudinary_uploader import CloudinaryUploader
from stamp_service.storage.s3_storage import S3Storage


class Uploader(Protocol):
    def upload(self, data: bytes, filename: str = "stamped.pdf") -> Dict[str, Any]:
        ...


def build_uploader(settings: Settings, client: httpx.Client) -> Uploader:
    if settings.upload_backend == BACKEND_S3:
        return S3Storage(settings)
    return CloudinaryUploader(client, settings)


def extract_url(raw: Dict[str, Any]) -> str:
    url = (raw or {}).get("secure_url") or (raw or {}).get("url")
    if not url:
        raise ResponseShapeError("Upload response has no secure_url or url")
    return str(url)
