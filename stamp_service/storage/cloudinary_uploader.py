# stamp_service/storage/cloudinary_uploader.py
from __future__ import annotations

from typing import Any, Dict

import httpx

from stamp_service.config import Settings
from stamp_service.errors import UploadError


class CloudinaryUploader:
    """
    Unsigned multipart upload:
      POST <endpoint>  file=<bytes>  upload_preset=<preset, if configured>
    """

    def __init__(self, client: httpx.Client, settings: Settings):
        self.client = client
        self.settings = settings

    def upload(self, data: bytes, filename: str = "stamped.pdf") -> Dict[str, Any]:
        endpoint = self.settings.cloudinary_endpoint
        if not endpoint:
            raise UploadError("Cloudinary upload failed: set CLOUDINARY_UPLOAD_URL or CLOUDINARY_CLOUD_NAME")

        form: Dict[str, str] = {}
        if self.settings.cloudinary_upload_preset:
            form["upload_preset"] = self.settings.cloudinary_upload_preset

        try:
            resp = self.client.post(
                endpoint,
                files={"file": (filename, data, "application/pdf")},
                data=form,
            )
        except httpx.HTTPError as e:
            raise UploadError(f"Cloudinary upload failed: {e}") from e

        if not resp.is_success:
            raise UploadError(
                f"Cloudinary upload failed: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp.json()
