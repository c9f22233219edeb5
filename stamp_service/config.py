# stamp_service/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"

BACKEND_CLOUDINARY = "cloudinary"
BACKEND_S3 = "s3"


def _clean(value: str | None) -> str | None:
    v = (value or "").strip()
    return v or None


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, read once at startup.

    Local dev: values come from .env if present.
    Deployed: values come from the environment (no .env file).
    """
    cloudinary_upload_url: str | None = None
    cloudinary_upload_preset: str | None = None
    cloudinary_cloud_name: str | None = None

    upload_backend: str = BACKEND_CLOUDINARY

    s3_bucket: str | None = None
    aws_region: str = "us-east-1"
    aws_profile: str | None = None
    s3_url_expires_seconds: int = 3600

    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        backend = (_clean(environ.get("STAMP_UPLOAD_BACKEND")) or BACKEND_CLOUDINARY).lower()
        if backend not in (BACKEND_CLOUDINARY, BACKEND_S3):
            raise RuntimeError(f"Unsupported STAMP_UPLOAD_BACKEND: {backend!r}")

        origins = tuple(
            o.strip() for o in (environ.get("STAMP_CORS_ORIGINS") or "*").split(",") if o.strip()
        )

        return cls(
            cloudinary_upload_url=_clean(environ.get("CLOUDINARY_UPLOAD_URL")),
            cloudinary_upload_preset=_clean(environ.get("CLOUDINARY_UPLOAD_PRESET")),
            cloudinary_cloud_name=_clean(environ.get("CLOUDINARY_CLOUD_NAME")),
            upload_backend=backend,
            s3_bucket=_clean(environ.get("S3_BUCKET")),
            aws_region=_clean(environ.get("AWS_REGION")) or "us-east-1",
            aws_profile=_clean(environ.get("AWS_PROFILE")),
            s3_url_expires_seconds=int(environ.get("S3_URL_EXPIRES_SECONDS") or 3600),
            cors_origins=origins or ("*",),
        )

    @property
    def cloudinary_endpoint(self) -> str | None:
        # An explicit URL wins; otherwise compose from the cloud name.
        if self.cloudinary_upload_url:
            return self.cloudinary_upload_url
        if self.cloudinary_cloud_name:
            return f"{CLOUDINARY_API_BASE}/{self.cloudinary_cloud_name}/auto/upload"
        return None
