# stamp_service/storage/s3_storage.py
from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from stamp_service.config import Settings
from stamp_service.errors import UploadError
from stamp_service.storage.keys import safe_filename, stamped_key


class S3Storage:
    """
    Publishes stamped PDFs to S3 and hands back a presigned GET URL.
    The returned dict mirrors the fields the API reads from an upload
    provider response (secure_url / url).
    """

    def __init__(self, settings: Settings, s3_client: Any | None = None):
        if not settings.s3_bucket:
            raise UploadError("S3 upload failed: S3_BUCKET not set")

        self.bucket = settings.s3_bucket
        self.expires_seconds = int(settings.s3_url_expires_seconds)

        if s3_client is None:
            session = (
                boto3.Session(profile_name=settings.aws_profile)
                if settings.aws_profile
                else boto3.Session()
            )
            # signature_version helps with some environments, safe default
            s3_client = session.client(
                "s3",
                region_name=settings.aws_region,
                config=Config(signature_version="s3v4"),
            )
        self.s3 = s3_client

    def upload_pdf_bytes(self, key: str, data: bytes) -> None:
        self.s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType="application/pdf",
        )

    def presign_get_url(self, key: str, download_filename: str | None = None) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if download_filename:
            # filename*= for utf-8 safety
            params["ResponseContentDisposition"] = f"inline; filename*=UTF-8''{quote(download_filename)}"
            params["ResponseContentType"] = "application/pdf"

        return self.s3.generate_presigned_url(
            ClientMethod="get_object",
            Params=params,
            ExpiresIn=self.expires_seconds,
        )

    def upload(self, data: bytes, filename: str = "stamped.pdf") -> Dict[str, Any]:
        key = stamped_key(filename)
        try:
            self.upload_pdf_bytes(key, data)
            url = self.presign_get_url(key, download_filename=safe_filename(filename))
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"S3 upload failed: {e}") from e

        return {
            "bucket": self.bucket,
            "key": key,
            "bytes": len(data),
            "secure_url": url,
        }
