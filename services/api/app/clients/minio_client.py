"""
MinIO (S3-compatible) client for media storage.

Stores entry images as objects in a publicly readable bucket and returns a
stable URL that is saved on the entry and rendered directly by browsers.
"""
import base64
import binascii
import json
import logging
import mimetypes
import uuid
from io import BytesIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

_s3 = None


def _public_read_policy(bucket: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                }
            ],
        }
    )


def init_minio() -> None:
    """Create the S3 client and ensure the media bucket exists and is readable."""
    global _s3
    scheme = "https" if settings.minio_use_ssl else "http"
    _s3 = boto3.client(
        "s3",
        endpoint_url=f"{scheme}://{settings.minio_endpoint}",
        aws_access_key_id=settings.minio_access_key,
        aws_secret_access_key=settings.minio_secret_key,
        config=Config(signature_version="s3v4"),
        region_name="us-east-1",
    )

    try:
        existing = [b["Name"] for b in _s3.list_buckets().get("Buckets", [])]
        if settings.minio_bucket not in existing:
            _s3.create_bucket(Bucket=settings.minio_bucket)
            _s3.put_bucket_policy(
                Bucket=settings.minio_bucket,
                Policy=_public_read_policy(settings.minio_bucket),
            )
            logger.info("Created MinIO bucket '%s'", settings.minio_bucket)
        else:
            logger.info("MinIO bucket '%s' already exists", settings.minio_bucket)
    except (BotoCoreError, ClientError) as exc:
        # Uploads will fail with UpstreamError until storage comes back
        logger.warning("MinIO unavailable at startup: %s", exc)


def get_s3():
    if _s3 is None:
        raise UpstreamError("Media storage not initialised")
    return _s3


def public_url(key: str) -> str:
    return f"{settings.media_public_url.rstrip('/')}/{settings.minio_bucket}/{key}"


def upload_media(media_base64: str, content_type: str) -> str:
    """
    Decode base64 media, upload to MinIO, return its public URL.
    Key format: image/{uuid}.{ext}
    """
    try:
        data = base64.b64decode(media_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("mediaBase64 is not valid base64") from exc
    if not data:
        raise ValidationError("mediaBase64 decodes to an empty payload")

    ext = (mimetypes.guess_extension(content_type) or ".bin").lstrip(".")
    key = f"image/{uuid.uuid4()}.{ext}"

    s3 = get_s3()
    try:
        s3.put_object(
            Bucket=settings.minio_bucket,
            Key=key,
            Body=BytesIO(data),
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as exc:
        raise UpstreamError(f"Media upload failed: {exc}") from exc
    logger.debug("Uploaded media to MinIO: %s (%d bytes)", key, len(data))
    return public_url(key)
