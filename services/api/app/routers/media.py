"""
Media endpoint:
  POST /media — store an image in MinIO and return its public URL

Clients upload the image first and send the returned URL as `mediaUrl`
when creating the entry; a failed upload means no entry write is attempted.
"""
import logging

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool

from app.clients.minio_client import upload_media
from app.errors import UpstreamError
from app.schemas import MediaResponse, MediaUpload
from app.telemetry import MEDIA_UPLOAD_ERRORS_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
async def create_media(body: MediaUpload):
    try:
        # boto3 is blocking
        url = await run_in_threadpool(upload_media, body.media_base64, body.content_type)
    except UpstreamError:
        MEDIA_UPLOAD_ERRORS_TOTAL.inc()
        raise
    logger.info("Media stored at %s", url)
    return MediaResponse(url=url)
