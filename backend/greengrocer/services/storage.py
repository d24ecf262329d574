"""MinIO object storage wrapper for product images."""
import io
import logging

from minio import Minio
from minio.error import S3Error

from greengrocer.core.config import settings

logger = logging.getLogger(__name__)

# ─── Client singleton ───

def _build_client() -> Minio:
    return Minio(
        endpoint=settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )


_client: Minio | None = None


def get_client() -> Minio:
    global _client
    if _client is None:
        _client = _build_client()
    return _client


# ─── Bucket bootstrap ───

def ensure_bucket(bucket: str = settings.MINIO_BUCKET_NAME) -> None:
    """Create bucket if it does not already exist. Called on startup."""
    client = get_client()
    try:
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
            logger.info("Created MinIO bucket: %s", bucket)
    except S3Error as exc:
        logger.error("Failed to ensure MinIO bucket %s: %s", bucket, exc)
        raise


# ─── Core operations ───

def public_url(object_name: str, bucket: str = settings.MINIO_BUCKET_NAME) -> str:
    return f"{settings.MINIO_PUBLIC_URL.rstrip('/')}/{bucket}/{object_name}"


def object_name_from_url(url: str | None, bucket: str = settings.MINIO_BUCKET_NAME) -> str | None:
    """Inverse of public_url; None for URLs that point outside our bucket."""
    prefix = public_url("", bucket)
    if url and url.startswith(prefix) and len(url) > len(prefix):
        return url[len(prefix):]
    return None


def upload_image(
    folder: str,
    filename: str,
    data: bytes,
    content_type: str,
    bucket: str = settings.MINIO_BUCKET_NAME,
) -> str:
    """Store an image under ``folder/`` and return its public URL."""
    object_name = f"{folder}/{filename}"
    get_client().put_object(
        bucket_name=bucket,
        object_name=object_name,
        data=io.BytesIO(data),
        length=len(data),
        content_type=content_type,
    )
    logger.info("Uploaded %s/%s (%d bytes)", bucket, object_name, len(data))
    return public_url(object_name, bucket)


def delete_object(object_name: str, bucket: str = settings.MINIO_BUCKET_NAME) -> None:
    get_client().remove_object(bucket_name=bucket, object_name=object_name)
    logger.info("Deleted %s/%s", bucket, object_name)
