import logging
from typing import Optional
import boto3
from botocore.config import Config
from stableshare.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def _get_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url or None,
        aws_access_key_id=settings.s3_access_key_id or None,
        aws_secret_access_key=settings.s3_secret_access_key or None,
        region_name=settings.s3_region,
        config=Config(signature_version="s3v4"),
    )


def object_path(file_url: str, bucket: Optional[str] = None) -> str:
    """
    Normalize a stored X-ray reference to an object key.

    Uploads are stored as bucket-relative paths ("org/horse/scan.dcm"), but
    older rows hold the full storage URL; strip everything up to the bucket.
    """
    bucket = bucket or settings.xray_bucket
    marker = f"/{bucket}/"
    if marker in file_url:
        file_url = file_url.split(marker, 1)[1]
    return file_url.split("?", 1)[0].lstrip("/")


def create_signed_url(path: str, ttl_seconds: Optional[int] = None) -> str:
    """Short-lived GET URL for a private X-ray object"""
    client = _get_client()
    key = object_path(path)
    url = client.generate_presigned_url(
        "get_object",
        Params={"Bucket": settings.xray_bucket, "Key": key},
        ExpiresIn=ttl_seconds or settings.signed_url_ttl_seconds,
    )
    logger.debug(f"Signed X-ray URL issued for {key}")
    return url
