import boto3
from botocore.client import Config as BotoConfig
from vidtube.core.config import settings

def make_s3_client(endpoint_url: str):
    cfg = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=cfg,
        use_ssl=endpoint_url.startswith("https"),
    )

def make_s3_internal():
    return make_s3_client(str(settings.S3_ENDPOINT))

def public_object_url(*, base_url: str, bucket: str, key: str) -> str:
    """URL durable (path-style) d'un objet : <base>/<bucket>/<key>."""
    return f"{base_url.rstrip('/')}/{bucket}/{key}"

def key_from_public_url(url: str, *, base_url: str, bucket: str) -> str:
    """Inverse de public_object_url. Lève ValueError si l'URL n'est pas à nous."""
    prefix = f"{base_url.rstrip('/')}/{bucket}/"
    if not url.startswith(prefix) or len(url) == len(prefix):
        raise ValueError(f"URL hors du bucket {bucket}: {url}")
    return url[len(prefix):]
