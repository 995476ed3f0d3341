from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Set

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError
import structlog

from vidtube.core.config import settings
from vidtube.core.errors import InvalidArgumentError, UploadFailedError
from vidtube.utils.media_files import detect_mime_and_ext, build_object_key, probe_duration, validate_file
from vidtube.utils.s3 import make_s3_internal, public_object_url, key_from_public_url

logger = structlog.get_logger(__name__)

_MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class StoredMedia:
    url: str
    duration_seconds: Optional[float] = None


class MediaStore:
    """
    Stockage média (S3 / MinIO) : un fichier local -> une URL durable.

    - store()   : envoie le fichier, lit sa durée si c'est un média, supprime
                  toujours le fichier local. Échec -> UploadFailedError, rien
                  n'est laissé côté bucket.
    - release() : supprime l'objet désigné par son URL. Idempotent : un objet
                  déjà absent est seulement journalisé.
    """

    def __init__(
        self,
        *,
        bucket: str = settings.S3_BUCKET,
        public_base_url: str = str(settings.S3_PUBLIC_BASE_URL),
        s3_client_factory: Callable[[], object] = make_s3_internal,
        ffprobe_bin: str = settings.FFPROBE_BIN,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url
        self._s3_factory = s3_client_factory
        self.ffprobe_bin = ffprobe_bin
        self._s3 = None

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = self._s3_factory()
        return self._s3

    def close(self) -> None:
        self._s3 = None

    def store(self, local_path: Path, *, prefix: str = "media", owner_id: Optional[int] = None) -> StoredMedia:
        try:
            mime, ext = detect_mime_and_ext(local_path)
            duration = probe_duration(local_path, ffprobe_bin=self.ffprobe_bin) if mime.startswith(("video/", "audio/")) else None
            key = build_object_key(prefix=prefix, owner_id=owner_id, ext_with_dot=ext)
            self.s3.upload_file(
                Filename=str(local_path),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": mime},
            )
        except (Boto3Error, BotoCoreError, ClientError, OSError) as e:
            # upload_file enveloppe les ClientError dans S3UploadFailedError (Boto3Error)
            logger.warning("media_store_failed", path=str(local_path), error=str(e))
            raise UploadFailedError(f"Media upload failed: {e}") from e
        finally:
            Path(local_path).unlink(missing_ok=True)

        url = public_object_url(base_url=self.public_base_url, bucket=self.bucket, key=key)
        logger.info("media_stored", url=url, mime=mime, duration=duration)
        return StoredMedia(url=url, duration_seconds=duration)

    def release(self, url: str) -> None:
        if not url:
            return
        try:
            key = key_from_public_url(url, base_url=self.public_base_url, bucket=self.bucket)
        except ValueError:
            logger.warning("media_release_skipped", url=url, reason="foreign_url")
            return

        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                logger.info("media_release_missing", url=url)
                return
            raise UploadFailedError(f"Media release failed: {e}") from e
        except BotoCoreError as e:
            raise UploadFailedError(f"Media release failed: {e}") from e
        logger.info("media_released", url=url)


def validate_staged(path: Path, *, max_mb: int, allowed_mime: Set[str], label: str) -> str:
    """Vérifie un fichier local avant envoi. Retourne le MIME réel ou lève InvalidArgumentError."""
    try:
        mime, _, _ = validate_file(path, max_mb=max_mb, allowed_mime=allowed_mime)
    except ValueError as e:
        raise InvalidArgumentError(f"{label}: {e}") from e
    return mime


def release_quietly(media: MediaStore, url: Optional[str]) -> None:
    """Libération best-effort (nettoyage après échec ou remplacement) : journalise sans propager."""
    if not url:
        return
    try:
        media.release(url)
    except UploadFailedError as e:
        logger.warning("media_release_failed", url=url, error=e.message)
