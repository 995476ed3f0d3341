import math
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
import structlog

from vidtube.core.config import settings
from vidtube.core.errors import (
    ForbiddenError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    UploadFailedError,
)
from vidtube.db.models.base import utcnow
from vidtube.db.models.videos import Video
from vidtube.db.repositories.users import UserRepository
from vidtube.db.repositories.videos import VideoRepository
from vidtube.features.history.services import WatchHistoryService
from vidtube.features.media.services import MediaStore, release_quietly, validate_staged
from vidtube.features.videos.schemas import (
    PageRequest,
    PublishStateOut,
    SortDirection,
    SortField,
    VideoFilter,
    VideoOut,
    VideoPageOut,
    VideoSort,
    VideoUploadedOut,
)
from vidtube.utils.media_files import ALLOWED_IMAGE_MIME, ALLOWED_VIDEO_MIME
from vidtube.utils.uploads import discard_staged

logger = structlog.get_logger(__name__)

_DIRECTION_ALIASES = {
    "asc": SortDirection.ASC,
    "ascending": SortDirection.ASC,
    "desc": SortDirection.DESC,
    "dsc": SortDirection.DESC,
    "descending": SortDirection.DESC,
}

# OFFSET SQL : entier signé 64 bits
_MAX_SQL_OFFSET = 2**63 - 1


def _required_text(value: Optional[str], name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidArgumentError(f"{name} is required")
    return text


class VideoService:
    """
    Service Vidéos : catalogue, cycle de vie (upload / update / delete), publication.

    Politique d'échec « fail closed » : aucune vidéo n'est créée sans ses deux
    médias, et tout média envoyé pendant une tentative ratée est libéré.
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        user_repo: UserRepository,
        history: WatchHistoryService,
        media: MediaStore,
        now_fn: Callable[[], datetime] = utcnow,
        max_video_mb: int = settings.MAX_UPLOAD_MB,
        max_image_mb: int = settings.MAX_IMAGE_MB,
        max_page_size: int = settings.MAX_PAGE_SIZE,
    ):
        self.repo = repo
        self.users = user_repo
        self.history = history
        self.media = media
        self.now_fn = now_fn
        self.max_video_mb = max_video_mb
        self.max_image_mb = max_image_mb
        self.max_page_size = max_page_size

    # -------- Helpers --------

    def _get_or_404(self, video_id: int) -> Video:
        video = self.repo.get(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    @staticmethod
    def _ensure_owner(video: Video, user_id: int) -> None:
        if video.owner_id != user_id:
            raise ForbiddenError("Only the owner can modify this video")

    @staticmethod
    def _parse_sort(sort_by: Optional[str], sort_type: Optional[str]) -> VideoSort:
        try:
            field = SortField(sort_by) if sort_by else SortField.CREATED_AT
        except ValueError:
            allowed = ", ".join(f.value for f in SortField)
            raise InvalidArgumentError(f"sortBy must be one of: {allowed}")
        direction = SortDirection.ASC
        if sort_type:
            direction = _DIRECTION_ALIASES.get(sort_type.strip().lower())
            if direction is None:
                raise InvalidArgumentError("sortType must be 'asc' or 'desc'")
        return VideoSort(field=field, direction=direction)

    # -------- Catalogue --------

    def list_videos(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        q: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_type: Optional[str] = None,
        username: Optional[str] = None,
    ) -> VideoPageOut:
        if page <= 0 or limit <= 0:
            raise InvalidArgumentError("page and limit must be positive integers")
        if limit > self.max_page_size:
            raise InvalidArgumentError(f"limit must not exceed {self.max_page_size}")
        if (page - 1) * limit > _MAX_SQL_OFFSET:
            raise InvalidArgumentError("page is out of range")
        sort = self._parse_sort(sort_by, sort_type)

        owner_id = None
        if username:
            owner_id = self.users.get_id_by_username(username.strip())
            if owner_id is None:
                raise NotFoundError("Channel not found")

        flt = VideoFilter(q=(q or "").strip() or None, owner_id=owner_id)
        pager = PageRequest(page=page, limit=limit)

        total = self.repo.count_matching(flt)
        items = self.repo.search(flt, sort, pager) if total else []
        return VideoPageOut(
            items=items,
            page=page,
            limit=limit,
            total_count=total,
            total_pages=math.ceil(total / limit),
        )

    # -------- Lecture --------

    def watch_video(self, video_id: int, *, viewer_id: int) -> Video:
        """
        Retourne la vidéo et, en best-effort, compte la vue + l'ajoute à
        l'historique du spectateur. Un échec d'écriture est journalisé, la
        vidéo est quand même renvoyée.
        """
        video = self._get_or_404(video_id)
        try:
            video = self.repo.increment_views(video)
            self.history.record_view(user_id=viewer_id, video=video)
        except SQLAlchemyError:
            self.repo.rollback()
            logger.exception("watch_history_write_failed", video_id=video_id, user_id=viewer_id)
            video = self._get_or_404(video_id)
        return video

    # -------- Upload --------

    def publish_video(
        self,
        *,
        owner_id: int,
        title: Optional[str],
        description: Optional[str],
        video_path: Optional[Path],
        thumbnail_path: Optional[Path],
    ) -> VideoUploadedOut:
        try:
            owner = self.users.get(owner_id)
            if not owner:
                raise NotFoundError("Owner not found")
            title = _required_text(title, "title")
            description = _required_text(description, "description")
            if video_path is None or thumbnail_path is None:
                raise InvalidArgumentError("Video file and thumbnail are required")
            validate_staged(video_path, max_mb=self.max_video_mb, allowed_mime=ALLOWED_VIDEO_MIME, label="videoFile")
            validate_staged(thumbnail_path, max_mb=self.max_image_mb, allowed_mime=ALLOWED_IMAGE_MIME, label="thumbnail")
        except (NotFoundError, InvalidArgumentError):
            discard_staged(video_path, thumbnail_path)
            raise

        try:
            stored_video = self.media.store(video_path, prefix="videos", owner_id=owner_id)
        except UploadFailedError:
            discard_staged(thumbnail_path)
            raise
        try:
            stored_thumb = self.media.store(thumbnail_path, prefix="thumbnails", owner_id=owner_id)
        except UploadFailedError:
            release_quietly(self.media, stored_video.url)
            raise

        try:
            video = self.repo.create(
                video_file=stored_video.url,
                thumbnail=stored_thumb.url,
                title=title,
                description=description,
                duration=round(stored_video.duration_seconds or 0, 2),
                owner_id=owner_id,
            )
        except SQLAlchemyError as e:
            self.repo.rollback()
            release_quietly(self.media, stored_video.url)
            release_quietly(self.media, stored_thumb.url)
            raise InternalError("Something went wrong while uploading video") from e

        created = self.repo.get(video.id)
        if not created:
            release_quietly(self.media, stored_video.url)
            release_quietly(self.media, stored_thumb.url)
            raise InternalError("Something went wrong while uploading video")

        logger.info("video_published", video_id=created.id, owner_id=owner_id)
        return VideoUploadedOut(video=VideoOut.model_validate(created), uploaded_by=owner.full_name)

    # -------- Update --------

    def update_video(
        self,
        video_id: int,
        *,
        user_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail_path: Optional[Path] = None,
    ) -> Video:
        try:
            video = self._get_or_404(video_id)
            self._ensure_owner(video, user_id)
            changes = {}
            if title is not None:
                changes["title"] = _required_text(title, "title")
            if description is not None:
                changes["description"] = _required_text(description, "description")
            if thumbnail_path is not None:
                validate_staged(thumbnail_path, max_mb=self.max_image_mb, allowed_mime=ALLOWED_IMAGE_MIME, label="thumbnail")
        except (NotFoundError, ForbiddenError, InvalidArgumentError):
            discard_staged(thumbnail_path)
            raise

        if not changes and thumbnail_path is None:
            return video

        old_thumbnail = video.thumbnail
        new_thumbnail = None
        if thumbnail_path is not None:
            # nouvelle miniature d'abord : l'ancienne n'est libérée qu'une fois remplacée
            new_thumbnail = self.media.store(thumbnail_path, prefix="thumbnails", owner_id=user_id).url
            changes["thumbnail"] = new_thumbnail

        try:
            video = self.repo.update(video, updated_at=self.now_fn(), **changes)
        except SQLAlchemyError as e:
            self.repo.rollback()
            release_quietly(self.media, new_thumbnail)
            raise InternalError("Something went wrong while updating video") from e

        if new_thumbnail:
            release_quietly(self.media, old_thumbnail)
        return video

    # -------- Delete --------

    def delete_video(self, video_id: int, *, user_id: int) -> VideoOut:
        """
        Supprime la ligne puis libère fichier + miniature.
        Les deux libérations sont toujours tentées ; un échec est remonté
        (UploadFailedError) alors que la ligne est déjà supprimée.
        """
        video = self._get_or_404(video_id)
        self._ensure_owner(video, user_id)
        snapshot = VideoOut.model_validate(video)

        self.repo.delete(video)

        failures = []
        for url in (snapshot.video_file, snapshot.thumbnail):
            try:
                self.media.release(url)
            except UploadFailedError as e:
                logger.warning("media_release_failed", url=url, error=e.message)
                failures.append(url)
        if failures:
            raise UploadFailedError(f"Video deleted but media cleanup failed for: {', '.join(failures)}")
        return snapshot

    # -------- Publication --------

    def toggle_publish(self, video_id: int, *, user_id: int) -> PublishStateOut:
        video = self._get_or_404(video_id)
        self._ensure_owner(video, user_id)
        video = self.repo.update(video, is_published=not video.is_published, updated_at=self.now_fn())
        return PublishStateOut(id=video.id, is_published=video.is_published)
