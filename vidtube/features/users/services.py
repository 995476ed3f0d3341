"""
➡️ But : Contenir la logique métier des comptes : profil, avatar / bannière, page de chaîne.

Lève des erreurs métier typées (vidtube.core.errors), converties en réponses HTTP par l'API.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import structlog

from vidtube.core.config import settings
from vidtube.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from vidtube.db.models.base import utcnow
from vidtube.db.models.users import User
from vidtube.db.repositories.subscriptions import SubscriptionRepository
from vidtube.db.repositories.users import UserRepository
from vidtube.features.media.services import MediaStore, release_quietly, validate_staged
from vidtube.features.users.schemas import AccountUpdateIn, ChannelProfileOut
from vidtube.utils.media_files import ALLOWED_IMAGE_MIME
from vidtube.utils.uploads import discard_staged

logger = structlog.get_logger(__name__)


class UserService:
    def __init__(
        self,
        *,
        repo: UserRepository,
        subscription_repo: SubscriptionRepository,
        media: MediaStore,
        now_fn: Callable[[], datetime] = utcnow,
        max_image_mb: int = settings.MAX_IMAGE_MB,
    ):
        self.repo = repo
        self.subscriptions = subscription_repo
        self.media = media
        self.now_fn = now_fn
        self.max_image_mb = max_image_mb

    def get(self, user_id: int) -> User:
        user = self.repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ---------- Compte ----------

    def update_account(self, user_id: int, payload: AccountUpdateIn) -> User:
        full_name = (payload.full_name or "").strip()
        email = (payload.email or "").strip().lower()
        if not full_name and not email:
            raise InvalidArgumentError("At least one field is required")

        user = self.get(user_id)
        changes = {}
        if full_name:
            changes["full_name"] = full_name
        if email and email != user.email:
            taken = self.repo.get_by_email(email)
            if taken and taken.id != user.id:
                raise ConflictError("Email already in use")
            changes["email"] = email
        changes["updated_at"] = self.now_fn()

        try:
            return self.repo.update(user, **changes)
        except IntegrityError as e:
            self.repo.rollback()
            raise ConflictError("Email already in use") from e

    # ---------- Médias du profil ----------

    def _replace_image(self, user_id: int, *, field: str, local_path: Optional[Path], prefix: str, label: str) -> User:
        """Envoie la nouvelle image, met à jour la ligne, puis seulement libère l'ancienne."""
        if local_path is None:
            raise InvalidArgumentError(f"{label} file is missing")
        try:
            user = self.get(user_id)
            validate_staged(local_path, max_mb=self.max_image_mb, allowed_mime=ALLOWED_IMAGE_MIME, label=label)
        except (NotFoundError, InvalidArgumentError):
            discard_staged(local_path)
            raise

        old_url = getattr(user, field)
        new_url = self.media.store(local_path, prefix=prefix, owner_id=user_id).url
        try:
            user = self.repo.update(user, **{field: new_url, "updated_at": self.now_fn()})
        except SQLAlchemyError:
            self.repo.rollback()
            release_quietly(self.media, new_url)
            raise
        release_quietly(self.media, old_url)
        logger.info("profile_image_replaced", user_id=user_id, field=field)
        return user

    def update_avatar(self, user_id: int, local_path: Optional[Path]) -> User:
        return self._replace_image(user_id, field="avatar", local_path=local_path, prefix="avatars", label="Avatar")

    def update_cover_image(self, user_id: int, local_path: Optional[Path]) -> User:
        return self._replace_image(user_id, field="cover_image", local_path=local_path, prefix="covers", label="Cover image")

    # ---------- Chaîne ----------

    def channel_profile(self, username: str, *, viewer_id: Optional[int] = None) -> ChannelProfileOut:
        username = (username or "").strip()
        if not username:
            raise InvalidArgumentError("username is missing")
        channel = self.repo.get_by_username(username)
        if not channel:
            raise NotFoundError("Channel does not exist")

        is_subscribed = False
        if viewer_id is not None:
            is_subscribed = self.subscriptions.get_pair(viewer_id, channel.id) is not None

        return ChannelProfileOut(
            id=channel.id,
            username=channel.username,
            full_name=channel.full_name,
            email=channel.email,
            avatar=channel.avatar,
            cover_image=channel.cover_image,
            subscriber_count=self.subscriptions.count_subscribers(channel.id),
            subscribed_to_count=self.subscriptions.count_subscribed_to(channel.id),
            is_subscribed=is_subscribed,
        )
