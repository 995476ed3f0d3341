from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import structlog

from vidtube.core.config import settings
from vidtube.core.errors import (
    ConflictError,
    InternalError,
    InvalidArgumentError,
    UnauthorizedError,
    UploadFailedError,
)
from vidtube.db.models.base import utcnow
from vidtube.db.models.users import User
from vidtube.db.repositories.users import UserRepository
from vidtube.features.authentication.schemas import (
    ChangePasswordIn,
    LoginIn,
    LoginOut,
    RegisterIn,
    TokenPairOut,
)
from vidtube.features.media.services import MediaStore, release_quietly, validate_staged
from vidtube.features.users.schemas import UserOut
from vidtube.security.password import hash_password, verify_password
from vidtube.security.tokens import JWTSettings, decode_token, mint_token_pair
from vidtube.utils.media_files import ALLOWED_IMAGE_MIME
from vidtube.utils.uploads import discard_staged

logger = structlog.get_logger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre le repository User, le stockage média et les tokens.
    Ne contient pas d'accès SQL direct et lève des erreurs métier typées.

    Un seul refresh token actif par utilisateur (stocké sur User) :
    login et refresh le remplacent, logout l'efface.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        media: MediaStore,
        jwt_settings: JWTSettings,
        now_fn: Callable[[], datetime] = utcnow,
        max_image_mb: int = settings.MAX_IMAGE_MB,
    ):
        self.user_repo = user_repo
        self.media = media
        self.jwt = jwt_settings
        self.now_fn = now_fn
        self.max_image_mb = max_image_mb

    # ---------- Helpers ----------
    def _issue_tokens(self, user: User) -> TokenPairOut:
        pair = mint_token_pair(user_id=user.id, username=user.username, settings=self.jwt)
        self.user_repo.update(user, refresh_token=pair["refresh_token"])
        return TokenPairOut(**pair)

    # ---------- Register ----------
    def register(
        self,
        payload: RegisterIn,
        *,
        avatar_path: Optional[Path],
        cover_image_path: Optional[Path] = None,
    ) -> User:
        try:
            fields = {
                name: (getattr(payload, name) or "").strip()
                for name in ("full_name", "email", "username", "password")
            }
            blank = [name for name, value in fields.items() if not value]
            if blank:
                raise InvalidArgumentError(f"{', '.join(blank)} is required")
            if len(payload.password) < 8:
                raise InvalidArgumentError("password must be at least 8 characters")
            username = fields["username"].lower()
            email = fields["email"].lower()

            if self.user_repo.get_by_identifier(username=username, email=email):
                raise ConflictError("User with email or username already exists")

            if avatar_path is None:
                raise InvalidArgumentError("Avatar file is required")
            validate_staged(avatar_path, max_mb=self.max_image_mb, allowed_mime=ALLOWED_IMAGE_MIME, label="avatar")
            if cover_image_path is not None:
                validate_staged(cover_image_path, max_mb=self.max_image_mb, allowed_mime=ALLOWED_IMAGE_MIME, label="coverImage")
        except (InvalidArgumentError, ConflictError):
            discard_staged(avatar_path, cover_image_path)
            raise

        try:
            avatar = self.media.store(avatar_path, prefix="avatars")
        except UploadFailedError:
            discard_staged(cover_image_path)
            raise
        cover_url = ""
        if cover_image_path is not None:
            try:
                cover_url = self.media.store(cover_image_path, prefix="covers").url
            except UploadFailedError:
                release_quietly(self.media, avatar.url)
                raise

        try:
            user = self.user_repo.create(
                full_name=fields["full_name"],
                email=email,
                username=username,
                hashed_password=hash_password(payload.password),
                avatar=avatar.url,
                cover_image=cover_url,
            )
        except IntegrityError as e:
            # course sur les index uniques
            self.user_repo.rollback()
            release_quietly(self.media, avatar.url)
            release_quietly(self.media, cover_url)
            raise ConflictError("User with email or username already exists") from e
        except SQLAlchemyError as e:
            self.user_repo.rollback()
            release_quietly(self.media, avatar.url)
            release_quietly(self.media, cover_url)
            raise InternalError("Something went wrong while registering the user") from e

        created = self.user_repo.get(user.id)
        if not created:
            raise InternalError("Something went wrong while registering the user")
        logger.info("user_registered", user_id=created.id, username=created.username)
        return created

    # ---------- Login ----------
    def login(self, payload: LoginIn) -> LoginOut:
        if not (payload.username or payload.email):
            raise InvalidArgumentError("username or email is required")

        user = self.user_repo.get_by_identifier(username=payload.username, email=payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            raise UnauthorizedError("Invalid user credentials")

        pair = self._issue_tokens(user)
        logger.info("user_logged_in", user_id=user.id)
        return LoginOut(**pair.model_dump(), user=UserOut.model_validate(user))

    # ---------- Refresh (rotation) ----------
    def refresh(self, refresh_token: Optional[str]) -> TokenPairOut:
        if not refresh_token:
            raise UnauthorizedError("Unauthorized request")

        try:
            decoded = decode_token(refresh_token, self.jwt)
        except JWTError:
            raise UnauthorizedError("Invalid refresh token")

        if decoded.get("typ") != "refresh":
            raise UnauthorizedError("Invalid token type")

        try:
            user = self.user_repo.get(int(decoded.get("sub", "")))
        except ValueError:
            user = None
        if not user:
            raise UnauthorizedError("Invalid refresh token")

        # un seul refresh actif : tout autre token (ancien, déjà utilisé) est refusé
        if refresh_token != user.refresh_token:
            raise UnauthorizedError("Refresh token is expired or used")

        return self._issue_tokens(user)

    # ---------- Logout ----------
    def logout(self, *, user_id: int) -> None:
        user = self.user_repo.get(user_id)
        if not user:
            return
        self.user_repo.update(user, refresh_token=None)

    # ---------- Current user depuis access token ----------
    def get_current_user(self, *, access_token: Optional[str]) -> User:
        if not access_token:
            raise UnauthorizedError("Unauthorized request")
        try:
            decoded = decode_token(access_token, self.jwt)
        except JWTError:
            raise UnauthorizedError("Invalid access token")

        if decoded.get("typ") != "access":
            raise UnauthorizedError("Invalid token type")

        try:
            user = self.user_repo.get(int(decoded.get("sub", "")))
        except ValueError:
            user = None
        if not user:
            raise UnauthorizedError("Invalid access token")
        return user

    # ---------- Changement de mot de passe ----------
    def change_password(self, *, user_id: int, payload: ChangePasswordIn) -> None:
        user = self.user_repo.get(user_id)
        if not user:
            raise UnauthorizedError("Invalid access token")

        if not verify_password(payload.old_password, user.hashed_password):
            raise InvalidArgumentError("Invalid old password")

        self.user_repo.update(
            user,
            hashed_password=hash_password(payload.new_password),
            updated_at=self.now_fn(),
        )
