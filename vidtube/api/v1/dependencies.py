"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_video_service() : crée un VideoService à partir d'une session DB et du MediaStore.

get_current_user() : résout l'utilisateur depuis le bearer ou le cookie d'access token.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à surcharger dans les tests (app.dependency_overrides).
"""

from typing import Optional

from fastapi import Cookie, Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from vidtube.core.config import settings, jwt_settings
from vidtube.db.models.users import User
from vidtube.db.session import get_session

from vidtube.db.repositories.users import UserRepository
from vidtube.db.repositories.videos import VideoRepository
from vidtube.db.repositories.watch_entries import WatchEntryRepository
from vidtube.db.repositories.subscriptions import SubscriptionRepository

from vidtube.features.authentication.services import AuthService
from vidtube.features.history.services import WatchHistoryService
from vidtube.features.media.services import MediaStore
from vidtube.features.subscriptions.services import SubscriptionService
from vidtube.features.users.services import UserService
from vidtube.features.videos.services import VideoService


# -----------------------------
# Singletons applicatifs
# -----------------------------
def get_media_store(request: Request) -> MediaStore:
    """MediaStore créé au démarrage (lifespan) et rangé dans app.state."""
    return request.app.state.media_store


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)

def get_watch_entry_repository(session: Session = Depends(get_session)) -> WatchEntryRepository:
    return WatchEntryRepository(session)

def get_subscription_repository(session: Session = Depends(get_session)) -> SubscriptionRepository:
    return SubscriptionRepository(session)


# -----------------------------
# Services
# -----------------------------
def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    media: MediaStore = Depends(get_media_store),
) -> AuthService:
    return AuthService(user_repo=user_repo, media=media, jwt_settings=jwt_settings)

def get_user_service(
    user_repo: UserRepository = Depends(get_user_repository),
    subscription_repo: SubscriptionRepository = Depends(get_subscription_repository),
    media: MediaStore = Depends(get_media_store),
) -> UserService:
    return UserService(repo=user_repo, subscription_repo=subscription_repo, media=media)

def get_history_service(
    entry_repo: WatchEntryRepository = Depends(get_watch_entry_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    video_repo: VideoRepository = Depends(get_video_repository),
) -> WatchHistoryService:
    return WatchHistoryService(entry_repo=entry_repo, user_repo=user_repo, video_repo=video_repo)

def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    history: WatchHistoryService = Depends(get_history_service),
    media: MediaStore = Depends(get_media_store),
) -> VideoService:
    return VideoService(repo=video_repo, user_repo=user_repo, history=history, media=media)

def get_subscription_service(
    repo: SubscriptionRepository = Depends(get_subscription_repository),
    user_repo: UserRepository = Depends(get_user_repository),
) -> SubscriptionService:
    return SubscriptionService(repo=repo, user_repo=user_repo)


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    access_cookie: Optional[str] = Cookie(default=None, alias=settings.AUTH_ACCESS_COOKIE_NAME),
) -> Optional[str]:
    """Cookie httpOnly (navigateur) ou header Authorization: Bearer (autres clients)."""
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return access_cookie

def get_current_user(
    access_token: Optional[str] = Depends(get_access_token),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    return auth_svc.get_current_user(access_token=access_token)
