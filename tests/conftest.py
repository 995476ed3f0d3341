import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from vidtube.api.v1.dependencies import get_media_store
from vidtube.core.config import jwt_settings
from vidtube.core.errors import UploadFailedError
from vidtube.db.models.users import User
from vidtube.db.models.videos import Video
from vidtube.db.repositories.subscriptions import SubscriptionRepository
from vidtube.db.repositories.users import UserRepository
from vidtube.db.repositories.videos import VideoRepository
from vidtube.db.repositories.watch_entries import WatchEntryRepository
from vidtube.db.session import get_session
from vidtube.features.authentication.services import AuthService
from vidtube.features.history.services import WatchHistoryService
from vidtube.features.media.services import StoredMedia
from vidtube.features.subscriptions.services import SubscriptionService
from vidtube.features.users.services import UserService
from vidtube.features.videos.services import VideoService
from vidtube.main import app
from vidtube.security.password import hash_password
from vidtube.security.tokens import mint_token_pair

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2" + b"\x00" * 64

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeMediaStore:
    """Stockage en mémoire : mêmes règles que MediaStore (fichier local toujours supprimé)."""

    def __init__(self):
        self.stored: List[str] = []
        self.released: List[str] = []
        self.duration: Optional[float] = 125.5
        self.fail_store_prefixes: set = set()
        self.fail_release_urls: set = set()
        self._seq = 0

    def store(self, local_path: Path, *, prefix: str = "media", owner_id: Optional[int] = None) -> StoredMedia:
        Path(local_path).unlink(missing_ok=True)
        if prefix in self.fail_store_prefixes:
            raise UploadFailedError(f"Media upload failed: {prefix}")
        self._seq += 1
        url = f"http://media.test/media/{prefix}/{owner_id or 'anonymous'}/{self._seq}"
        self.stored.append(url)
        duration = self.duration if prefix == "videos" else None
        return StoredMedia(url=url, duration_seconds=duration)

    def release(self, url: str) -> None:
        if url in self.fail_release_urls:
            raise UploadFailedError(f"Media release failed: {url}")
        self.released.append(url)

    def close(self) -> None:
        pass


class Clock:
    """Horloge injectable : avance d'une seconde à chaque lecture."""

    def __init__(self, start: datetime = BASE_TIME):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


# ---------- DB ----------

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def clock():
    return Clock()


# ---------- Services ----------

@pytest.fixture
def history_service(session, clock):
    return WatchHistoryService(
        entry_repo=WatchEntryRepository(session),
        user_repo=UserRepository(session),
        video_repo=VideoRepository(session),
        now_fn=clock,
    )


@pytest.fixture
def video_service(session, media, history_service, clock):
    return VideoService(
        repo=VideoRepository(session),
        user_repo=UserRepository(session),
        history=history_service,
        media=media,
        now_fn=clock,
    )


@pytest.fixture
def auth_service(session, media, clock):
    return AuthService(user_repo=UserRepository(session), media=media, jwt_settings=jwt_settings, now_fn=clock)


@pytest.fixture
def user_service(session, media, clock):
    return UserService(
        repo=UserRepository(session),
        subscription_repo=SubscriptionRepository(session),
        media=media,
        now_fn=clock,
    )


@pytest.fixture
def subscription_service(session):
    return SubscriptionService(repo=SubscriptionRepository(session), user_repo=UserRepository(session))


# ---------- Factories ----------

@pytest.fixture
def make_user(session):
    def _make(username: str = "alice", *, password: str = "password123", full_name: Optional[str] = None) -> User:
        return UserRepository(session).create(
            username=username,
            email=f"{username}@example.com",
            full_name=full_name or username.title(),
            hashed_password=hash_password(password),
            avatar=f"http://media.test/media/avatars/{username}",
        )
    return _make


@pytest.fixture
def make_video(session):
    def _make(owner: User, title: str = "A video", *, description: str = "desc", created_at: Optional[datetime] = None, **extra) -> Video:
        created_at = created_at or BASE_TIME
        return VideoRepository(session).create(
            video_file=f"http://media.test/media/videos/{owner.id}/{title}",
            thumbnail=f"http://media.test/media/thumbnails/{owner.id}/{title}",
            title=title,
            description=description,
            owner_id=owner.id,
            created_at=created_at,
            updated_at=created_at,
            **extra,
        )
    return _make


@pytest.fixture
def jpeg_file(tmp_path):
    def _make(name: str = "thumb.jpg") -> Path:
        path = tmp_path / name
        path.write_bytes(JPEG_BYTES)
        return path
    return _make


@pytest.fixture
def mp4_file(tmp_path):
    def _make(name: str = "clip.mp4") -> Path:
        path = tmp_path / name
        path.write_bytes(MP4_BYTES)
        return path
    return _make


# ---------- HTTP ----------

@pytest.fixture
def client(engine, media, tmp_path, monkeypatch):
    from vidtube.core.config import settings

    monkeypatch.setattr(settings, "UPLOAD_TMP_DIR", str(tmp_path / "staging"))

    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_media_store] = lambda: media
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        pair = mint_token_pair(user_id=user.id, username=user.username, settings=jwt_settings)
        return {"Authorization": f"Bearer {pair['access_token']}"}
    return _headers
