from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple
from sqlmodel import select, col
from sqlalchemy.dialects import postgresql, sqlite

from vidtube.core.errors import InternalError
from vidtube.db.repositories.base import BaseRepository
from vidtube.db.models.watch_entries import WatchEntry
from vidtube.db.models.videos import Video
from vidtube.db.models.users import User

# Dialectes qui savent faire INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class WatchEntryRepository(BaseRepository[WatchEntry]):
    """Historique de visionnage : une ligne par (user, video), ordre = id croissant."""
    model = WatchEntry

    def get_for_user_and_video(self, user_id: int, video_id: int) -> Optional[WatchEntry]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.video_id == video_id)
        ).first()

    def list_for_user(self, user_id: int) -> Sequence[WatchEntry]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(col(self.model.id).asc())
        ).all()

    def list_for_user_with_videos(
        self, user_id: int
    ) -> Sequence[Tuple[WatchEntry, Optional[Video], Optional[User]]]:
        """Entrées + vidéo vivante + propriétaire (None si la vidéo a disparu)."""
        stmt = (
            select(WatchEntry, Video, User)
            .select_from(WatchEntry)
            .join(Video, col(Video.id) == WatchEntry.video_id, isouter=True)
            .join(User, col(User.id) == Video.owner_id, isouter=True)
            .where(WatchEntry.user_id == user_id)
            .order_by(col(WatchEntry.id).asc())
        )
        return self.session.exec(stmt).all()

    def touch_or_append(self, *, user_id: int, video: Video, watched_at: datetime) -> WatchEntry:
        """
        Upsert atomique sur (user_id, video_id) :
        - existe  -> seul watched_at est rafraîchi (position, progress, snapshot inchangés)
        - absente -> ajout en fin d'historique avec le snapshot courant de la vidéo
        """
        values: Dict[str, Any] = {
            "user_id": user_id,
            "video_id": video.id,
            "title": video.title,
            "thumbnail": video.thumbnail,
            "duration": video.duration,
            "watched_at": watched_at,
            "progress": 0,
            "created_at": watched_at,
            "updated_at": watched_at,
        }

        insert = _UPSERT_INSERTS.get(self.session.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(WatchEntry).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "video_id"],
                set_={"watched_at": watched_at, "updated_at": watched_at},
            )
            self.session.connection().execute(stmt)
            self.session.commit()
        else:
            existing = self.get_for_user_and_video(user_id, video.id)
            if existing:
                self.update(existing, watched_at=watched_at, updated_at=watched_at)
            else:
                self.create(**values)

        entry = self.get_for_user_and_video(user_id, video.id)
        if entry is None:
            raise InternalError("Watch entry missing after upsert")
        return entry
