from datetime import datetime
from sqlmodel import Field
from sqlalchemy import DateTime, UniqueConstraint

from vidtube.db.models.base import BaseModelDB, utcnow


class WatchEntry(BaseModelDB, table=True):
    """
    Une ligne d'historique : un utilisateur a regardé une vidéo.

    - (user_id, video_id) unique : un revisionnage met à jour watched_at sur place.
    - L'ordre de l'historique est l'ordre d'insertion (id croissant).
    - title/thumbnail/duration sont une copie prise au premier visionnage,
      volontairement sans FK vers video : l'entrée survit à la vidéo.
    """
    __tablename__ = "watch_entry"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_entry_user_video"),
    )

    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    video_id: int = Field(index=True, nullable=False)

    title: str
    thumbnail: str
    duration: float = Field(default=0)

    watched_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    progress: float = Field(default=0)
