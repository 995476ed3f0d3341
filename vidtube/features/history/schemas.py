from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from vidtube.features.users.schemas import OwnerOut
from vidtube.features.videos.schemas import VideoOut


class WatchEntryOut(BaseModel):
    """Snapshot pris au premier visionnage (peut diverger de la vidéo vivante)."""
    video_id: int
    title: str
    thumbnail: str
    duration: float
    watched_at: datetime
    progress: float

    model_config = {"from_attributes": True}


class WatchHistoryItemOut(WatchEntryOut):
    video: Optional[VideoOut] = None
    owner: Optional[OwnerOut] = None
