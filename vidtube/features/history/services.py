from datetime import datetime
from typing import Callable, List

from vidtube.core.errors import InternalError, NotFoundError
from vidtube.db.models.base import utcnow
from vidtube.db.models.videos import Video
from vidtube.db.repositories.users import UserRepository
from vidtube.db.repositories.videos import VideoRepository
from vidtube.db.repositories.watch_entries import WatchEntryRepository
from vidtube.features.history.schemas import WatchEntryOut, WatchHistoryItemOut
from vidtube.features.users.schemas import OwnerOut
from vidtube.features.videos.schemas import VideoOut


class WatchHistoryService:
    """
    Historique de visionnage par utilisateur.

    - Au plus une entrée par vidéo : revoir une vidéo rafraîchit watched_at
      sur place, sans déplacer l'entrée ni toucher au snapshot / progress.
    - Une nouvelle vidéo est ajoutée en fin d'historique.
    """

    def __init__(
        self,
        *,
        entry_repo: WatchEntryRepository,
        user_repo: UserRepository,
        video_repo: VideoRepository,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.entries = entry_repo
        self.users = user_repo
        self.videos = video_repo
        self.now_fn = now_fn

    def record_view(self, *, user_id: int, video: Video) -> Video:
        if not self.users.get(user_id):
            # ne devrait pas arriver pour un appelant authentifié
            raise InternalError("Authenticated user not found")
        self.entries.touch_or_append(user_id=user_id, video=video, watched_at=self.now_fn())
        return video

    def record_view_by_id(self, *, user_id: int, video_id: int) -> Video:
        video = self.videos.get(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return self.record_view(user_id=user_id, video=video)

    def list_history(self, user_id: int) -> List[WatchHistoryItemOut]:
        rows = self.entries.list_for_user_with_videos(user_id)
        return [
            WatchHistoryItemOut(
                **WatchEntryOut.model_validate(entry).model_dump(),
                video=VideoOut.model_validate(video) if video else None,
                owner=OwnerOut.model_validate(owner) if owner else None,
            )
            for entry, video, owner in rows
        ]
