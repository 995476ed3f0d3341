from typing import List
from sqlmodel import select, or_, func, col
from sqlalchemy import update

from vidtube.db.repositories.base import BaseRepository
from vidtube.db.models.videos import Video
from vidtube.db.models.users import User
from vidtube.features.videos.schemas import (
    PageRequest,
    SortDirection,
    SortField,
    VideoFilter,
    VideoSort,
    VideoSummaryOut,
)

_SORT_COLUMNS = {
    SortField.TITLE: Video.title,
    SortField.CREATED_AT: Video.created_at,
    SortField.DURATION: Video.duration,
    SortField.VIEWS: Video.views,
}


class VideoRepository(BaseRepository[Video]):
    """CRUD Vidéos + requête catalogue (filtre / tri / pagination)."""
    model = Video

    # ---------- HELPERS ----------

    def _select_summary(self):
        """Projection SQL standardisée pour construire VideoSummaryOut."""
        return (
            select(
                Video.id,
                Video.video_file,
                Video.thumbnail,
                Video.title,
                Video.description,
                Video.duration,
                Video.views,
                Video.is_published,
                Video.created_at,
                Video.owner_id,
                User.username.label("owner_username"),
                User.full_name.label("owner_full_name"),
                User.avatar.label("owner_avatar"),
            )
            .select_from(Video)
            .join(User, User.id == Video.owner_id)
        )

    @staticmethod
    def _apply_filter(stmt, flt: VideoFilter):
        if flt.q:
            # recherche insensible à la casse, jokers LIKE échappés
            stmt = stmt.where(
                or_(
                    col(Video.title).icontains(flt.q, autoescape=True),
                    col(Video.description).icontains(flt.q, autoescape=True),
                )
            )
        if flt.owner_id is not None:
            stmt = stmt.where(Video.owner_id == flt.owner_id)
        return stmt

    @staticmethod
    def _order_by(sort: VideoSort):
        column = col(_SORT_COLUMNS[sort.field])
        # id en clé secondaire : pagination déterministe à valeurs égales
        if sort.direction is SortDirection.DESC:
            return column.desc(), col(Video.id).desc()
        return column.asc(), col(Video.id).asc()

    # ---------- CATALOGUE ----------

    def count_matching(self, flt: VideoFilter) -> int:
        stmt = self._apply_filter(select(func.count(Video.id)), flt)
        return self.session.exec(stmt).one()

    def search(self, flt: VideoFilter, sort: VideoSort, page: PageRequest) -> List[VideoSummaryOut]:
        stmt = self._apply_filter(self._select_summary(), flt)
        stmt = stmt.order_by(*self._order_by(sort)).offset(page.offset).limit(page.limit)
        rows = self.session.exec(stmt).all()
        return [VideoSummaryOut(**dict(r._mapping)) for r in rows]

    # ---------- COMPTEURS ----------

    def increment_views(self, video: Video) -> Video:
        """Incrément atomique côté SQL (pas de read-modify-write)."""
        self.session.connection().execute(
            update(Video).where(col(Video.id) == video.id).values(views=Video.views + 1)
        )
        self.session.commit()
        self.session.refresh(video)
        return video
