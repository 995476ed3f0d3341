from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field as PydField


# ---------- Requête catalogue (structures typées compilées par le repository) ----------

class SortField(str, Enum):
    """Champs triables : tout le reste est refusé."""
    TITLE = "title"
    CREATED_AT = "createdAt"
    DURATION = "duration"
    VIEWS = "views"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class VideoFilter:
    q: Optional[str] = None
    owner_id: Optional[int] = None


@dataclass(frozen=True)
class VideoSort:
    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ---------- IN / UPDATE ----------

class VideoUpdateIn(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


# ---------- OUT ----------

class VideoOut(BaseModel):
    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VideoSummaryOut(BaseModel):
    """Ligne de catalogue : la vidéo + son propriétaire résolu."""
    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    owner_id: int
    owner_username: str
    owner_full_name: str
    owner_avatar: str


class VideoPageOut(BaseModel):
    items: List[VideoSummaryOut]
    page: int
    limit: int
    total_count: int
    total_pages: int


class VideoUploadedOut(BaseModel):
    video: VideoOut
    uploaded_by: str


class PublishStateOut(BaseModel):
    id: int
    is_published: bool = PydField(..., description="Nouvel état après bascule")
