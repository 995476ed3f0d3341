from sqlmodel import Field
from sqlalchemy import Column, ForeignKey, Integer

from .base import BaseModelDB


class Video(BaseModelDB, table=True):
    """Vidéos publiées : fichier + miniature dans le stockage média, référencés en DB."""

    # l'historique référence video_id sans FK : un id supprimé ne doit jamais être réattribué
    __table_args__ = {"sqlite_autoincrement": True}

    video_file: str = Field(description="URL du fichier vidéo (possédé par la vidéo)")
    thumbnail: str = Field(description="URL de la miniature (possédée par la vidéo)")
    title: str = Field(index=True)
    description: str
    duration: float = Field(default=0, ge=0, description="Durée en secondes (2 décimales)")
    views: int = Field(default=0, ge=0)
    is_published: bool = Field(default=True)

    owner_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id"),
            nullable=False,
            index=True,
        ),
        description="Propriétaire de la vidéo (immuable)",
    )
