"""
➡️ But : Définir la structure des tables de la base (ORM).

Ici on représente les propriétés communes de toutes les tables.

Chaque champ = une colonne SQL (avec type, index, clé primaire...).
Les dates sont toujours en UTC avec fuseau (colonnes DateTime(timezone=True)).
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Heure courante en UTC, avec fuseau."""
    return datetime.now(timezone.utc)


class BaseModelDB(SQLModel, table=False):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
