"""
➡️ But : Encapsuler toutes les opérations de base de données sur User.

UserRepository : CRUD + recherches par username / email.

Ne contient aucune logique métier, juste de la persistance.
"""

from __future__ import annotations

from typing import Optional
from sqlmodel import select, or_

from vidtube.db.repositories.base import BaseRepository
from vidtube.db.models.users import User

class UserRepository(BaseRepository[User]):
    """
    Repository pour la table User.
    Les usernames et emails sont stockés en minuscules : les recherches aussi.
    """
    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(
            select(self.model).where(self.model.username == username.lower())
        ).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(self.model).where(self.model.email == email.lower())
        ).first()

    def get_by_identifier(
        self, *, username: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[User]:
        """Premier utilisateur dont le username OU l'email correspond."""
        clauses = []
        if username:
            clauses.append(self.model.username == username.lower())
        if email:
            clauses.append(self.model.email == email.lower())
        if not clauses:
            return None
        return self.session.exec(select(self.model).where(or_(*clauses))).first()

    def get_id_by_username(self, username: str) -> Optional[int]:
        return self.session.exec(
            select(self.model.id).where(self.model.username == username.lower())
        ).first()
