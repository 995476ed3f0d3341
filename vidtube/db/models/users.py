"""
➡️ But : Table User (comptes, profil de chaîne, session de refresh).

Le refresh token actif est stocké directement sur l'utilisateur : une seule
valeur valide à la fois, en émettre un nouveau invalide l'ancien.
"""

from typing import Optional
from sqlmodel import Field

from .base import BaseModelDB

class User(BaseModelDB, table=True):
    username: str = Field(index=True, unique=True, description="Toujours en minuscules")
    email: str = Field(index=True, unique=True)
    full_name: str = Field(index=True)
    hashed_password: str
    avatar: str = Field(description="URL de l'avatar dans le stockage média")
    cover_image: str = Field(default="", description="URL de la bannière (peut être vide)")
    refresh_token: Optional[str] = Field(default=None)
