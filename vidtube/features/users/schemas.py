"""
➡️ But : Définir les formats d'entrée/sortie de l'API (couche validation).

UserOut → profil public (jamais le hash ni le refresh token)

AccountUpdateIn → corps PATCH /update-account

ChannelProfileOut → profil de chaîne avec compteurs d'abonnés
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OwnerOut(BaseModel):
    id: int
    username: str
    full_name: str
    avatar: str

    model_config = {"from_attributes": True}


class AccountUpdateIn(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


class ChannelProfileOut(BaseModel):
    id: int
    username: str
    full_name: str
    email: str
    avatar: str
    cover_image: str
    subscriber_count: int
    subscribed_to_count: int
    is_subscribed: bool
