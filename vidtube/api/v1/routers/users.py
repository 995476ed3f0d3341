"""
➡️ But : Endpoints du compte courant et des chaînes.

Les routes ne contiennent ni SQL ni logique métier : elles résolvent
l'utilisateur, délèguent au service et retournent les schémas de sortie.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from vidtube.api.v1.dependencies import get_current_user, get_history_service, get_user_service
from vidtube.db.models.users import User
from vidtube.features.history.schemas import WatchHistoryItemOut
from vidtube.features.history.services import WatchHistoryService
from vidtube.features.users.schemas import AccountUpdateIn, ChannelProfileOut, UserOut
from vidtube.features.users.services import UserService
from vidtube.utils.uploads import stage_upload

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not Found"}},
)

@router.patch(
    "/update-account",
    summary="Mettre à jour nom complet et/ou email",
    response_model=UserOut,
)
def update_account(
    payload: AccountUpdateIn,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.update_account(user.id, payload)

@router.patch(
    "/avatar",
    summary="Remplacer l'avatar",
    response_model=UserOut,
)
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    path = await stage_upload(avatar)
    return svc.update_avatar(user.id, path)

@router.patch(
    "/cover-image",
    summary="Remplacer la bannière",
    response_model=UserOut,
)
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    path = await stage_upload(cover_image)
    return svc.update_cover_image(user.id, path)

@router.get(
    "/c/{username}",
    summary="Profil de chaîne (compteurs d'abonnés)",
    response_model=ChannelProfileOut,
)
def channel_profile(
    username: str,
    user: User = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return svc.channel_profile(username, viewer_id=user.id)

@router.get(
    "/history",
    summary="Historique de visionnage (ordre d'ajout)",
    response_model=List[WatchHistoryItemOut],
)
def watch_history(
    user: User = Depends(get_current_user),
    history: WatchHistoryService = Depends(get_history_service),
):
    return history.list_history(user.id)
