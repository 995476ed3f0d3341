from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from vidtube.api.v1.dependencies import get_current_user, get_video_service
from vidtube.db.models.users import User
from vidtube.features.videos.schemas import PublishStateOut, VideoOut, VideoPageOut, VideoUploadedOut
from vidtube.features.videos.services import VideoService
from vidtube.utils.uploads import stage_upload

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Catalogue
# -----------------------------
@router.get(
    "",
    summary="Lister les vidéos (recherche, tri, pagination)",
    response_model=VideoPageOut,
    responses={
        400: {"description": "Pagination ou tri invalide"},
        404: {"description": "Chaîne (username) introuvable"},
    },
)
def list_videos(
    page: int = Query(1, description="Numéro de page (1..n)"),
    limit: int = Query(10, description="Taille de page (plafonnée par MAX_PAGE_SIZE)"),
    query: Optional[str] = Query(None, description="Recherche dans titre / description"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="title | createdAt | duration | views"),
    sort_type: Optional[str] = Query(None, alias="sortType", description="asc | desc"),
    username: Optional[str] = Query(None, description="Filtrer sur une chaîne"),
    _user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return svc.list_videos(
        page=page,
        limit=limit,
        q=query,
        sort_by=sort_by,
        sort_type=sort_type,
        username=username,
    )

# -----------------------------
# Upload
# -----------------------------
@router.post(
    "/upload",
    summary="Publier une vidéo (Back → S3 → DB)",
    description="Multipart : title, description, videoFile, thumbnail.",
    status_code=status.HTTP_201_CREATED,
    response_model=VideoUploadedOut,
)
async def upload_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    video_path = await stage_upload(video_file)
    thumbnail_path = await stage_upload(thumbnail)
    return svc.publish_video(
        owner_id=user.id,
        title=title,
        description=description,
        video_path=video_path,
        thumbnail_path=thumbnail_path,
    )

# -----------------------------
# Lecture (+ historique)
# -----------------------------
@router.get(
    "/{video_id}",
    summary="Récupérer une vidéo (compte la vue, alimente l'historique)",
    response_model=VideoOut,
)
def get_video(
    video_id: int,
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return svc.watch_video(video_id, viewer_id=user.id)

# -----------------------------
# Mise à jour
# -----------------------------
@router.patch(
    "/{video_id}",
    summary="Modifier titre / description / miniature",
    response_model=VideoOut,
    responses={403: {"description": "Interdit"}},
)
async def update_video(
    video_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    thumbnail_path = await stage_upload(thumbnail)
    return svc.update_video(
        video_id,
        user_id=user.id,
        title=title,
        description=description,
        thumbnail_path=thumbnail_path,
    )

# -----------------------------
# Suppression
# -----------------------------
@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo (ligne DB + objets S3)",
    response_model=VideoOut,
    responses={
        401: {"description": "Non authentifié"},
        403: {"description": "Interdit"},
        404: {"description": "Introuvable"},
        502: {"description": "Ligne supprimée mais nettoyage S3 incomplet"},
    },
)
def delete_video(
    video_id: int,
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return svc.delete_video(video_id, user_id=user.id)

# -----------------------------
# Publication
# -----------------------------
@router.patch(
    "/{video_id}/publish-status",
    summary="Basculer publié / non publié (propriétaire uniquement)",
    response_model=PublishStateOut,
)
def toggle_publish_status(
    video_id: int,
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return svc.toggle_publish(video_id, user_id=user.id)
