from typing import Optional

from fastapi import APIRouter, Cookie, Depends, File, Form, Response, UploadFile, status

from vidtube.api.v1.dependencies import get_auth_service, get_current_user
from vidtube.core.config import settings
from vidtube.db.models.users import User
from vidtube.features.authentication.services import AuthService
from vidtube.features.authentication.schemas import (
    RegisterIn,
    LoginIn,
    LoginOut,
    RefreshIn,
    TokenPairOut,
    ChangePasswordIn,
)
from vidtube.features.users.schemas import UserOut
from vidtube.utils.uploads import stage_upload

router = APIRouter(
    prefix="/users",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

# -------- Helpers --------

def _set_auth_cookies(response: Response, pair: TokenPairOut) -> None:
    common = dict(
        httponly=True,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        secure=settings.AUTH_COOKIE_SECURE,
        path=settings.AUTH_COOKIE_PATH,
    )
    response.set_cookie(
        key=settings.AUTH_ACCESS_COOKIE_NAME,
        value=pair.access_token,
        max_age=pair.expires_in,
        **common,
    )
    response.set_cookie(
        key=settings.AUTH_REFRESH_COOKIE_NAME,
        value=pair.refresh_token,
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        **common,
    )

def _clear_auth_cookies(response: Response) -> None:
    for key in (settings.AUTH_ACCESS_COOKIE_NAME, settings.AUTH_REFRESH_COOKIE_NAME):
        response.delete_cookie(key=key, path=settings.AUTH_COOKIE_PATH)

# -----------------------------
# Register
# -----------------------------
@router.post(
    "/register",
    summary="Créer un compte",
    description="Multipart : champs texte + avatar (obligatoire) + coverImage (optionnel).",
    status_code=status.HTTP_201_CREATED,
    response_model=UserOut,
)
async def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    svc: AuthService = Depends(get_auth_service),
):
    payload = RegisterIn(full_name=full_name, email=email, username=username, password=password)
    avatar_path = await stage_upload(avatar)
    cover_path = await stage_upload(cover_image)
    return svc.register(payload, avatar_path=avatar_path, cover_image_path=cover_path)

# -----------------------------
# Login
# -----------------------------
@router.post(
    "/login",
    summary="Se connecter",
    description="Retourne l'utilisateur + un couple access/refresh, aussi posés en cookies httpOnly.",
    response_model=LoginOut,
)
def login(
    payload: LoginIn,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
):
    out = svc.login(payload)
    _set_auth_cookies(response, out)
    return out

# -----------------------------
# Logout
# -----------------------------
@router.post(
    "/logout",
    summary="Se déconnecter (invalide le refresh token)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(
    response: Response,
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    svc.logout(user_id=user.id)
    _clear_auth_cookies(response)
    return None

# -----------------------------
# Refresh (rotation)
# -----------------------------
@router.post(
    "/refresh-token",
    summary="Renouveler les tokens (rotation)",
    description="Lit le refresh dans le body **ou** dans le cookie httpOnly.",
    response_model=TokenPairOut,
)
def refresh_token(
    response: Response,
    payload: Optional[RefreshIn] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=settings.AUTH_REFRESH_COOKIE_NAME),
    svc: AuthService = Depends(get_auth_service),
):
    # Priorité cookie > payload, comme un navigateur
    token = refresh_cookie or (payload.refresh_token if payload else None)
    pair = svc.refresh(token)
    _set_auth_cookies(response, pair)
    return pair

# -----------------------------
# Changer le mot de passe
# -----------------------------
@router.post(
    "/change-password",
    summary="Changer le mot de passe",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Mot de passe changé"},
        400: {"description": "Ancien mot de passe invalide"},
        401: {"description": "Token invalide ou expiré"},
    },
)
def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    svc.change_password(user_id=user.id, payload=payload)
    return None

# -----------------------------
# Me (profil courant)
# -----------------------------
@router.get(
    "/current-user",
    summary="Récupérer l'utilisateur courant",
    response_model=UserOut,
    responses={401: {"description": "Token invalide ou expiré"}},
)
def current_user(user: User = Depends(get_current_user)):
    return user
