import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TypedDict

from jose import jwt

# ==========================================================
# 🔧 Configuration : paramètres de génération/validation JWT
# ==========================================================

@dataclass(frozen=True)
class JWTSettings:
    """
    Configuration des tokens JWT.

    - `secret` : clé secrète pour signer/valider les tokens
    - `issuer` : émetteur (utilisé dans le payload)
    - `algorithm` : algo de signature (HS256 recommandé)
    - `access_ttl` : durée de vie d'un access token
    - `refresh_ttl` : durée de vie d'un refresh token
    """
    secret: str
    issuer: str = "vidtube"
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=10)


# ==========================================================
# 🧱 Types
# ==========================================================

class TokenPair(TypedDict):
    access_token: str
    refresh_token: str
    token_type: str     # "bearer"
    expires_in: int     # durée de vie de l'access token (en secondes)

class DecodedToken(TypedDict, total=False):
    iss: str
    sub: str            # identifiant utilisateur
    username: str
    typ: str            # "access" | "refresh"
    jti: str
    iat: int
    exp: int


# ==========================================================
# 🧩 Fonctions utilitaires
# ==========================================================

def _now() -> datetime:
    return datetime.now(timezone.utc)

def new_jti() -> str:
    """Crée un identifiant unique pour un token."""
    return str(uuid.uuid4())


def _encode(*, user_id: int, username: str, typ: str, ttl: timedelta, settings: JWTSettings) -> str:
    now = _now()
    payload: DecodedToken = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "username": username,
        "typ": typ,
        "jti": new_jti(),
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


# ==========================================================
# 🎟️ Génération des tokens
# ==========================================================

def create_access_token(*, user_id: int, username: str, settings: JWTSettings) -> str:
    """Access token JWT court (par défaut 15 min)."""
    return _encode(user_id=user_id, username=username, typ="access", ttl=settings.access_ttl, settings=settings)


def create_refresh_token(*, user_id: int, username: str, settings: JWTSettings) -> str:
    """
    Refresh token JWT long (par défaut 10 jours).
    Chaque émission a son propre JTI : le token stocké sur l'utilisateur
    est donc toujours unique, et en émettre un nouveau invalide l'ancien.
    """
    return _encode(user_id=user_id, username=username, typ="refresh", ttl=settings.refresh_ttl, settings=settings)


# ==========================================================
# 🔍 Décodage / Validation
# ==========================================================

def decode_token(token: str, settings: JWTSettings) -> DecodedToken:
    """
    Décode et valide un token JWT (signature + expiration + émetteur).
    Lève JWTError en cas de signature invalide ou expirée.
    """
    decoded = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        options={"verify_aud": False},
    )
    return decoded  # type: ignore[return-value]


# ==========================================================
# 🪙 Utilitaire pratique pour générer un couple complet
# ==========================================================

def mint_token_pair(*, user_id: int, username: str, settings: JWTSettings) -> TokenPair:
    """Génère un couple (access_token + refresh_token) cohérent."""
    return {
        "access_token": create_access_token(user_id=user_id, username=username, settings=settings),
        "refresh_token": create_refresh_token(user_id=user_id, username=username, settings=settings),
        "token_type": "bearer",
        "expires_in": int(settings.access_ttl.total_seconds()),
    }
