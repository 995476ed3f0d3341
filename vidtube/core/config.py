"""
➡️ But : Centraliser tous les paramètres configurables (nom d'app, DB, secrets JWT, S3, uploads...).

Utilise pydantic-settings pour charger automatiquement les variables d'environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from vidtube.core.config import settings
print(settings.APP_NAME)
"""

from datetime import timedelta
from typing import Optional

from pydantic_settings import BaseSettings
from vidtube.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "vidtube"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "vidtube.db"
    # Pour Postgres, définir DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "vidtube"
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TTL_MINUTES: int = 15
    REFRESH_TTL_DAYS: int = 10

    # Cookies
    AUTH_ACCESS_COOKIE_NAME: str = "accessToken"
    AUTH_REFRESH_COOKIE_NAME: str = "refreshToken"
    AUTH_COOKIE_SAMESITE: str = "lax"     # "lax" | "strict" | "none"
    AUTH_COOKIE_PATH: str = "/"
    AUTH_COOKIE_SECURE: Optional[bool] = None   # auto selon ENV si None
    AUTH_COOKIE_MAX_AGE: Optional[int] = None   # auto depuis REFRESH_TTL si None

    # -----------------------------
    # Stockage média (S3 / MinIO)
    # -----------------------------
    S3_ENDPOINT: str = "http://localhost:9000"
    S3_PUBLIC_BASE_URL: Optional[str] = None    # défaut : S3_ENDPOINT
    S3_REGION: str = "us-east-1"
    S3_KEY: str = "minioadmin"
    S3_SECRET: str = "minioadmin"
    S3_BUCKET: str = "media"

    # -----------------------------
    # Uploads
    # -----------------------------
    MAX_UPLOAD_MB: int = 512
    MAX_IMAGE_MB: int = 10
    UPLOAD_TMP_DIR: str = "./public/temp"
    FFPROBE_BIN: str = "ffprobe"

    # -----------------------------
    # Catalogue
    # -----------------------------
    MAX_PAGE_SIZE: int = 100

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context):
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        if self.AUTH_COOKIE_SECURE is None:
            object.__setattr__(self, "AUTH_COOKIE_SECURE", self.ENV == "prod")

        if self.AUTH_COOKIE_MAX_AGE is None:
            max_age = self.REFRESH_TTL_DAYS * 24 * 60 * 60
            object.__setattr__(self, "AUTH_COOKIE_MAX_AGE", max_age)

        if not self.S3_PUBLIC_BASE_URL:
            object.__setattr__(self, "S3_PUBLIC_BASE_URL", self.S3_ENDPOINT)


# Instance globale importable partout
settings = Settings()

# Objet JWT prêt à l'emploi pour les services
jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TTL_MINUTES),
    refresh_ttl=timedelta(days=settings.REFRESH_TTL_DAYS),
)
