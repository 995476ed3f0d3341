"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l'instance FastAPI (app).

Configure :

CORS (autorisations de qui peut appeler ces API)

titre, version, tags

gestion centralisée des erreurs métier

schéma OpenAPI personnalisé

Inclut les routers (ex : /api/v1/videos).

Au démarrage (lifespan) : logs structlog, création des tables, MediaStore partagé.

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d'exécution : uvicorn vidtube.main:app --reload.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog
import uvicorn

from vidtube.core.config import settings
from vidtube.core.errors import register_error_handlers
from vidtube.core.log_config import configure_logging
from vidtube.core.openapi import custom_openapi
from vidtube.db.session import dispose_db, init_db
from vidtube.features.media.services import MediaStore

from vidtube.api.v1.routers import authentication, users, videos, subscriptions

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    init_db()
    app.state.media_store = MediaStore()
    logger.info("app_started", env=settings.ENV)
    yield
    app.state.media_store.close()
    dispose_db()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Inscription, connexion, sessions JWT"},
            {"name": "users", "description": "Compte courant, chaînes, historique"},
            {"name": "videos", "description": "Catalogue, upload et cycle de vie des vidéos"},
            {"name": "subscriptions", "description": "Abonnements aux chaînes"},
        ],
    )

    # CORS (ajustez selon vos besoins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    register_error_handlers(app)

    # Routers
    app.include_router(authentication.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(videos.router, prefix="/api/v1")
    app.include_router(subscriptions.router, prefix="/api/v1")

    app.openapi = lambda: custom_openapi(app)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("vidtube.main:app", host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
