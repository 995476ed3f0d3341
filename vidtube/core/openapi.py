"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) modifie le schéma généré par FastAPI pour ajouter
une description détaillée et les conventions de l'API.
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "Backend de partage de vidéos : comptes, sessions JWT, vidéos, historique, abonnements.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Pagination des vidéos : query params `page` & `limit`.\n"
            "- Tri : `sortBy` ∈ {title, createdAt, duration, views}, `sortType` ∈ {asc, desc}.\n"
            "- Erreurs : `{\"success\": false, \"kind\": ..., \"message\": ...}`.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
