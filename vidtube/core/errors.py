"""
➡️ But : Une hiérarchie d'erreurs métier unique, partagée par tous les services.

Les services lèvent ces exceptions (jamais d'HTTPException) ; un seul handler
FastAPI (voir register_error_handlers) les convertit en réponse JSON :

    {"success": false, "kind": "NOT_FOUND", "message": "Video not found"}
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Erreur métier typée : un kind stable, un message, un code HTTP."""

    kind: str = "INTERNAL"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.kind


class InvalidArgumentError(AppError):
    kind = "INVALID_ARGUMENT"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    kind = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    kind = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    kind = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    kind = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class UploadFailedError(AppError):
    kind = "UPLOAD_FAILED"
    status_code = status.HTTP_502_BAD_GATEWAY


class InternalError(AppError):
    kind = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, kind=exc.kind, message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "kind": exc.kind, "message": exc.message},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
