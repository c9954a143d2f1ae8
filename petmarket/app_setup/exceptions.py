"""
Gestionnaires d’exceptions de l’API.
- HTTPException (dont les erreurs métier MarketplaceError et les 404/405 du routeur): JSON {"detail", "error"}.
- Exception non gérée: 500 {"detail", "error": "internal_error"}, journalisée avec la pile.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Code stable par défaut quand l'exception n'en porte pas
DEFAULT_ERROR_CODES = {
    400: "bad_request",
    401: "not_authenticated",
    403: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
}

def error_code_for(exc: StarletteHTTPException) -> str:
    return getattr(exc, "code", None) or DEFAULT_ERROR_CODES.get(exc.status_code, "http_error")

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers JSON.
    - "error" reprend le code stable des erreurs métier, sinon un code dérivé du statut HTTP.
    - Enregistré sur la HTTPException de Starlette pour couvrir aussi les routes inconnues et les méthodes refusées.
    - Les en-têtes portés par l’exception (ex: Retry-After du rate limiter, Allow du 405) sont conservés.
    """
    @app.exception_handler(StarletteHTTPException)
    async def json_http_exception(request: Request, exc: StarletteHTTPException):
        content = {"detail": exc.detail, "error": error_code_for(exc)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def json_unhandled_exception(request: Request, exc: Exception):
        logger.exception("Erreur non gérée sur %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Erreur interne du serveur", "error": "internal_error"},
        )
