"""
Point d'entrée principal de l'API Scavenger Hunt.
Démarrage : uvicorn scavenger.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import scavenger.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from scavenger.config import settings
from scavenger.engine.errors import HuntError, StorageError
from scavenger.routers import checkpoints, hunts, play

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s : %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Scavenger Hunt API",
    description="Chasses au trésor géolocalisées : checkpoints GPS, conditions d'accès et progression",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS — autorise tous les ports localhost en développement (à restreindre en production).
# allow_origin_regex est nécessaire pour les requêtes preflight POST avec Content-Type JSON.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Id", "X-Timezone"],
)


app.include_router(hunts.router)
app.include_router(checkpoints.router)
app.include_router(checkpoints.checkpoints_router)
app.include_router(play.router)


@app.exception_handler(HuntError)
async def hunt_error_handler(request: Request, exc: HuntError) -> JSONResponse:
    """Erreurs métier attendues : code HTTP et code stable portés par l'exception."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Panne du stockage : jamais masquée en succès, le client décide du retry."""
    logger.warning("Stockage indisponible (%s) sur %s : %s", exc.code, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "code": exc.code},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Scavenger Hunt API", "version": "0.1.0"}
