"""
Router côté joueur : démarrer / abandonner une chasse, check-in GPS, progression.
Délègue toutes les règles au moteur de progression.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from scavenger.database import get_db
from scavenger.deps import get_current_user_id, get_engine
from scavenger.engine.engine import HuntProgressionEngine
from scavenger.engine.errors import AlreadyCheckedIn
from scavenger.engine.types import PLAYER_HUNT_STATUSES, Coordinates
from scavenger.schemas.play import (
    CheckInRequest,
    CheckInResponse,
    CheckpointStatusResponse,
    HuntPlayState,
    PlayerHuntResponse,
    PlayerHuntSummary,
    ProgressResponse,
)
from scavenger.services import play_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Jeu"])


@router.post(
    "/hunts/{hunt_id}/start",
    response_model=PlayerHuntResponse,
    status_code=201,
    summary="Démarrer une chasse",
)
def start_hunt(
    hunt_id: uuid.UUID,
    engine: HuntProgressionEngine = Depends(get_engine),
    user_id: str = Depends(get_current_user_id),
):
    """Retourne 409 si une participation est déjà en cours pour cette chasse."""
    player_hunt = engine.start_hunt(user_id, hunt_id)
    return PlayerHuntResponse.model_validate(player_hunt)


@router.post(
    "/player-hunts/{player_hunt_id}/abandon",
    response_model=PlayerHuntResponse,
    summary="Abandonner une chasse",
)
def abandon_hunt(
    player_hunt_id: uuid.UUID,
    engine: HuntProgressionEngine = Depends(get_engine),
    user_id: str = Depends(get_current_user_id),
):
    """Définitif : une chasse abandonnée ne peut pas être reprise (409 si déjà terminée)."""
    player_hunt = engine.abandon_hunt(player_hunt_id, user_id)
    return PlayerHuntResponse.model_validate(player_hunt)


@router.post(
    "/hunts/{hunt_id}/checkpoints/{checkpoint_id}/check-in",
    response_model=CheckInResponse,
    summary="Check-in à un checkpoint",
)
def check_in(
    hunt_id: uuid.UUID,
    checkpoint_id: uuid.UUID,
    data: CheckInRequest,
    engine: HuntProgressionEngine = Depends(get_engine),
    user_id: str = Depends(get_current_user_id),
):
    """
    Valide la présence du joueur au checkpoint.

    Erreurs : 409 chasse non démarrée, 403 checkpoint verrouillé,
    422 joueur à plus de 50 m. Un check-in déjà enregistré est un no-op :
    200 avec already_checked_in = true et la progression courante.
    """
    location = Coordinates(latitude=data.latitude, longitude=data.longitude)
    try:
        result = engine.attempt_check_in(user_id, hunt_id, checkpoint_id, location)
    except AlreadyCheckedIn:
        logger.debug("Check-in en double ignoré : %s / %s", user_id, checkpoint_id)
        existing = engine.storage.find_check_in(user_id, hunt_id, checkpoint_id)
        return CheckInResponse(
            checkpoint_id=checkpoint_id,
            checked_in_at=existing.checked_in_at if existing else None,
            already_checked_in=True,
            progress=ProgressResponse.from_progress(engine.get_progress(user_id, hunt_id)),
        )

    return CheckInResponse(
        checkpoint_id=checkpoint_id,
        checked_in_at=result.check_in.checked_in_at,
        distance_m=round(result.distance_m, 1),
        progress=ProgressResponse.from_progress(result.progress),
        hunt_completed=result.hunt_completed,
        newly_available=result.newly_available,
    )


@router.get("/hunts/{hunt_id}/progress", response_model=ProgressResponse, summary="Progression du joueur")
def get_progress(
    hunt_id: uuid.UUID,
    engine: HuntProgressionEngine = Depends(get_engine),
    user_id: str = Depends(get_current_user_id),
):
    return ProgressResponse.from_progress(engine.get_progress(user_id, hunt_id))


@router.get("/hunts/{hunt_id}/play", response_model=HuntPlayState, summary="État de jeu d'une chasse")
def get_play_state(
    hunt_id: uuid.UUID,
    latitude: Optional[float] = Query(default=None, ge=-90, le=90),
    longitude: Optional[float] = Query(default=None, ge=-180, le=180),
    engine: HuntProgressionEngine = Depends(get_engine),
    user_id: str = Depends(get_current_user_id),
):
    """
    Statut de chaque checkpoint (LOCKED / AVAILABLE / COMPLETED) et progression.
    Si la position est fournie, les checkpoints accessibles portent distance et direction.
    """
    location = None
    if latitude is not None and longitude is not None:
        location = Coordinates(latitude=latitude, longitude=longitude)

    player_hunt = engine.storage.find_player_hunt(user_id, hunt_id)
    views = engine.get_checkpoint_statuses(user_id, hunt_id, player_location=location)
    return HuntPlayState(
        hunt_id=hunt_id,
        player_hunt=PlayerHuntResponse.model_validate(player_hunt) if player_hunt else None,
        progress=ProgressResponse.from_progress(engine.get_progress(user_id, hunt_id)),
        checkpoints=[CheckpointStatusResponse.from_view(view) for view in views],
    )


@router.get("/players/me/hunts", response_model=List[PlayerHuntSummary], summary="Mes participations")
def list_my_player_hunts(
    status: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Chasses en cours (status=STARTED), terminées (COMPLETED), abandonnées ou toutes."""
    if status is not None and status not in PLAYER_HUNT_STATUSES:
        raise HTTPException(
            status_code=422,
            detail=f"Statut invalide. Valeurs acceptées : {sorted(PLAYER_HUNT_STATUSES)}",
        )
    return play_service.list_player_hunts(db, user_id, status)
