"""
Routers pour les checkpoints d'une chasse et leurs conditions d'accès (auteur).
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from scavenger.database import get_db
from scavenger.deps import get_current_user_id, get_optional_user_id, get_timezone_name
from scavenger.schemas.checkpoint import (
    CheckpointCreate,
    CheckpointResponse,
    CheckpointUpdate,
    ConditionCreate,
    ConditionResponse,
)
from scavenger.services import checkpoint_service

# /api/v1/hunts/{hunt_id}/checkpoints
router = APIRouter(prefix="/api/v1/hunts", tags=["Checkpoints"])

# /api/v1/checkpoints/{checkpoint_id}, /api/v1/conditions/{condition_id}
checkpoints_router = APIRouter(prefix="/api/v1", tags=["Checkpoints"])


@router.post(
    "/{hunt_id}/checkpoints",
    response_model=CheckpointResponse,
    status_code=201,
    summary="Ajouter un checkpoint",
)
def create_checkpoint(
    hunt_id: uuid.UUID,
    data: CheckpointCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Ajoute un checkpoint (nom, indice, coordonnées GPS) à la chasse.

    Retourne 404 si la chasse est introuvable, 403 si l'utilisateur n'en est pas
    l'auteur, 422 si les coordonnées sont hors bornes.
    """
    return checkpoint_service.create_checkpoint(db, hunt_id, user_id, data)


@router.get("/{hunt_id}/checkpoints", response_model=List[CheckpointResponse], summary="Lister les checkpoints")
def list_checkpoints(
    hunt_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    return checkpoint_service.list_checkpoints(db, hunt_id, user_id)


@checkpoints_router.patch(
    "/checkpoints/{checkpoint_id}",
    response_model=CheckpointResponse,
    summary="Modifier un checkpoint",
)
def update_checkpoint(
    checkpoint_id: uuid.UUID,
    data: CheckpointUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return checkpoint_service.update_checkpoint(db, checkpoint_id, user_id, data)


@checkpoints_router.delete("/checkpoints/{checkpoint_id}", status_code=204, summary="Supprimer un checkpoint")
def delete_checkpoint(
    checkpoint_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Supprime le checkpoint et toutes les conditions qui le concernent."""
    checkpoint_service.delete_checkpoint(db, checkpoint_id, user_id)


@checkpoints_router.get(
    "/checkpoints/{checkpoint_id}/conditions",
    response_model=List[ConditionResponse],
    summary="Lister les conditions d'un checkpoint",
)
def list_conditions(
    checkpoint_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    tz_name: str = Depends(get_timezone_name),
):
    """Les fenêtres horaires sont renvoyées en UTC et dans le fuseau X-Timezone."""
    return checkpoint_service.list_conditions(db, checkpoint_id, user_id, tz_name)


@checkpoints_router.post(
    "/checkpoints/{checkpoint_id}/conditions",
    response_model=ConditionResponse,
    status_code=201,
    summary="Ajouter une condition d'accès",
)
def create_condition(
    checkpoint_id: uuid.UUID,
    data: ConditionCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    REQUIRED_LOCATION : dépendance vers un autre checkpoint de la même chasse
    (422 si auto-référence, autre chasse ou cycle).
    TIME_WINDOW : fenêtre quotidienne saisie dans le fuseau `timezone`, stockée en UTC.
    """
    return checkpoint_service.create_condition(db, checkpoint_id, user_id, data)


@checkpoints_router.delete("/conditions/{condition_id}", status_code=204, summary="Supprimer une condition")
def delete_condition(
    condition_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    checkpoint_service.delete_condition(db, condition_id, user_id)
