"""
Router pour les chasses : création, découverte, modification, suppression.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from scavenger.database import get_db
from scavenger.deps import get_current_user_id, get_optional_user_id
from scavenger.schemas.hunt import HuntCreate, HuntNameSuggestions, HuntResponse, HuntUpdate
from scavenger.services import hunt_service

router = APIRouter(prefix="/api/v1/hunts", tags=["Chasses"])


@router.post("", response_model=HuntResponse, status_code=201, summary="Créer une chasse")
def create_hunt(
    data: HuntCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Crée une chasse. Le nom doit être unique parmi les chasses de l'auteur (sinon 409)."""
    return hunt_service.create_hunt(db, user_id, data)


@router.get("", response_model=List[HuntResponse], summary="Découvrir les chasses publiques")
def list_public_hunts(
    search: Optional[str] = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
):
    return hunt_service.list_public_hunts(db, search)


@router.get("/mine", response_model=List[HuntResponse], summary="Mes chasses (auteur)")
def list_my_hunts(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    return hunt_service.list_owner_hunts(db, user_id)


@router.get("/suggestions", response_model=HuntNameSuggestions, summary="Suggestions de noms libres")
def suggest_names(
    name: str = Query(min_length=1, max_length=255),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return hunt_service.suggest_hunt_names(db, user_id, name)


@router.get("/{hunt_id}", response_model=HuntResponse, summary="Détail d'une chasse")
def get_hunt(
    hunt_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """Une chasse privée n'est visible que par son auteur (404 pour les autres)."""
    hunt = hunt_service.get_hunt(db, hunt_id, user_id)
    if hunt is None:
        raise HTTPException(status_code=404, detail="Chasse introuvable.")
    return hunt


@router.patch("/{hunt_id}", response_model=HuntResponse, summary="Modifier une chasse")
def update_hunt(
    hunt_id: uuid.UUID,
    data: HuntUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Nom, description, visibilité. Réservé à l'auteur (403 sinon)."""
    return hunt_service.update_hunt(db, hunt_id, user_id, data)


@router.delete("/{hunt_id}", status_code=204, summary="Supprimer une chasse")
def delete_hunt(
    hunt_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Supprime la chasse, ses checkpoints et leurs conditions."""
    hunt_service.delete_hunt(db, hunt_id, user_id)
