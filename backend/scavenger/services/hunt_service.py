"""
Service métier pour les chasses : création, découverte, modification, suppression.
Seul l'auteur d'une chasse peut la modifier ou la supprimer.
"""

import uuid
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scavenger.engine.errors import DuplicateHuntName, HuntNotFound, NotHuntOwner
from scavenger.models.checkpoint import Checkpoint, Condition
from scavenger.models.hunt import Hunt
from scavenger.schemas.hunt import (
    MAX_HUNT_NAME_LENGTH,
    HuntCreate,
    HuntNameSuggestions,
    HuntResponse,
    HuntUpdate,
)
from scavenger.services.sql_storage import storage_guarded

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


@storage_guarded
def create_hunt(db: Session, owner_id: str, data: HuntCreate) -> HuntResponse:
    """
    Crée une chasse pour l'utilisateur courant.

    Le nom (déjà nettoyé par le schéma) doit être unique pour cet auteur :
    vérification préalable, puis contrainte UNIQUE(owner_id, name) en filet de sécurité.
    """
    if name_taken(db, owner_id, data.name):
        raise DuplicateHuntName(f"Une chasse nommée '{data.name}' existe déjà.")

    hunt = Hunt(
        id=uuid.uuid4(),
        name=data.name,
        description=data.description,
        owner_id=owner_id,
        is_public=data.is_public,
    )
    db.add(hunt)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateHuntName(f"Une chasse nommée '{data.name}' existe déjà.")
    db.refresh(hunt)

    logger.info("Chasse créée : %s (%s) par %s", hunt.name, hunt.id, owner_id)
    return _to_response(db, hunt)


@storage_guarded
def name_taken(db: Session, owner_id: str, name: str) -> bool:
    existing = db.execute(
        select(Hunt.id).where(Hunt.owner_id == owner_id, Hunt.name == name.strip())
    ).scalar()
    return existing is not None


@storage_guarded
def get_hunt(db: Session, hunt_id: uuid.UUID, viewer_id: Optional[str] = None) -> Optional[HuntResponse]:
    """Retourne une chasse publique, ou privée si `viewer_id` en est l'auteur ; sinon None."""
    hunt = db.get(Hunt, hunt_id)
    if hunt is None or (not hunt.is_public and hunt.owner_id != viewer_id):
        return None
    return _to_response(db, hunt)


@storage_guarded
def get_owned_hunt(db: Session, hunt_id: uuid.UUID, owner_id: str) -> Hunt:
    """Charge une chasse en vérifiant que `owner_id` en est l'auteur."""
    hunt = db.get(Hunt, hunt_id)
    if hunt is None:
        raise HuntNotFound(f"Chasse {hunt_id} introuvable.")
    if hunt.owner_id != owner_id:
        raise NotHuntOwner("Seul l'auteur de la chasse peut la modifier.")
    return hunt


@storage_guarded
def list_owner_hunts(db: Session, owner_id: str) -> List[HuntResponse]:
    """Chasses de l'auteur, de la plus récente à la plus ancienne."""
    hunts = db.execute(
        select(Hunt).where(Hunt.owner_id == owner_id).order_by(Hunt.created_at.desc())
    ).scalars().all()
    return [_to_response(db, h) for h in hunts]


@storage_guarded
def list_public_hunts(db: Session, search: Optional[str] = None) -> List[HuntResponse]:
    """Découverte : chasses publiques, filtrées par nom (insensible à la casse)."""
    query = select(Hunt).where(Hunt.is_public.is_(True))
    if search and search.strip():
        query = query.where(Hunt.name.ilike(f"%{search.strip()}%"))
    hunts = db.execute(query.order_by(Hunt.created_at.desc())).scalars().all()
    return [_to_response(db, h) for h in hunts]


@storage_guarded
def update_hunt(db: Session, hunt_id: uuid.UUID, owner_id: str, data: HuntUpdate) -> HuntResponse:
    """Met à jour nom, description ou visibilité (auteur uniquement)."""
    hunt = get_owned_hunt(db, hunt_id, owner_id)

    update_data = data.model_dump(exclude_unset=True)
    new_name = update_data.get("name")
    if new_name is not None and new_name != hunt.name and name_taken(db, owner_id, new_name):
        raise DuplicateHuntName(f"Une chasse nommée '{new_name}' existe déjà.")

    for field, value in update_data.items():
        setattr(hunt, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateHuntName(f"Une chasse nommée '{new_name}' existe déjà.")
    db.refresh(hunt)
    return _to_response(db, hunt)


@storage_guarded
def delete_hunt(db: Session, hunt_id: uuid.UUID, owner_id: str) -> None:
    """
    Supprime une chasse avec ses checkpoints et leurs conditions.
    Les participations et check-ins des joueurs sont conservés (références par identifiant).
    """
    hunt = get_owned_hunt(db, hunt_id, owner_id)

    checkpoint_ids = select(Checkpoint.id).where(Checkpoint.hunt_id == hunt.id)
    db.execute(delete(Condition).where(Condition.checkpoint_id.in_(checkpoint_ids)))
    db.execute(delete(Checkpoint).where(Checkpoint.hunt_id == hunt.id))
    db.delete(hunt)
    db.commit()

    logger.info("Chasse supprimée : %s par %s", hunt_id, owner_id)


@storage_guarded
def suggest_hunt_names(
    db: Session, owner_id: str, name: str, today: Optional[date] = None
) -> HuntNameSuggestions:
    """
    Propose jusqu'à 3 variantes libres du nom demandé :
    "<nom> 2", "<nom> (New)", "<nom> - <année>", "My <nom>", "<nom> Adventure", "<nom> Quest".
    """
    base = name.strip()
    year = (today or date.today()).year
    variations = [
        f"{base} 2",
        f"{base} (New)",
        f"{base} - {year}",
        f"My {base}",
        f"{base} Adventure",
        f"{base} Quest",
    ]

    suggestions: List[str] = []
    for variation in variations:
        if len(variation) <= MAX_HUNT_NAME_LENGTH and not name_taken(db, owner_id, variation):
            suggestions.append(variation)
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    return HuntNameSuggestions(
        requested=base,
        available=not name_taken(db, owner_id, base),
        suggestions=suggestions,
    )


def _to_response(db: Session, hunt: Hunt) -> HuntResponse:
    """Construit le schéma de réponse avec le nombre de checkpoints."""
    total = db.execute(
        select(func.count())
        .select_from(Checkpoint)
        .where(Checkpoint.hunt_id == hunt.id)
    ).scalar() or 0

    return HuntResponse(
        id=hunt.id,
        name=hunt.name,
        description=hunt.description,
        owner_id=hunt.owner_id,
        is_public=hunt.is_public,
        checkpoint_count=total,
        created_at=hunt.created_at,
        updated_at=hunt.updated_at,
    )
