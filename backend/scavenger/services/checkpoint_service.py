"""
Service métier pour les checkpoints d'une chasse et leurs conditions d'accès.
Réservé à l'auteur de la chasse.
"""

import uuid
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from scavenger.engine.conditions import dependency_edges, find_dependency_cycle
from scavenger.engine.errors import (
    CheckpointNotFound,
    ConditionNotFound,
    DependencyCycle,
    HuntNotFound,
    InvalidCondition,
)
from scavenger.engine.geodesy import validate_coordinates
from scavenger.engine.timezones import get_zone, local_time_to_utc, utc_time_to_local
from scavenger.models.checkpoint import Checkpoint, Condition
from scavenger.models.hunt import Hunt
from scavenger.schemas.checkpoint import (
    CheckpointCreate,
    CheckpointResponse,
    CheckpointUpdate,
    ConditionCreate,
    ConditionResponse,
)
from scavenger.services.hunt_service import get_owned_hunt
from scavenger.services.sql_storage import condition_from_row, storage_guarded

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------
# Checkpoints
# ----------------------------------------------------------------

@storage_guarded
def create_checkpoint(
    db: Session,
    hunt_id: uuid.UUID,
    owner_id: str,
    data: CheckpointCreate,
) -> CheckpointResponse:
    """
    Ajoute un checkpoint à une chasse.

    Lève HuntNotFound / NotHuntOwner si la chasse est introuvable ou n'appartient
    pas à l'utilisateur, InvalidCoordinates si les coordonnées sont hors bornes.
    """
    hunt = get_owned_hunt(db, hunt_id, owner_id)
    validate_coordinates(data.latitude, data.longitude)

    checkpoint = Checkpoint(
        id=uuid.uuid4(),
        hunt_id=hunt.id,
        name=data.name,
        clue=data.clue,
        latitude=data.latitude,
        longitude=data.longitude,
    )
    db.add(checkpoint)
    db.commit()
    db.refresh(checkpoint)

    logger.info("Checkpoint créé : %s (%s) dans la chasse %s", checkpoint.name, checkpoint.id, hunt.id)
    return _to_response(db, checkpoint)


@storage_guarded
def list_checkpoints(db: Session, hunt_id: uuid.UUID, viewer_id: Optional[str] = None) -> List[CheckpointResponse]:
    """Checkpoints d'une chasse publique, ou privée pour son auteur."""
    hunt = db.get(Hunt, hunt_id)
    if hunt is None or (not hunt.is_public and hunt.owner_id != viewer_id):
        raise HuntNotFound(f"Chasse {hunt_id} introuvable.")

    checkpoints = db.execute(
        select(Checkpoint)
        .where(Checkpoint.hunt_id == hunt_id)
        .order_by(Checkpoint.created_at, Checkpoint.name)
    ).scalars().all()
    return [_to_response(db, cp) for cp in checkpoints]


@storage_guarded
def update_checkpoint(
    db: Session,
    checkpoint_id: uuid.UUID,
    owner_id: str,
    data: CheckpointUpdate,
) -> CheckpointResponse:
    """Modifie nom, indice ou coordonnées ; les coordonnées finales sont revalidées."""
    checkpoint = get_owned_checkpoint(db, checkpoint_id, owner_id)

    update_data = data.model_dump(exclude_unset=True)
    validate_coordinates(
        update_data.get("latitude", checkpoint.latitude),
        update_data.get("longitude", checkpoint.longitude),
    )
    for field, value in update_data.items():
        setattr(checkpoint, field, value)

    db.commit()
    db.refresh(checkpoint)
    return _to_response(db, checkpoint)


@storage_guarded
def delete_checkpoint(db: Session, checkpoint_id: uuid.UUID, owner_id: str) -> None:
    """
    Supprime un checkpoint et ses conditions, ainsi que les conditions
    REQUIRED_LOCATION d'autres checkpoints qui le désignaient.
    """
    checkpoint = get_owned_checkpoint(db, checkpoint_id, owner_id)

    db.execute(
        delete(Condition).where(
            or_(
                Condition.checkpoint_id == checkpoint.id,
                Condition.required_checkpoint_id == checkpoint.id,
            )
        )
    )
    db.delete(checkpoint)
    db.commit()
    logger.info("Checkpoint supprimé : %s", checkpoint_id)


@storage_guarded
def get_owned_checkpoint(db: Session, checkpoint_id: uuid.UUID, owner_id: str) -> Checkpoint:
    checkpoint = db.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        raise CheckpointNotFound(f"Checkpoint {checkpoint_id} introuvable.")
    get_owned_hunt(db, checkpoint.hunt_id, owner_id)
    return checkpoint


def _to_response(db: Session, checkpoint: Checkpoint) -> CheckpointResponse:
    total = db.execute(
        select(func.count())
        .select_from(Condition)
        .where(Condition.checkpoint_id == checkpoint.id)
    ).scalar() or 0

    return CheckpointResponse(
        id=checkpoint.id,
        hunt_id=checkpoint.hunt_id,
        name=checkpoint.name,
        clue=checkpoint.clue,
        latitude=checkpoint.latitude,
        longitude=checkpoint.longitude,
        condition_count=total,
        created_at=checkpoint.created_at,
    )


# ----------------------------------------------------------------
# Conditions
# ----------------------------------------------------------------

@storage_guarded
def list_conditions(
    db: Session,
    checkpoint_id: uuid.UUID,
    owner_id: str,
    tz_name: str = "UTC",
    today: Optional[date] = None,
) -> List[ConditionResponse]:
    """Conditions du checkpoint, fenêtres horaires affichées dans le fuseau `tz_name`."""
    checkpoint = get_owned_checkpoint(db, checkpoint_id, owner_id)
    rows = db.execute(
        select(Condition).where(Condition.checkpoint_id == checkpoint.id)
    ).scalars().all()
    return [_condition_response(row, tz_name, today) for row in rows]


@storage_guarded
def create_condition(
    db: Session,
    checkpoint_id: uuid.UUID,
    owner_id: str,
    data: ConditionCreate,
    today: Optional[date] = None,
) -> ConditionResponse:
    """
    Ajoute une condition d'accès.

    REQUIRED_LOCATION : le checkpoint requis doit exister dans la même chasse,
    être différent du checkpoint lui-même, et ne pas créer de cycle de dépendances.
    TIME_WINDOW : les heures saisies dans `data.timezone` sont stockées en UTC.
    """
    checkpoint = get_owned_checkpoint(db, checkpoint_id, owner_id)
    reference = today or datetime.now(timezone.utc).date()

    condition = Condition(id=uuid.uuid4(), checkpoint_id=checkpoint.id, kind=data.kind)

    if data.kind == "REQUIRED_LOCATION":
        _validate_dependency(db, checkpoint, data.required_checkpoint_id)
        condition.required_checkpoint_id = data.required_checkpoint_id
    else:
        tz = get_zone(data.timezone)
        condition.start_time = local_time_to_utc(data.start_time, tz, reference)
        condition.end_time = local_time_to_utc(data.end_time, tz, reference)

    db.add(condition)
    db.commit()
    db.refresh(condition)

    logger.info("Condition %s ajoutée au checkpoint %s (%s)", condition.id, checkpoint.id, data.kind)
    return _condition_response(condition, data.timezone, reference)


@storage_guarded
def delete_condition(db: Session, condition_id: uuid.UUID, owner_id: str) -> None:
    condition = db.get(Condition, condition_id)
    if condition is None:
        raise ConditionNotFound(f"Condition {condition_id} introuvable.")
    get_owned_checkpoint(db, condition.checkpoint_id, owner_id)

    db.delete(condition)
    db.commit()


def _validate_dependency(db: Session, checkpoint: Checkpoint, required_id: uuid.UUID) -> None:
    if required_id == checkpoint.id:
        raise InvalidCondition("Un checkpoint ne peut pas dépendre de lui-même.")

    required = db.get(Checkpoint, required_id)
    if required is None or required.hunt_id != checkpoint.hunt_id:
        raise InvalidCondition("Le checkpoint requis doit appartenir à la même chasse.")

    rows = db.execute(
        select(Condition)
        .join(Checkpoint, Checkpoint.id == Condition.checkpoint_id)
        .where(Checkpoint.hunt_id == checkpoint.hunt_id, Condition.kind == "REQUIRED_LOCATION")
    ).scalars().all()
    edges = dependency_edges(condition_from_row(row) for row in rows)
    edges.setdefault(checkpoint.id, set()).add(required_id)

    cycle = find_dependency_cycle(edges)
    if cycle is not None:
        raise DependencyCycle(
            "Cette condition créerait un cycle de dépendances : "
            + " → ".join(str(node) for node in cycle)
        )


def _condition_response(row: Condition, tz_name: str, today: Optional[date]) -> ConditionResponse:
    response = ConditionResponse(
        id=row.id,
        checkpoint_id=row.checkpoint_id,
        kind=row.kind,
        required_checkpoint_id=row.required_checkpoint_id,
        timezone=tz_name,
    )
    if row.kind == "TIME_WINDOW":
        tz = get_zone(tz_name)
        response.start_time_utc = row.start_time
        response.end_time_utc = row.end_time
        response.start_time = utc_time_to_local(row.start_time, tz, today)
        response.end_time = utc_time_to_local(row.end_time, tz, today)
    return response
