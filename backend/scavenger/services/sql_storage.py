"""
Collaborateur de stockage SQLAlchemy pour le moteur de progression.

Traduit les lignes ORM en types du domaine et les erreurs SQLAlchemy en
erreurs du moteur :
- IntegrityError (clé naturelle violée) → AlreadyCheckedIn / DuplicateStart
- TimeoutError, statement_timeout        → StorageTimeout
- OperationalError / DBAPIError          → StorageUnavailable
"""

import logging
import uuid
from contextlib import contextmanager
from functools import wraps
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from scavenger.engine.errors import (
    AlreadyCheckedIn,
    DuplicateStart,
    PlayerHuntNotFound,
    StorageTimeout,
    StorageUnavailable,
)
from scavenger.engine.types import (
    STARTED,
    CheckInRecord,
    CheckpointRecord,
    Condition,
    HuntRecord,
    PlayerHuntRecord,
    condition_adapter,
)
from scavenger.models.check_in import CheckIn
from scavenger.models.checkpoint import Checkpoint
from scavenger.models.checkpoint import Condition as ConditionRow
from scavenger.models.hunt import Hunt
from scavenger.models.player_hunt import PlayerHunt

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("statement timeout", "canceling statement", "timed out", "timeout expired")


def _rollback(db: Session) -> None:
    try:
        db.rollback()
    except SQLAlchemyError as exc:
        logger.warning("Rollback impossible après une erreur de stockage : %s", exc)


@contextmanager
def storage_errors(db: Session):
    """Convertit les pannes SQLAlchemy en StorageTimeout / StorageUnavailable."""
    try:
        yield
    except IntegrityError:
        raise
    except PoolTimeoutError as exc:
        _rollback(db)
        raise StorageTimeout("Délai dépassé en attente d'une connexion à la base.") from exc
    except OperationalError as exc:
        _rollback(db)
        if any(marker in str(exc).lower() for marker in _TIMEOUT_MARKERS):
            raise StorageTimeout("Délai dépassé lors d'une requête en base.") from exc
        raise StorageUnavailable("Base de données indisponible.") from exc
    except SQLAlchemyError as exc:
        _rollback(db)
        logger.error("Erreur de stockage : %s", exc)
        raise StorageUnavailable("Erreur d'accès à la base de données.") from exc


def storage_guarded(func):
    """Décorateur de service : applique storage_errors sur la session `db` (premier argument)."""

    @wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        with storage_errors(db):
            return func(db, *args, **kwargs)

    return wrapper


def condition_from_row(row: ConditionRow) -> Condition:
    """Ligne ORM → variante typée (REQUIRED_LOCATION | TIME_WINDOW)."""
    payload = {"id": row.id, "checkpoint_id": row.checkpoint_id, "kind": row.kind}
    if row.kind == "REQUIRED_LOCATION":
        payload["required_checkpoint_id"] = row.required_checkpoint_id
    else:
        payload["start_time"] = row.start_time
        payload["end_time"] = row.end_time
    return condition_adapter.validate_python(payload)


class SqlHuntStorage:
    """Implémentation SQLAlchemy de engine.storage.HuntStorage."""

    def __init__(self, db: Session):
        self.db = db

    # --- Lectures ---

    def find_hunt(self, hunt_id: uuid.UUID) -> Optional[HuntRecord]:
        with storage_errors(self.db):
            hunt = self.db.get(Hunt, hunt_id)
        return HuntRecord.model_validate(hunt) if hunt is not None else None

    def load_checkpoints(self, hunt_id: uuid.UUID) -> List[CheckpointRecord]:
        with storage_errors(self.db):
            rows = self.db.execute(
                select(Checkpoint)
                .where(Checkpoint.hunt_id == hunt_id)
                .order_by(Checkpoint.created_at, Checkpoint.name)
            ).scalars().all()
        return [CheckpointRecord.model_validate(row) for row in rows]

    def load_conditions(self, checkpoint_id: uuid.UUID) -> List[Condition]:
        with storage_errors(self.db):
            rows = self.db.execute(
                select(ConditionRow).where(ConditionRow.checkpoint_id == checkpoint_id)
            ).scalars().all()
        return [condition_from_row(row) for row in rows]

    def load_check_ins(self, player_id: str, hunt_id: uuid.UUID) -> List[CheckInRecord]:
        with storage_errors(self.db):
            rows = self.db.execute(
                select(CheckIn)
                .where(CheckIn.player_id == player_id, CheckIn.hunt_id == hunt_id)
                .order_by(CheckIn.checked_in_at)
            ).scalars().all()
        return [CheckInRecord.model_validate(row) for row in rows]

    def find_check_in(
        self, player_id: str, hunt_id: uuid.UUID, checkpoint_id: uuid.UUID
    ) -> Optional[CheckInRecord]:
        with storage_errors(self.db):
            row = self.db.execute(
                select(CheckIn).where(
                    CheckIn.player_id == player_id,
                    CheckIn.hunt_id == hunt_id,
                    CheckIn.checkpoint_id == checkpoint_id,
                )
            ).scalar()
        return CheckInRecord.model_validate(row) if row is not None else None

    def find_player_hunt(self, player_id: str, hunt_id: uuid.UUID) -> Optional[PlayerHuntRecord]:
        with storage_errors(self.db):
            row = self.db.execute(
                select(PlayerHunt)
                .where(PlayerHunt.player_id == player_id, PlayerHunt.hunt_id == hunt_id)
                .order_by(PlayerHunt.started_at.desc())
                .limit(1)
            ).scalar()
        return PlayerHuntRecord.model_validate(row) if row is not None else None

    def get_player_hunt(self, player_hunt_id: uuid.UUID) -> Optional[PlayerHuntRecord]:
        with storage_errors(self.db):
            row = self.db.get(PlayerHunt, player_hunt_id)
        return PlayerHuntRecord.model_validate(row) if row is not None else None

    # --- Écritures ---

    def create_check_in(
        self, player_id: str, hunt_id: uuid.UUID, checkpoint_id: uuid.UUID, timestamp: datetime
    ) -> CheckInRecord:
        """Insère le check-in ; la contrainte d'unicité couvre la course vérification/écriture."""
        check_in = CheckIn(
            id=uuid.uuid4(),
            player_id=player_id,
            hunt_id=hunt_id,
            checkpoint_id=checkpoint_id,
            checked_in_at=timestamp,
        )
        record = CheckInRecord(
            id=check_in.id,
            player_id=player_id,
            hunt_id=hunt_id,
            checkpoint_id=checkpoint_id,
            checked_in_at=timestamp,
        )
        try:
            with storage_errors(self.db):
                self.db.add(check_in)
                self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyCheckedIn("Checkpoint déjà validé.")
        return record

    def create_player_hunt(
        self, player_id: str, hunt_id: uuid.UUID, timestamp: datetime
    ) -> PlayerHuntRecord:
        player_hunt = PlayerHunt(
            id=uuid.uuid4(),
            player_id=player_id,
            hunt_id=hunt_id,
            status=STARTED,
            started_at=timestamp,
        )
        record = PlayerHuntRecord(
            id=player_hunt.id,
            player_id=player_id,
            hunt_id=hunt_id,
            status=STARTED,
            started_at=timestamp,
        )
        try:
            with storage_errors(self.db):
                self.db.add(player_hunt)
                self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateStart("Une participation existe déjà pour ce joueur et cette chasse.")
        return record

    def update_player_hunt_status(
        self,
        player_hunt_id: uuid.UUID,
        status: str,
        completion_timestamp: Optional[datetime] = None,
    ) -> PlayerHuntRecord:
        with storage_errors(self.db):
            player_hunt = self.db.get(PlayerHunt, player_hunt_id)
            if player_hunt is None:
                raise PlayerHuntNotFound(f"Participation {player_hunt_id} introuvable.")
            player_hunt.status = status
            if completion_timestamp is not None:
                player_hunt.completed_at = completion_timestamp
            self.db.commit()
            self.db.refresh(player_hunt)
        return PlayerHuntRecord.model_validate(player_hunt)
