"""
Tests unitaires du stockage SQLAlchemy : conversion des lignes ORM et
traduction des erreurs de base de données.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import UniqueConstraint
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from scavenger.engine.errors import (
    AlreadyCheckedIn,
    DuplicateStart,
    PlayerHuntNotFound,
    StorageTimeout,
    StorageUnavailable,
)
from scavenger.engine.types import (
    ABANDONED,
    STARTED,
    RequiredLocationCondition,
    TimeWindowCondition,
)
from scavenger.models.check_in import CheckIn
from scavenger.models.checkpoint import Checkpoint, Condition
from scavenger.models.player_hunt import PlayerHunt
from scavenger.services.sql_storage import SqlHuntStorage, condition_from_row

NOW = datetime(2026, 5, 25, 10, 0, tzinfo=timezone.utc)


# ----------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------

def make_checkpoint_row(**kwargs):
    row = MagicMock(spec=Checkpoint)
    row.id = kwargs.get("id", uuid.uuid4())
    row.hunt_id = kwargs.get("hunt_id", uuid.uuid4())
    row.name = kwargs.get("name", "Fontaine")
    row.clue = kwargs.get("clue", "Cherche l'eau")
    row.latitude = kwargs.get("latitude", 50.8467)
    row.longitude = kwargs.get("longitude", 4.3525)
    return row


def make_condition_row(kind, **kwargs):
    row = MagicMock(spec=Condition)
    row.id = uuid.uuid4()
    row.checkpoint_id = kwargs.get("checkpoint_id", uuid.uuid4())
    row.kind = kind
    row.required_checkpoint_id = kwargs.get("required_checkpoint_id")
    row.start_time = kwargs.get("start_time")
    row.end_time = kwargs.get("end_time")
    return row


def make_player_hunt_row(status=STARTED):
    row = MagicMock(spec=PlayerHunt)
    row.id = uuid.uuid4()
    row.player_id = "player-1"
    row.hunt_id = uuid.uuid4()
    row.status = status
    row.started_at = NOW
    row.completed_at = None
    return row


def integrity_error():
    return IntegrityError("INSERT ...", {}, Exception("duplicate key value"))


# ----------------------------------------------------------------
# Conversion des lignes
# ----------------------------------------------------------------

class TestRows:
    def test_condition_dependance(self):
        required = uuid.uuid4()
        row = make_condition_row("REQUIRED_LOCATION", required_checkpoint_id=required)

        condition = condition_from_row(row)

        assert isinstance(condition, RequiredLocationCondition)
        assert condition.required_checkpoint_id == required

    def test_condition_fenetre(self):
        row = make_condition_row("TIME_WINDOW", start_time="08:00", end_time="16:00")

        condition = condition_from_row(row)

        assert isinstance(condition, TimeWindowCondition)
        assert (condition.start_time, condition.end_time) == ("08:00", "16:00")

    def test_load_checkpoints(self):
        row = make_checkpoint_row(name="Fontaine")
        db = MagicMock()
        db.execute.return_value.scalars.return_value.all.return_value = [row]

        checkpoints = SqlHuntStorage(db).load_checkpoints(row.hunt_id)

        assert len(checkpoints) == 1
        assert checkpoints[0].id == row.id
        assert checkpoints[0].coordinates.latitude == 50.8467

    def test_find_player_hunt_absent(self):
        db = MagicMock()
        db.execute.return_value.scalar.return_value = None
        assert SqlHuntStorage(db).find_player_hunt("player-1", uuid.uuid4()) is None


# ----------------------------------------------------------------
# Écritures et contraintes d'unicité
# ----------------------------------------------------------------

class TestWrites:
    def test_create_check_in(self):
        db = MagicMock()
        hunt_id, checkpoint_id = uuid.uuid4(), uuid.uuid4()

        record = SqlHuntStorage(db).create_check_in("player-1", hunt_id, checkpoint_id, NOW)

        added = db.add.call_args[0][0]
        assert isinstance(added, CheckIn)
        assert added.id == record.id
        assert record.checked_in_at == NOW
        db.commit.assert_called_once()

    def test_check_in_en_double_leve_already_checked_in(self):
        db = MagicMock()
        db.commit.side_effect = integrity_error()

        with pytest.raises(AlreadyCheckedIn):
            SqlHuntStorage(db).create_check_in("player-1", uuid.uuid4(), uuid.uuid4(), NOW)
        db.rollback.assert_called_once()

    def test_double_demarrage_leve_duplicate_start(self):
        db = MagicMock()
        db.commit.side_effect = integrity_error()

        with pytest.raises(DuplicateStart):
            SqlHuntStorage(db).create_player_hunt("player-1", uuid.uuid4(), NOW)
        db.rollback.assert_called_once()

    def test_une_seule_participation_par_joueur_et_chasse(self):
        """Contrainte sur (player_id, hunt_id) sans filtre de statut : pas de relance après abandon."""
        constraints = [c for c in PlayerHunt.__table__.constraints if isinstance(c, UniqueConstraint)]
        assert [sorted(col.name for col in c.columns) for c in constraints] == [["hunt_id", "player_id"]]

    def test_create_player_hunt(self):
        db = MagicMock()

        record = SqlHuntStorage(db).create_player_hunt("player-1", uuid.uuid4(), NOW)

        assert record.status == STARTED
        assert record.started_at == NOW
        assert isinstance(db.add.call_args[0][0], PlayerHunt)

    def test_update_status(self):
        row = make_player_hunt_row()
        db = MagicMock()
        db.get.return_value = row

        record = SqlHuntStorage(db).update_player_hunt_status(row.id, ABANDONED)

        assert record.status == ABANDONED
        assert row.status == ABANDONED
        db.commit.assert_called_once()

    def test_update_status_introuvable(self):
        db = MagicMock()
        db.get.return_value = None

        with pytest.raises(PlayerHuntNotFound):
            SqlHuntStorage(db).update_player_hunt_status(uuid.uuid4(), ABANDONED)
        db.commit.assert_not_called()


# ----------------------------------------------------------------
# Pannes : jamais de succès silencieux
# ----------------------------------------------------------------

class TestFailures:
    def test_base_injoignable(self):
        db = MagicMock()
        db.get.side_effect = OperationalError("SELECT ...", {}, Exception("could not connect to server"))

        with pytest.raises(StorageUnavailable):
            SqlHuntStorage(db).find_hunt(uuid.uuid4())
        db.rollback.assert_called_once()

    def test_statement_timeout(self):
        db = MagicMock()
        db.execute.side_effect = OperationalError(
            "SELECT ...", {}, Exception("canceling statement due to statement timeout"),
        )

        with pytest.raises(StorageTimeout):
            SqlHuntStorage(db).load_checkpoints(uuid.uuid4())

    def test_pool_sature(self):
        db = MagicMock()
        db.execute.side_effect = PoolTimeoutError("QueuePool limit reached, connection timed out")

        with pytest.raises(StorageTimeout):
            SqlHuntStorage(db).load_check_ins("player-1", uuid.uuid4())

    def test_panne_pendant_le_commit(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT ...", {}, Exception("server closed the connection"))

        with pytest.raises(StorageUnavailable):
            SqlHuntStorage(db).create_check_in("player-1", uuid.uuid4(), uuid.uuid4(), NOW)
