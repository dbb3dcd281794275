"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et fournit un stockage en mémoire pour tester le moteur de progression.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from scavenger.database import get_db
from scavenger.engine.engine import HuntProgressionEngine
from scavenger.engine.errors import AlreadyCheckedIn, DuplicateStart, PlayerHuntNotFound
from scavenger.engine.types import (
    STARTED,
    CheckInRecord,
    CheckpointRecord,
    Condition,
    HuntRecord,
    PlayerHuntRecord,
)
from scavenger.main import app

PLAYER_ID = "player-1"
NOW = datetime(2026, 5, 25, 10, 0, tzinfo=timezone.utc)


class FakeHuntStorage:
    """
    Stockage en mémoire respectant le contrat de HuntStorage
    (unicité des check-ins, une seule participation par joueur et chasse).

    `failure` : si renseignée, toute opération lève cette exception.
    `status_failure` : levée une seule fois par la prochaine mise à jour de statut.
    """

    def __init__(self):
        self.hunts: Dict[uuid.UUID, HuntRecord] = {}
        self.checkpoints: List[CheckpointRecord] = []
        self.conditions: Dict[uuid.UUID, List[Condition]] = {}
        self.check_ins: List[CheckInRecord] = []
        self.player_hunts: List[PlayerHuntRecord] = []
        self.writes = 0
        self.failure: Optional[Exception] = None
        self.status_failure: Optional[Exception] = None

    # --- Construction du jeu de données ---

    def add_hunt(self, name="Downtown Adventure", owner_id="author-1") -> HuntRecord:
        hunt = HuntRecord(id=uuid.uuid4(), name=name, owner_id=owner_id, is_public=True)
        self.hunts[hunt.id] = hunt
        return hunt

    def add_checkpoint(self, hunt_id, name, latitude, longitude, clue="") -> CheckpointRecord:
        checkpoint = CheckpointRecord(
            id=uuid.uuid4(), hunt_id=hunt_id, name=name, clue=clue,
            latitude=latitude, longitude=longitude,
        )
        self.checkpoints.append(checkpoint)
        return checkpoint

    def add_condition(self, condition: Condition) -> Condition:
        self.conditions.setdefault(condition.checkpoint_id, []).append(condition)
        return condition

    def _check(self):
        if self.failure is not None:
            raise self.failure

    # --- HuntStorage ---

    def find_hunt(self, hunt_id):
        self._check()
        return self.hunts.get(hunt_id)

    def load_checkpoints(self, hunt_id):
        self._check()
        return [cp for cp in self.checkpoints if cp.hunt_id == hunt_id]

    def load_conditions(self, checkpoint_id):
        self._check()
        return list(self.conditions.get(checkpoint_id, []))

    def load_check_ins(self, player_id, hunt_id):
        self._check()
        return [ci for ci in self.check_ins if ci.player_id == player_id and ci.hunt_id == hunt_id]

    def find_check_in(self, player_id, hunt_id, checkpoint_id):
        self._check()
        return next(
            (ci for ci in self.load_check_ins(player_id, hunt_id) if ci.checkpoint_id == checkpoint_id),
            None,
        )

    def create_check_in(self, player_id, hunt_id, checkpoint_id, timestamp):
        self._check()
        if self.find_check_in(player_id, hunt_id, checkpoint_id) is not None:
            raise AlreadyCheckedIn("Checkpoint déjà validé.")
        check_in = CheckInRecord(
            id=uuid.uuid4(), player_id=player_id, hunt_id=hunt_id,
            checkpoint_id=checkpoint_id, checked_in_at=timestamp,
        )
        self.check_ins.append(check_in)
        self.writes += 1
        return check_in

    def find_player_hunt(self, player_id, hunt_id):
        self._check()
        matches = [ph for ph in self.player_hunts if ph.player_id == player_id and ph.hunt_id == hunt_id]
        return matches[-1] if matches else None

    def get_player_hunt(self, player_hunt_id):
        self._check()
        return next((ph for ph in self.player_hunts if ph.id == player_hunt_id), None)

    def create_player_hunt(self, player_id, hunt_id, timestamp):
        self._check()
        if any(
            ph.player_id == player_id and ph.hunt_id == hunt_id
            for ph in self.player_hunts
        ):
            raise DuplicateStart("Une participation existe déjà pour ce joueur.")
        player_hunt = PlayerHuntRecord(
            id=uuid.uuid4(), player_id=player_id, hunt_id=hunt_id,
            status=STARTED, started_at=timestamp,
        )
        self.player_hunts.append(player_hunt)
        self.writes += 1
        return player_hunt

    def update_player_hunt_status(self, player_hunt_id, status, completion_timestamp=None):
        self._check()
        if self.status_failure is not None:
            failure, self.status_failure = self.status_failure, None
            raise failure
        for index, ph in enumerate(self.player_hunts):
            if ph.id == player_hunt_id:
                update = {"status": status}
                if completion_timestamp is not None:
                    update["completed_at"] = completion_timestamp
                self.player_hunts[index] = ph.model_copy(update=update)
                self.writes += 1
                return self.player_hunts[index]
        raise PlayerHuntNotFound(f"Participation {player_hunt_id} introuvable.")


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """En-têtes d'un utilisateur authentifié."""
    return {"X-User-Id": PLAYER_ID}


@pytest.fixture
def storage():
    return FakeHuntStorage()


@pytest.fixture
def engine(storage):
    """Moteur sur stockage en mémoire, horloge figée à NOW (UTC)."""
    return HuntProgressionEngine(storage, clock=lambda: NOW)
