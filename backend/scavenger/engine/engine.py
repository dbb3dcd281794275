"""
Façade du moteur de progression : point d'entrée unique pour l'API, un CLI
ou un harnais de test.

Sans état entre deux appels : tout l'état vit dans le collaborateur de
stockage, injecté à la construction (aucun singleton global).
"""

import uuid
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional

from scavenger.engine.checkin import CheckInStateMachine
from scavenger.engine.conditions import is_reachable
from scavenger.engine.lifecycle import PlayerHuntLifecycle
from scavenger.engine.localize import as_utc, load_local_conditions
from scavenger.engine.progress import checkpoint_statuses, compute_progress
from scavenger.engine.storage import HuntStorage
from scavenger.engine.types import (
    CheckInResult,
    CheckpointRecord,
    CheckpointStatusView,
    Coordinates,
    PlayerHuntRecord,
    Progress,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HuntProgressionEngine:
    """
    Règles de progression d'un joueur dans une chasse.

    `tz` : fuseau du joueur, utilisé pour évaluer les fenêtres horaires.
    `clock` : source de l'instant courant (remplaçable en test).
    """

    def __init__(
        self,
        storage: HuntStorage,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.tz = tz
        self.clock = clock
        self.lifecycle = PlayerHuntLifecycle(storage)
        self.check_in_machine = CheckInStateMachine(storage, self.lifecycle, tz)

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now if now is not None else self.clock())

    def is_checkpoint_available(
        self,
        player_id: str,
        checkpoint: CheckpointRecord,
        now: Optional[datetime] = None,
    ) -> bool:
        """Le checkpoint est-il accessible pour ce joueur (conditions uniquement) ?"""
        local_now = self._now(now).astimezone(self.tz)
        conditions = load_local_conditions(self.storage, [checkpoint], self.tz, local_now.date())
        check_ins = self.storage.load_check_ins(player_id, checkpoint.hunt_id)
        return is_reachable(checkpoint, conditions[checkpoint.id], check_ins, local_now)

    def attempt_check_in(
        self,
        player_id: str,
        hunt_id: uuid.UUID,
        checkpoint_id: uuid.UUID,
        player_location: Coordinates,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        return self.check_in_machine.attempt_check_in(
            player_id, hunt_id, checkpoint_id, player_location, self._now(now)
        )

    def get_progress(self, player_id: str, hunt_id: uuid.UUID) -> Progress:
        checkpoints = self.storage.load_checkpoints(hunt_id)
        check_ins = self.storage.load_check_ins(player_id, hunt_id)
        return compute_progress(checkpoints, check_ins)

    def get_checkpoint_statuses(
        self,
        player_id: str,
        hunt_id: uuid.UUID,
        player_location: Optional[Coordinates] = None,
        now: Optional[datetime] = None,
    ) -> List[CheckpointStatusView]:
        local_now = self._now(now).astimezone(self.tz)
        checkpoints = self.storage.load_checkpoints(hunt_id)
        check_ins = self.storage.load_check_ins(player_id, hunt_id)
        conditions = load_local_conditions(self.storage, checkpoints, self.tz, local_now.date())
        return checkpoint_statuses(checkpoints, conditions, check_ins, local_now, player_location)

    def start_hunt(
        self, player_id: str, hunt_id: uuid.UUID, now: Optional[datetime] = None
    ) -> PlayerHuntRecord:
        return self.lifecycle.start(player_id, hunt_id, self._now(now))

    def abandon_hunt(
        self, player_hunt_id: uuid.UUID, player_id: Optional[str] = None
    ) -> PlayerHuntRecord:
        return self.lifecycle.abandon(player_hunt_id, player_id)
