"""
Cycle de vie de la participation d'un joueur à une chasse (PlayerHunt).

    NOT_STARTED → STARTED → COMPLETED | ABANDONED

COMPLETED et ABANDONED sont terminaux : toute transition ultérieure lève
InvalidTransition (jamais de no-op silencieux). COMPLETED n'est posé que par
la machine de check-in, jamais directement par l'utilisateur.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from scavenger.engine.errors import (
    DuplicateStart,
    HuntNotFound,
    InvalidTransition,
    PlayerHuntNotFound,
)
from scavenger.engine.storage import HuntStorage
from scavenger.engine.types import (
    ABANDONED,
    COMPLETED,
    NOT_STARTED,
    STARTED,
    PlayerHuntRecord,
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    NOT_STARTED: {STARTED},
    STARTED: {COMPLETED, ABANDONED},
    COMPLETED: set(),
    ABANDONED: set(),
}


def ensure_transition(current: str, target: str) -> None:
    """Lève InvalidTransition si current → target n'est pas autorisé."""
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransition(
            f"Transition {current} → {target} interdite."
        )


class PlayerHuntLifecycle:
    """Applique les transitions PlayerHunt via le collaborateur de stockage."""

    def __init__(self, storage: HuntStorage):
        self.storage = storage

    def start(self, player_id: str, hunt_id: uuid.UUID, now: datetime) -> PlayerHuntRecord:
        """
        Démarre la chasse pour ce joueur.

        Une seule participation par (joueur, chasse) : les check-ins ne sont
        pas rattachés à une tentative, une chasse ne se rejoue donc pas.
        DuplicateStart si elle est en cours, InvalidTransition si elle est
        terminée ou abandonnée. La contrainte d'unicité du stockage couvre la
        course entre la vérification et l'écriture.
        """
        if self.storage.find_hunt(hunt_id) is None:
            raise HuntNotFound(f"Chasse {hunt_id} introuvable.")

        existing = self.storage.find_player_hunt(player_id, hunt_id)
        if existing is not None:
            if existing.status == STARTED:
                raise DuplicateStart("Cette chasse est déjà en cours pour ce joueur.")
            ensure_transition(existing.status, STARTED)

        player_hunt = self.storage.create_player_hunt(player_id, hunt_id, now)
        logger.info("Chasse %s démarrée par %s (participation %s)", hunt_id, player_id, player_hunt.id)
        return player_hunt

    def abandon(self, player_hunt_id: uuid.UUID, player_id: Optional[str] = None) -> PlayerHuntRecord:
        """
        Abandon explicite du joueur, uniquement depuis STARTED (pas de reprise).

        Si `player_id` est fourni, la participation doit lui appartenir.
        """
        player_hunt = self._get(player_hunt_id)
        if player_id is not None and player_hunt.player_id != player_id:
            raise PlayerHuntNotFound(f"Participation {player_hunt_id} introuvable.")
        ensure_transition(player_hunt.status, ABANDONED)

        updated = self.storage.update_player_hunt_status(player_hunt.id, ABANDONED)
        logger.info("Participation %s abandonnée", player_hunt.id)
        return updated

    def complete(self, player_hunt: PlayerHuntRecord, now: datetime) -> PlayerHuntRecord:
        """Réservé à la machine de check-in, quand 100 % des checkpoints sont validés."""
        ensure_transition(player_hunt.status, COMPLETED)

        updated = self.storage.update_player_hunt_status(player_hunt.id, COMPLETED, now)
        logger.info(
            "Chasse %s terminée par %s (participation %s)",
            player_hunt.hunt_id, player_hunt.player_id, player_hunt.id,
        )
        return updated

    def _get(self, player_hunt_id: uuid.UUID) -> PlayerHuntRecord:
        player_hunt = self.storage.get_player_hunt(player_hunt_id)
        if player_hunt is None:
            raise PlayerHuntNotFound(f"Participation {player_hunt_id} introuvable.")
        return player_hunt
