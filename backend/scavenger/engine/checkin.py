"""
Machine d'état du check-in : Locked → Available → CheckedIn (terminal).

Préconditions vérifiées dans l'ordre, la première qui échoue l'emporte :
1. participation STARTED pour (joueur, chasse)   → HuntNotStarted
2. checkpoint accessible (conditions)            → CheckpointLocked
3. pas de check-in existant                      → AlreadyCheckedIn
4. joueur à ≤ 50 m du checkpoint (haversine)     → TooFar

La validation est en lecture seule : aucune écriture tant que les quatre
préconditions ne sont pas satisfaites. En cas de succès : exactement une
écriture CheckIn, puis éventuellement le passage de la participation à
COMPLETED.
Seule exception à la lecture seule : si ce passage a échoué, la tentative
suivante sur le même checkpoint (AlreadyCheckedIn) le rejoue.
"""

import logging
import uuid
from datetime import datetime, timezone, tzinfo

from scavenger.engine.conditions import is_reachable
from scavenger.engine.errors import (
    AlreadyCheckedIn,
    CheckpointLocked,
    CheckpointNotFound,
    HuntNotStarted,
    TooFar,
)
from scavenger.engine.geodesy import (
    PROXIMITY_THRESHOLD_METERS,
    distance_meters,
    format_distance,
    is_within_distance,
)
from scavenger.engine.lifecycle import PlayerHuntLifecycle
from scavenger.engine.localize import as_utc, load_local_conditions
from scavenger.engine.progress import (
    checkpoint_statuses,
    compute_progress,
    is_complete,
    newly_available,
)
from scavenger.engine.storage import HuntStorage
from scavenger.engine.types import STARTED, CheckInResult, Coordinates

logger = logging.getLogger(__name__)


class CheckInStateMachine:

    def __init__(self, storage: HuntStorage, lifecycle: PlayerHuntLifecycle, tz: tzinfo = timezone.utc):
        self.storage = storage
        self.lifecycle = lifecycle
        self.tz = tz

    def attempt_check_in(
        self,
        player_id: str,
        hunt_id: uuid.UUID,
        checkpoint_id: uuid.UUID,
        player_location: Coordinates,
        now: datetime,
    ) -> CheckInResult:
        """
        Valide puis enregistre un check-in.

        `now` est l'instant de la tentative (UTC ou aware) ; il devient
        l'horodatage du check-in et, le cas échéant, de la fin de chasse.
        """
        now = as_utc(now)
        local_now = now.astimezone(self.tz)

        # 1. Chasse démarrée
        player_hunt = self.storage.find_player_hunt(player_id, hunt_id)
        if player_hunt is None or player_hunt.status != STARTED:
            logger.debug("Check-in refusé : chasse %s non démarrée par %s", hunt_id, player_id)
            raise HuntNotStarted("La chasse n'a pas été démarrée.")

        checkpoints = self.storage.load_checkpoints(hunt_id)
        checkpoint = next((cp for cp in checkpoints if cp.id == checkpoint_id), None)
        if checkpoint is None:
            raise CheckpointNotFound(f"Checkpoint {checkpoint_id} introuvable dans cette chasse.")

        # 2. Checkpoint accessible
        check_ins = self.storage.load_check_ins(player_id, hunt_id)
        conditions = load_local_conditions(self.storage, checkpoints, self.tz, local_now.date())
        if not is_reachable(checkpoint, conditions[checkpoint.id], check_ins, local_now):
            logger.debug("Check-in refusé : checkpoint %s verrouillé pour %s", checkpoint_id, player_id)
            raise CheckpointLocked("Ce checkpoint est encore verrouillé.")

        # 3. Pas de doublon
        if self.storage.find_check_in(player_id, hunt_id, checkpoint_id) is not None:
            self._complete_if_done(player_hunt, checkpoints, check_ins)
            raise AlreadyCheckedIn("Checkpoint déjà validé.")

        # 4. Proximité
        distance = distance_meters(player_location, checkpoint.coordinates)
        if not is_within_distance(distance):
            logger.debug(
                "Check-in refusé : %s à %.1f m du checkpoint %s", player_id, distance, checkpoint_id,
            )
            raise TooFar(
                f"Trop loin du checkpoint ({format_distance(distance)}, "
                f"maximum {int(PROXIMITY_THRESHOLD_METERS)}m).",
                distance_m=distance,
            )

        before = {
            view.checkpoint.id: view.status
            for view in checkpoint_statuses(checkpoints, conditions, check_ins, local_now)
        }

        # La contrainte d'unicité du stockage lève AlreadyCheckedIn en cas de course
        check_in = self.storage.create_check_in(player_id, hunt_id, checkpoint_id, now)
        logger.info("Check-in %s : joueur %s, checkpoint %s (%.1f m)", check_in.id, player_id, checkpoint_id, distance)

        # Recalcul depuis l'état persistant
        check_ins = self.storage.load_check_ins(player_id, hunt_id)
        progress = compute_progress(checkpoints, check_ins)
        after = checkpoint_statuses(checkpoints, conditions, check_ins, local_now)

        hunt_completed = False
        if is_complete(progress):
            self.lifecycle.complete(player_hunt, now)
            hunt_completed = True

        return CheckInResult(
            check_in=check_in,
            progress=progress,
            distance_m=distance,
            hunt_completed=hunt_completed,
            newly_available=newly_available(before, after),
        )

    def _complete_if_done(self, player_hunt, checkpoints, check_ins) -> None:
        """
        Rattrape une fin de chasse non enregistrée.

        Le check-in et le passage à COMPLETED sont deux écritures distinctes :
        si la seconde a échoué, le doublon du joueur la rejoue, horodatée au
        dernier check-in.
        """
        if not check_ins or not is_complete(compute_progress(checkpoints, check_ins)):
            return
        finished_at = max(ci.checked_in_at for ci in check_ins)
        logger.warning("Participation %s complète mais encore STARTED : clôture rattrapée", player_hunt.id)
        self.lifecycle.complete(player_hunt, finished_at)
