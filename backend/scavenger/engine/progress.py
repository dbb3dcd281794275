"""
Agrégation de la progression d'un joueur sur une chasse.

Pli pur et indépendant de l'ordre : recalculé à partir de l'ensemble
persistant des check-ins, aucun cache.
"""

import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from scavenger.engine.conditions import is_reachable
from scavenger.engine.geodesy import proximity_guidance
from scavenger.engine.types import (
    AVAILABLE,
    CHECKED_IN,
    LOCKED,
    CheckInRecord,
    CheckpointRecord,
    CheckpointStatusView,
    Condition,
    Coordinates,
    Progress,
)


def _percentage(completed: int, total: int) -> int:
    # round(completed / total * 100), arrondi demi-supérieur en arithmétique entière
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_progress(
    checkpoints: Sequence[CheckpointRecord],
    check_ins: Iterable[CheckInRecord],
) -> Progress:
    """
    completed = checkpoints distincts de la chasse ayant un check-in,
    total = nombre de checkpoints, percentage = 0 si la chasse est vide.
    """
    checkpoint_ids = {cp.id for cp in checkpoints}
    completed = len({ci.checkpoint_id for ci in check_ins} & checkpoint_ids)
    total = len(checkpoint_ids)
    return Progress(completed=completed, total=total, percentage=_percentage(completed, total))


def is_complete(progress: Progress) -> bool:
    """Chasse terminée : tous les checkpoints validés (jamais vrai pour une chasse vide)."""
    return progress.total > 0 and progress.completed >= progress.total


def checkpoint_status(
    checkpoint: CheckpointRecord,
    conditions: Iterable[Condition],
    check_ins: Sequence[CheckInRecord],
    now: datetime,
) -> str:
    """COMPLETED si validé, sinon AVAILABLE si accessible, sinon LOCKED."""
    if any(ci.checkpoint_id == checkpoint.id for ci in check_ins):
        return CHECKED_IN
    if is_reachable(checkpoint, conditions, check_ins, now):
        return AVAILABLE
    return LOCKED


def checkpoint_statuses(
    checkpoints: Sequence[CheckpointRecord],
    conditions_by_checkpoint: Mapping[uuid.UUID, Sequence[Condition]],
    check_ins: Sequence[CheckInRecord],
    now: datetime,
    player_location: Optional[Coordinates] = None,
) -> List[CheckpointStatusView]:
    """
    Statut de chaque checkpoint (rendu carte / liste), dans l'ordre reçu.

    Si la position du joueur est connue, les checkpoints accessibles et non
    validés reçoivent des indications de navigation.
    """
    views: List[CheckpointStatusView] = []
    for checkpoint in checkpoints:
        status = checkpoint_status(
            checkpoint, conditions_by_checkpoint.get(checkpoint.id, ()), check_ins, now
        )
        guidance = None
        if player_location is not None and status == AVAILABLE:
            guidance = proximity_guidance(player_location, checkpoint.coordinates)
        views.append(CheckpointStatusView(checkpoint=checkpoint, status=status, guidance=guidance))
    return views


def newly_available(
    before: Dict[uuid.UUID, str],
    after: Iterable[CheckpointStatusView],
) -> List[uuid.UUID]:
    """Checkpoints passés de LOCKED à AVAILABLE entre deux calculs de statuts."""
    return [
        view.checkpoint.id
        for view in after
        if view.status == AVAILABLE and before.get(view.checkpoint.id) == LOCKED
    ]
