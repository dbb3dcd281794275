"""
Évaluateur de conditions d'accès aux checkpoints.

Règle : TOUTES les conditions d'un checkpoint doivent passer (ET logique).
Un checkpoint sans condition est toujours accessible.

Les fenêtres horaires reçues ici sont déjà en heure locale (conversion faite
à la frontière par engine.timezones) et `now` est l'heure murale locale.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from scavenger.engine.timezones import format_hhmm
from scavenger.engine.types import (
    CheckInRecord,
    CheckpointRecord,
    Condition,
    RequiredLocationCondition,
    TimeWindowCondition,
)

logger = logging.getLogger(__name__)


def _passes(condition: Condition, checked_in: Set[uuid.UUID], current_time: str) -> bool:
    if isinstance(condition, RequiredLocationCondition):
        return condition.required_checkpoint_id in checked_in

    if isinstance(condition, TimeWindowCondition):
        # Comparaison lexicographique "HH:MM", bornes incluses.
        # Une fenêtre qui traverse minuit (fin < début) ne passe jamais.
        return condition.start_time <= current_time <= condition.end_time

    raise TypeError(f"Type de condition non géré : {type(condition).__name__}")


def is_reachable(
    checkpoint: CheckpointRecord,
    conditions: Iterable[Condition],
    check_ins: Iterable[CheckInRecord],
    now: datetime,
) -> bool:
    """
    Indique si le checkpoint est accessible pour ce joueur à l'instant `now`.

    `check_ins` : check-ins du joueur pour cette chasse.
    `now` : heure murale locale (seules heures et minutes comptent).
    Court-circuite à la première condition non satisfaite.
    """
    checked_in = {ci.checkpoint_id for ci in check_ins}
    current_time = format_hhmm(now)

    for condition in conditions:
        if not _passes(condition, checked_in, current_time):
            logger.debug(
                "Checkpoint %s verrouillé par la condition %s (%s)",
                checkpoint.id, condition.id, condition.kind,
            )
            return False
    return True


def dependency_edges(conditions: Iterable[Condition]) -> Dict[uuid.UUID, Set[uuid.UUID]]:
    """Graphe checkpoint → checkpoints requis, à partir des conditions REQUIRED_LOCATION."""
    edges: Dict[uuid.UUID, Set[uuid.UUID]] = {}
    for condition in conditions:
        if isinstance(condition, RequiredLocationCondition):
            edges.setdefault(condition.checkpoint_id, set()).add(condition.required_checkpoint_id)
    return edges


def find_dependency_cycle(edges: Dict[uuid.UUID, Set[uuid.UUID]]) -> Optional[List[uuid.UUID]]:
    """
    Cherche un cycle dans le graphe de dépendances (DFS itératif, trois couleurs).

    Retourne le chemin du cycle (premier nœud répété en fin de liste),
    ou None si le graphe est acyclique.
    """
    visiting, done = set(), set()

    for root in edges:
        if root in done:
            continue
        path: List[uuid.UUID] = [root]
        stack = [iter(sorted(edges.get(root, ()), key=str))]
        visiting.add(root)

        while stack:
            node = next(stack[-1], None)
            if node is None:
                stack.pop()
                finished = path.pop()
                visiting.discard(finished)
                done.add(finished)
                continue
            if node in visiting:
                return path[path.index(node):] + [node]
            if node in done:
                continue
            visiting.add(node)
            path.append(node)
            stack.append(iter(sorted(edges.get(node, ()), key=str)))

    return None
