"""
Frontière stockage → évaluateur : charge les conditions et convertit les
fenêtres horaires UTC vers le fuseau du joueur.
"""

import uuid
from datetime import date, datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Sequence

from scavenger.engine.storage import HuntStorage
from scavenger.engine.timezones import utc_time_to_local
from scavenger.engine.types import CheckpointRecord, Condition, TimeWindowCondition


def as_utc(moment: datetime) -> datetime:
    """Les datetimes naïfs sont considérés comme UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def localize_conditions(conditions: Iterable[Condition], tz: tzinfo, on_date: date) -> List[Condition]:
    localized: List[Condition] = []
    for condition in conditions:
        if isinstance(condition, TimeWindowCondition):
            condition = condition.model_copy(update={
                "start_time": utc_time_to_local(condition.start_time, tz, on_date),
                "end_time": utc_time_to_local(condition.end_time, tz, on_date),
            })
        localized.append(condition)
    return localized


def load_local_conditions(
    storage: HuntStorage,
    checkpoints: Sequence[CheckpointRecord],
    tz: tzinfo,
    on_date: date,
) -> Dict[uuid.UUID, List[Condition]]:
    """Conditions de chaque checkpoint, fenêtres horaires en heure locale."""
    return {
        checkpoint.id: localize_conditions(storage.load_conditions(checkpoint.id), tz, on_date)
        for checkpoint in checkpoints
    }
