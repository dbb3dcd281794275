"""
Service côté joueur : construction du moteur de progression et listes
« mes chasses en cours / terminées ».
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from scavenger.engine.engine import HuntProgressionEngine
from scavenger.engine.progress import compute_progress
from scavenger.engine.timezones import get_zone
from scavenger.models.hunt import Hunt
from scavenger.models.player_hunt import PlayerHunt
from scavenger.schemas.play import PlayerHuntResponse, PlayerHuntSummary, ProgressResponse
from scavenger.services.sql_storage import SqlHuntStorage, storage_errors

logger = logging.getLogger(__name__)


def build_engine(db: Session, tz_name: str = "UTC") -> HuntProgressionEngine:
    """Moteur branché sur la session SQLAlchemy, fenêtres horaires évaluées dans `tz_name`."""
    return HuntProgressionEngine(SqlHuntStorage(db), tz=get_zone(tz_name))


def list_player_hunts(
    db: Session,
    player_id: str,
    status: Optional[str] = None,
) -> List[PlayerHuntSummary]:
    """
    Participations du joueur (filtrables par statut), avec la progression recalculée.

    Les participations dont la chasse a été supprimée sont ignorées.
    Tri : dernière activité (fin, sinon démarrage) d'abord.
    """
    storage = SqlHuntStorage(db)

    query = select(PlayerHunt, Hunt).join(Hunt, Hunt.id == PlayerHunt.hunt_id).where(
        PlayerHunt.player_id == player_id
    )
    if status is not None:
        query = query.where(PlayerHunt.status == status)

    with storage_errors(db):
        rows = db.execute(query).all()

    summaries: List[PlayerHuntSummary] = []
    for player_hunt, hunt in rows:
        progress = compute_progress(
            storage.load_checkpoints(hunt.id),
            storage.load_check_ins(player_id, hunt.id),
        )
        summaries.append(
            PlayerHuntSummary(
                player_hunt=PlayerHuntResponse.model_validate(player_hunt),
                hunt_name=hunt.name,
                progress=ProgressResponse.from_progress(progress),
                duration_seconds=_duration_seconds(player_hunt.started_at, player_hunt.completed_at),
            )
        )

    summaries.sort(key=_last_activity, reverse=True)
    return summaries


def _duration_seconds(started_at: Optional[datetime], completed_at: Optional[datetime]) -> Optional[int]:
    if started_at is None or completed_at is None:
        return None
    return int((_aware(completed_at) - _aware(started_at)).total_seconds())


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _last_activity(summary: PlayerHuntSummary) -> datetime:
    ph = summary.player_hunt
    moment = ph.completed_at or ph.started_at
    return _aware(moment) if moment is not None else datetime.min.replace(tzinfo=timezone.utc)
