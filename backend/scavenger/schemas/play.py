"""
Schémas Pydantic côté joueur : démarrage, check-in, progression, statuts.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from scavenger.engine.types import CheckpointStatusView, Progress, ProximityGuidance


class PlayerHuntResponse(BaseModel):
    id: uuid.UUID
    player_id: str
    hunt_id: uuid.UUID
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CheckInRequest(BaseModel):
    """Position GPS courante du joueur."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ProgressResponse(BaseModel):
    completed: int
    total: int
    percentage: int

    @classmethod
    def from_progress(cls, progress: Progress) -> "ProgressResponse":
        return cls(completed=progress.completed, total=progress.total, percentage=progress.percentage)


class CheckInResponse(BaseModel):
    checkpoint_id: uuid.UUID
    checked_in_at: Optional[datetime] = None
    already_checked_in: bool = False     # Doublon : no-op côté joueur
    distance_m: Optional[float] = None
    progress: ProgressResponse
    hunt_completed: bool = False
    newly_available: List[uuid.UUID] = []


class GuidanceResponse(BaseModel):
    distance_m: float
    bearing: float
    direction: str
    arrow: str
    formatted_distance: str
    detailed: bool

    @classmethod
    def from_guidance(cls, guidance: ProximityGuidance) -> "GuidanceResponse":
        return cls(**guidance.model_dump())


class CheckpointStatusResponse(BaseModel):
    id: uuid.UUID
    name: str
    clue: str
    latitude: float
    longitude: float
    status: str                          # LOCKED, AVAILABLE, COMPLETED
    guidance: Optional[GuidanceResponse] = None

    @classmethod
    def from_view(cls, view: CheckpointStatusView) -> "CheckpointStatusResponse":
        cp = view.checkpoint
        return cls(
            id=cp.id,
            name=cp.name,
            clue=cp.clue,
            latitude=cp.latitude,
            longitude=cp.longitude,
            status=view.status,
            guidance=GuidanceResponse.from_guidance(view.guidance) if view.guidance else None,
        )


class HuntPlayState(BaseModel):
    """Vue complète d'une chasse en cours pour un joueur."""
    hunt_id: uuid.UUID
    player_hunt: Optional[PlayerHuntResponse] = None
    progress: ProgressResponse
    checkpoints: List[CheckpointStatusResponse]


class PlayerHuntSummary(BaseModel):
    """Ligne des écrans « mes chasses en cours / terminées »."""
    player_hunt: PlayerHuntResponse
    hunt_name: str
    progress: ProgressResponse
    duration_seconds: Optional[int] = None
