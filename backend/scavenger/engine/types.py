"""
Types du domaine manipulés par le moteur de progression.

Indépendants de toute technologie de stockage : le collaborateur de stockage
construit ces objets (from_attributes) à partir de ses propres lignes.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from scavenger.engine.timezones import parse_hhmm

# Statuts PlayerHunt
NOT_STARTED = "NOT_STARTED"
STARTED = "STARTED"
COMPLETED = "COMPLETED"
ABANDONED = "ABANDONED"
PLAYER_HUNT_STATUSES = {NOT_STARTED, STARTED, COMPLETED, ABANDONED}

# Statuts d'un checkpoint vu par un joueur
LOCKED = "LOCKED"
AVAILABLE = "AVAILABLE"
CHECKED_IN = "COMPLETED"

# Types de conditions
REQUIRED_LOCATION = "REQUIRED_LOCATION"
TIME_WINDOW = "TIME_WINDOW"


class _Record(BaseModel):
    model_config = {"frozen": True, "from_attributes": True}


class Coordinates(_Record):
    latitude: float
    longitude: float


class HuntRecord(_Record):
    id: uuid.UUID
    name: str
    owner_id: str
    is_public: bool = False
    created_at: Optional[datetime] = None


class CheckpointRecord(_Record):
    """Checkpoint ("Location") d'une chasse."""
    id: uuid.UUID
    hunt_id: uuid.UUID
    name: str
    clue: str = ""
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class RequiredLocationCondition(_Record):
    """Dépendance : le checkpoint référencé doit avoir été validé avant."""
    id: Optional[uuid.UUID] = None
    checkpoint_id: uuid.UUID
    kind: Literal["REQUIRED_LOCATION"] = REQUIRED_LOCATION
    required_checkpoint_id: uuid.UUID


class TimeWindowCondition(_Record):
    """
    Fenêtre horaire quotidienne récurrente, bornes incluses.

    Les heures sont exprimées dans UN fuseau (UTC en stockage, local une fois
    converties par timezones) : l'objet lui-même n'en porte pas.
    """
    id: Optional[uuid.UUID] = None
    checkpoint_id: uuid.UUID
    kind: Literal["TIME_WINDOW"] = TIME_WINDOW
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v


Condition = Annotated[
    Union[RequiredLocationCondition, TimeWindowCondition],
    Field(discriminator="kind"),
]
condition_adapter = TypeAdapter(Condition)


class PlayerHuntRecord(_Record):
    id: uuid.UUID
    player_id: str
    hunt_id: uuid.UUID
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CheckInRecord(_Record):
    id: uuid.UUID
    player_id: str
    hunt_id: uuid.UUID
    checkpoint_id: uuid.UUID
    checked_in_at: datetime


class Progress(_Record):
    completed: int = 0
    total: int = 0
    percentage: int = 0


class ProximityGuidance(_Record):
    """Indications de navigation vers un checkpoint."""
    distance_m: float
    bearing: float
    direction: str
    arrow: str
    formatted_distance: str
    detailed: bool


class CheckpointStatusView(_Record):
    checkpoint: CheckpointRecord
    status: str
    guidance: Optional[ProximityGuidance] = None


class CheckInResult(_Record):
    """Résultat d'un check-in réussi."""
    check_in: CheckInRecord
    progress: Progress
    distance_m: float
    hunt_completed: bool = False
    newly_available: List[uuid.UUID] = []
