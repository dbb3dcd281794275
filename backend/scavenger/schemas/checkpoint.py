"""
Schémas Pydantic pour les checkpoints et leurs conditions d'accès.

Les fenêtres horaires sont saisies en heure locale de l'auteur (avec son fuseau IANA)
et renvoyées à la fois en UTC (stockage) et dans le fuseau demandé.
"""

import math
import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from scavenger.engine.timezones import get_zone, parse_hhmm


def _check_latitude(v: Optional[float]) -> Optional[float]:
    if v is not None and (math.isnan(v) or not -90 <= v <= 90):
        raise ValueError("La latitude doit être comprise entre -90 et 90.")
    return v


def _check_longitude(v: Optional[float]) -> Optional[float]:
    if v is not None and (math.isnan(v) or not -180 <= v <= 180):
        raise ValueError("La longitude doit être comprise entre -180 et 180.")
    return v


class CheckpointCreate(BaseModel):
    """Données nécessaires pour ajouter un checkpoint à une chasse."""
    name: str
    clue: str
    latitude: float
    longitude: float

    @field_validator("name", "clue")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom et l'indice sont obligatoires.")
        return v.strip()

    @field_validator("latitude")
    @classmethod
    def valid_latitude(cls, v: float) -> float:
        return _check_latitude(v)

    @field_validator("longitude")
    @classmethod
    def valid_longitude(cls, v: float) -> float:
        return _check_longitude(v)


class CheckpointUpdate(BaseModel):
    name: Optional[str] = None
    clue: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("name", "clue")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom et l'indice ne peuvent pas être vides.")
        return v.strip() if v is not None else v

    @field_validator("latitude")
    @classmethod
    def valid_latitude(cls, v: Optional[float]) -> Optional[float]:
        return _check_latitude(v)

    @field_validator("longitude")
    @classmethod
    def valid_longitude(cls, v: Optional[float]) -> Optional[float]:
        return _check_longitude(v)


class CheckpointResponse(BaseModel):
    id: uuid.UUID
    hunt_id: uuid.UUID
    name: str
    clue: str
    latitude: float
    longitude: float
    condition_count: int = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConditionCreate(BaseModel):
    """
    Nouvelle condition d'accès.

    REQUIRED_LOCATION : required_checkpoint_id obligatoire.
    TIME_WINDOW       : start_time et end_time "HH:MM" dans le fuseau `timezone`.
    """
    kind: Literal["REQUIRED_LOCATION", "TIME_WINDOW"]
    required_checkpoint_id: Optional[uuid.UUID] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: str = "UTC"

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_hhmm(v)
        return v

    @field_validator("timezone")
    @classmethod
    def valid_timezone(cls, v: str) -> str:
        get_zone(v)
        return v

    @model_validator(mode="after")
    def fields_match_kind(self):
        if self.kind == "REQUIRED_LOCATION" and self.required_checkpoint_id is None:
            raise ValueError("Une condition REQUIRED_LOCATION doit désigner un checkpoint requis.")
        if self.kind == "TIME_WINDOW" and (self.start_time is None or self.end_time is None):
            raise ValueError("Une condition TIME_WINDOW doit avoir une heure de début et de fin.")
        return self


class ConditionResponse(BaseModel):
    id: uuid.UUID
    checkpoint_id: uuid.UUID
    kind: str
    required_checkpoint_id: Optional[uuid.UUID] = None
    start_time_utc: Optional[str] = None
    end_time_utc: Optional[str] = None
    start_time: Optional[str] = None    # Dans le fuseau demandé
    end_time: Optional[str] = None
    timezone: str = "UTC"
