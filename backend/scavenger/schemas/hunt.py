"""
Schémas Pydantic pour les chasses (création, modification, découverte).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

MAX_HUNT_NAME_LENGTH = 255


def _clean_name(v: str) -> str:
    if not v.strip():
        raise ValueError("Le nom de la chasse ne peut pas être vide.")
    if len(v.strip()) > MAX_HUNT_NAME_LENGTH:
        raise ValueError(f"Le nom de la chasse ne peut pas dépasser {MAX_HUNT_NAME_LENGTH} caractères.")
    return v.strip()


class HuntCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: str) -> str:
        return _clean_name(v)


class HuntUpdate(BaseModel):
    """Champs modifiables par l'auteur uniquement."""
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v) if v is not None else v


class HuntResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    owner_id: str
    is_public: bool
    checkpoint_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HuntNameSuggestions(BaseModel):
    """Noms alternatifs proposés quand le nom demandé est déjà pris."""
    requested: str
    available: bool
    suggestions: List[str]
