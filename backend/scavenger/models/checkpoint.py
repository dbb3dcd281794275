"""
Modèles SQLAlchemy pour les checkpoints ("Locations") et leurs conditions d'accès.
"""

import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from scavenger.database import Base


class Checkpoint(Base):
    """Étape GPS d'une chasse."""
    __tablename__ = "checkpoints"
    __table_args__ = (
        CheckConstraint("latitude BETWEEN -90 AND 90", name="ck_checkpoints_latitude"),
        CheckConstraint("longitude BETWEEN -180 AND 180", name="ck_checkpoints_longitude"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    hunt_id = Column(UUID(as_uuid=True), ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    clue = Column(Text, nullable=False, default="")   # Indice affiché au joueur
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Condition(Base):
    """
    Condition d'accès à un checkpoint.

    REQUIRED_LOCATION : required_checkpoint_id renseigné (même chasse, jamais soi-même).
    TIME_WINDOW       : start_time / end_time "HH:MM" en UTC, fenêtre quotidienne.
    """
    __tablename__ = "conditions"
    __table_args__ = (
        CheckConstraint("kind IN ('REQUIRED_LOCATION', 'TIME_WINDOW')", name="ck_conditions_kind"),
        CheckConstraint(
            "required_checkpoint_id IS NULL OR required_checkpoint_id <> checkpoint_id",
            name="ck_conditions_not_self",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    checkpoint_id = Column(
        UUID(as_uuid=True), ForeignKey("checkpoints.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind = Column(String(20), nullable=False)  # REQUIRED_LOCATION, TIME_WINDOW

    required_checkpoint_id = Column(
        UUID(as_uuid=True), ForeignKey("checkpoints.id", ondelete="CASCADE"), nullable=True
    )
    start_time = Column(String(5), nullable=True)  # "HH:MM" UTC
    end_time = Column(String(5), nullable=True)    # "HH:MM" UTC

    created_at = Column(DateTime(timezone=True), server_default=func.now())
