"""
Modèle SQLAlchemy pour la participation d'un joueur à une chasse.
"""

import uuid
from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from scavenger.database import Base


class PlayerHunt(Base):
    """Participation joueur ↔ chasse : STARTED → COMPLETED | ABANDONED."""
    __tablename__ = "player_hunts"
    __table_args__ = (
        # Une seule participation par (joueur, chasse), quel que soit son statut
        UniqueConstraint("player_id", "hunt_id", name="uq_player_hunts_player_hunt"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    player_id = Column(String(128), nullable=False, index=True)
    hunt_id = Column(UUID(as_uuid=True), nullable=False)  # Référence par identifiant, sans FK
    status = Column(String(20), nullable=False, default="STARTED")  # STARTED, COMPLETED, ABANDONED

    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)  # NULL tant que non terminée
