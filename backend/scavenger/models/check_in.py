"""
Modèle SQLAlchemy pour les check-ins (passage validé d'un joueur à un checkpoint).
Immuables une fois créés. Enregistrements de jointure indépendants : ils survivent
à la suppression de la chasse (la progression ne compte que les checkpoints existants).
"""

import uuid
from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from scavenger.database import Base


class CheckIn(Base):
    __tablename__ = "check_ins"
    __table_args__ = (
        # Clé naturelle : un seul check-in par (joueur, chasse, checkpoint)
        UniqueConstraint("player_id", "hunt_id", "checkpoint_id", name="uq_check_ins_player_checkpoint"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    player_id = Column(String(128), nullable=False)
    hunt_id = Column(UUID(as_uuid=True), nullable=False)        # Référence par identifiant, sans FK
    checkpoint_id = Column(UUID(as_uuid=True), nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=False)
