"""
Modèle SQLAlchemy pour les chasses au trésor.
Une chasse possède ses checkpoints, qui possèdent leurs conditions (suppression en cascade).
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from scavenger.database import Base


class Hunt(Base):
    """Chasse créée par un utilisateur, publique ou privée."""
    __tablename__ = "hunts"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_hunts_owner_name"),  # Nom unique par auteur
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    owner_id = Column(String(128), nullable=False, index=True)  # UID du fournisseur d'authentification
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
