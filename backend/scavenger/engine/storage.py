"""
Interface du collaborateur de stockage consommé par le moteur.

Toute technologie de persistance convient, à condition de respecter :
- create_check_in : unicité (player_id, hunt_id, checkpoint_id) garantie par
  le stockage lui-même → lève AlreadyCheckedIn en cas de violation ;
- create_player_hunt : au plus un PlayerHunt STARTED par (player_id, hunt_id)
  → lève DuplicateStart en cas de violation ;
- toute panne ou dépassement de délai → StorageUnavailable / StorageTimeout,
  jamais un succès silencieux.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Protocol

from scavenger.engine.types import (
    CheckInRecord,
    CheckpointRecord,
    Condition,
    HuntRecord,
    PlayerHuntRecord,
)


class HuntStorage(Protocol):

    def find_hunt(self, hunt_id: uuid.UUID) -> Optional[HuntRecord]: ...

    def load_checkpoints(self, hunt_id: uuid.UUID) -> List[CheckpointRecord]: ...

    def load_conditions(self, checkpoint_id: uuid.UUID) -> List[Condition]:
        """Conditions du checkpoint, fenêtres horaires en UTC."""
        ...

    def load_check_ins(self, player_id: str, hunt_id: uuid.UUID) -> List[CheckInRecord]: ...

    def find_check_in(
        self, player_id: str, hunt_id: uuid.UUID, checkpoint_id: uuid.UUID
    ) -> Optional[CheckInRecord]: ...

    def create_check_in(
        self, player_id: str, hunt_id: uuid.UUID, checkpoint_id: uuid.UUID, timestamp: datetime
    ) -> CheckInRecord: ...

    def find_player_hunt(self, player_id: str, hunt_id: uuid.UUID) -> Optional[PlayerHuntRecord]:
        """Participation la plus récente du joueur à cette chasse."""
        ...

    def get_player_hunt(self, player_hunt_id: uuid.UUID) -> Optional[PlayerHuntRecord]: ...

    def create_player_hunt(
        self, player_id: str, hunt_id: uuid.UUID, timestamp: datetime
    ) -> PlayerHuntRecord: ...

    def update_player_hunt_status(
        self,
        player_hunt_id: uuid.UUID,
        status: str,
        completion_timestamp: Optional[datetime] = None,
    ) -> PlayerHuntRecord: ...
