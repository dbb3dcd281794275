# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme checkpoints.hunt_id → hunts.id échouent
# avec NoReferencedTableError si hunt.py n'est pas chargé avant checkpoint.py.

from scavenger.models.hunt import Hunt  # noqa: F401  (doit précéder checkpoint)
from scavenger.models.checkpoint import Checkpoint, Condition  # noqa: F401
from scavenger.models.player_hunt import PlayerHunt  # noqa: F401
from scavenger.models.check_in import CheckIn  # noqa: F401
