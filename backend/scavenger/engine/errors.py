"""
Taxonomie des erreurs du moteur de progression.

Toutes les erreurs métier héritent de HuntError (ValueError) : ce sont des
situations attendues, que l'appelant peut traiter (message, retry, no-op).
Les pannes du collaborateur de stockage héritent de StorageError et ne sont
jamais avalées par le moteur.

Chaque classe porte un `code` stable et un `status_code` HTTP, utilisés
uniquement par la couche API.
"""


class HuntError(ValueError):
    """Erreur métier de base du moteur."""

    code = "hunt_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Check-in (ordre de priorité des préconditions) ---

class HuntNotStarted(HuntError):
    code = "hunt_not_started"
    status_code = 409


class CheckpointLocked(HuntError):
    code = "checkpoint_locked"
    status_code = 403


class AlreadyCheckedIn(HuntError):
    """Check-in en double : côté joueur, à traiter comme un no-op."""
    code = "already_checked_in"
    status_code = 409


class TooFar(HuntError):
    code = "too_far"
    status_code = 422

    def __init__(self, message: str, distance_m: float = 0.0):
        super().__init__(message)
        self.distance_m = distance_m


# --- Cycle de vie PlayerHunt ---

class DuplicateStart(HuntError):
    code = "duplicate_start"
    status_code = 409


class InvalidTransition(HuntError):
    code = "invalid_transition"
    status_code = 409


# --- Authoring ---

class InvalidCoordinates(HuntError):
    code = "invalid_coordinates"
    status_code = 422


class InvalidCondition(HuntError):
    code = "invalid_condition"
    status_code = 422


class DependencyCycle(HuntError):
    code = "dependency_cycle"
    status_code = 422


class DuplicateHuntName(HuntError):
    code = "duplicate_hunt_name"
    status_code = 409


class NotHuntOwner(HuntError):
    code = "not_hunt_owner"
    status_code = 403


# --- Ressources introuvables ---

class HuntNotFound(HuntError):
    code = "hunt_not_found"
    status_code = 404


class CheckpointNotFound(HuntError):
    code = "checkpoint_not_found"
    status_code = 404


class PlayerHuntNotFound(HuntError):
    code = "player_hunt_not_found"
    status_code = 404


class ConditionNotFound(HuntError):
    code = "condition_not_found"
    status_code = 404


# --- Collaborateur de stockage ---

class StorageError(RuntimeError):
    """Panne du stockage : propagée telle quelle, le moteur ne réessaie jamais."""

    code = "storage_error"
    status_code = 503


class StorageUnavailable(StorageError):
    code = "storage_unavailable"
    status_code = 503


class StorageTimeout(StorageError):
    code = "storage_timeout"
    status_code = 504
