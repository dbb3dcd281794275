"""
Calculs géodésiques : distance orthodromique (haversine), cap initial,
direction cardinale et formatage des distances.

Fonctions pures, sans état. Les coordonnées sont supposées déjà validées
(validate_coordinates est appelé à la saisie, pas ici).
"""

import math

from scavenger.engine.errors import InvalidCoordinates
from scavenger.engine.types import Coordinates, ProximityGuidance

EARTH_RADIUS_M = 6_371_000

# Rayon de check-in : unique source de vérité (précision GPS grand public ≈ 10–30 m)
PROXIMITY_THRESHOLD_METERS = 50.0

# En deçà, les indications de navigation détaillées sont affichées
GUIDANCE_RADIUS_METERS = 500.0

# Absorbe l'erreur d'arrondi flottant sur un point construit à exactement 50 m
_FLOAT_TOLERANCE_M = 1e-6

DIRECTIONS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
ARROWS = ["↑", "↗", "→", "↘", "↓", "↙", "←", "↖"]


def validate_coordinates(latitude: float, longitude: float) -> Coordinates:
    """Lève InvalidCoordinates si lat ∉ [-90, 90] ou lon ∉ [-180, 180] (NaN inclus)."""
    if latitude is None or longitude is None:
        raise InvalidCoordinates("Coordonnées manquantes.")
    if math.isnan(latitude) or not -90 <= latitude <= 90:
        raise InvalidCoordinates(f"Latitude invalide : {latitude} (attendu entre -90 et 90).")
    if math.isnan(longitude) or not -180 <= longitude <= 180:
        raise InvalidCoordinates(f"Longitude invalide : {longitude} (attendu entre -180 et 180).")
    return Coordinates(latitude=latitude, longitude=longitude)


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Distance haversine en mètres entre deux points (degrés décimaux)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def bearing_degrees(origin: Coordinates, target: Coordinates) -> float:
    """Cap initial de `origin` vers `target`, normalisé dans [0, 360)."""
    phi1 = math.radians(origin.latitude)
    phi2 = math.radians(target.latitude)
    d_lambda = math.radians(target.longitude - origin.longitude)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    bearing = (math.degrees(math.atan2(y, x)) + 360) % 360
    # (-1e-15 + 360) % 360 peut donner 360.0 en flottant
    return 0.0 if bearing >= 360 else bearing


def _sector(bearing: float) -> int:
    # Arrondi demi-supérieur (22.5° → NE), comme Math.round côté client
    return int(math.floor(bearing / 45 + 0.5)) % 8


def compass_direction(bearing: float) -> str:
    """Direction cardinale (8 secteurs) : N, NE, E, SE, S, SW, W, NW."""
    return DIRECTIONS[_sector(bearing)]


def direction_arrow(bearing: float) -> str:
    return ARROWS[_sector(bearing)]


def format_distance(meters: float) -> str:
    """"42m" sous 1 km, sinon "1.3km" (une décimale)."""
    if meters < 1000:
        return f"{int(math.floor(meters + 0.5))}m"
    return f"{meters / 1000:.1f}km"


def is_within_proximity(
    player: Coordinates,
    target: Coordinates,
    threshold: float = PROXIMITY_THRESHOLD_METERS,
) -> bool:
    """Vrai si le joueur est à `threshold` mètres ou moins de la cible (borne incluse)."""
    return is_within_distance(distance_meters(player, target), threshold)


def is_within_distance(distance: float, threshold: float = PROXIMITY_THRESHOLD_METERS) -> bool:
    """Même règle que is_within_proximity, sur une distance déjà calculée."""
    return distance <= threshold + _FLOAT_TOLERANCE_M


def proximity_guidance(player: Coordinates, target: Coordinates) -> ProximityGuidance:
    """Distance, cap et direction du joueur vers la cible."""
    distance = distance_meters(player, target)
    bearing = bearing_degrees(player, target)
    return ProximityGuidance(
        distance_m=distance,
        bearing=bearing,
        direction=compass_direction(bearing),
        arrow=direction_arrow(bearing),
        formatted_distance=format_distance(distance),
        detailed=distance <= GUIDANCE_RADIUS_METERS,
    )
