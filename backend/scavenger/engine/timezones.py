"""
Conversion UTC ⇄ heure locale des fenêtres horaires quotidiennes.

Seul point de conversion du projet : les fenêtres TIME_WINDOW sont stockées
en UTC ("HH:MM") et converties ici, à la frontière stockage/affichage.
L'évaluateur de conditions ne manipule que des heures locales déjà converties.
"""

import re
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """Valide une heure "HH:MM" (00:00 → 23:59) et retourne un datetime.time."""
    match = HHMM_PATTERN.match(value or "")
    if match is None:
        raise ValueError(f"Heure invalide '{value}' : format attendu HH:MM.")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(moment: Union[datetime, time]) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def get_zone(name: str) -> ZoneInfo:
    """Résout un fuseau IANA (ex. "Europe/Brussels"). Lève ValueError si inconnu."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Fuseau horaire inconnu : '{name}'.") from exc


def _convert(value: str, source: tzinfo, target: tzinfo, on_date: Optional[date]) -> str:
    # Le décalage dépend de la date (heure d'été), d'où la date de référence.
    clock = parse_hhmm(value)
    reference = on_date or datetime.now(timezone.utc).date()
    moment = datetime.combine(reference, clock, tzinfo=source)
    return format_hhmm(moment.astimezone(target))


def utc_time_to_local(value: str, tz: tzinfo, on_date: Optional[date] = None) -> str:
    """Convertit une heure UTC "HH:MM" vers l'heure murale du fuseau `tz`."""
    return _convert(value, timezone.utc, tz, on_date)


def local_time_to_utc(value: str, tz: tzinfo, on_date: Optional[date] = None) -> str:
    """Convertit une heure murale "HH:MM" du fuseau `tz` vers UTC."""
    return _convert(value, tz, timezone.utc, on_date)
