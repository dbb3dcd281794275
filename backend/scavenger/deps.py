"""
Dépendances FastAPI communes : identité de l'appelant, fuseau horaire, moteur.

L'authentification est assurée par un fournisseur externe ; l'UID vérifié
est transmis dans l'en-tête X-User-Id.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from scavenger.config import settings
from scavenger.database import get_db
from scavenger.engine.engine import HuntProgressionEngine
from scavenger.engine.timezones import get_zone
from scavenger.services.play_service import build_engine


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Utilisateur non authentifié.")
    return x_user_id.strip()


def get_optional_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def get_timezone_name(x_timezone: Optional[str] = Header(default=None)) -> str:
    """Fuseau IANA du client (en-tête X-Timezone), sinon DEFAULT_TIMEZONE."""
    name = (x_timezone or "").strip() or settings.DEFAULT_TIMEZONE
    try:
        get_zone(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return name


def get_engine(
    db: Session = Depends(get_db),
    tz_name: str = Depends(get_timezone_name),
) -> HuntProgressionEngine:
    return build_engine(db, tz_name)
