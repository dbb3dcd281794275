"""
Tests du moteur de progression : machine d'état du check-in, ordre des
préconditions, idempotence, fin de chasse et fenêtres horaires par fuseau.
"""

from datetime import datetime, timezone

import pytest

from conftest import NOW, PLAYER_ID
from scavenger.engine.engine import HuntProgressionEngine
from scavenger.engine.errors import (
    AlreadyCheckedIn,
    CheckpointLocked,
    CheckpointNotFound,
    HuntNotStarted,
    StorageUnavailable,
    TooFar,
)
from scavenger.engine.timezones import get_zone
from scavenger.engine.types import (
    AVAILABLE,
    CHECKED_IN,
    COMPLETED,
    LOCKED,
    Coordinates,
    RequiredLocationCondition,
    TimeWindowCondition,
)

AT_A = Coordinates(latitude=39.9983, longitude=-81.7346)    # ≈ 11 m de A
AT_B = Coordinates(latitude=39.9990, longitude=-81.7350)
FAR_FROM_A = Coordinates(latitude=39.9992, longitude=-81.7346)  # ≈ 111 m de A


@pytest.fixture
def downtown(storage):
    """Chasse « Downtown Adventure » : B exige d'avoir validé A."""
    hunt = storage.add_hunt("Downtown Adventure")
    a = storage.add_checkpoint(hunt.id, "A", 39.9982, -81.7346, clue="Sous l'horloge")
    b = storage.add_checkpoint(hunt.id, "B", 39.9990, -81.7350, clue="Près de la fontaine")
    storage.add_condition(RequiredLocationCondition(checkpoint_id=b.id, required_checkpoint_id=a.id))
    return hunt, a, b


# ----------------------------------------------------------------
# Scénario complet
# ----------------------------------------------------------------

def test_scenario_downtown_adventure(engine, storage, downtown):
    hunt, a, b = downtown
    player_hunt = engine.start_hunt(PLAYER_ID, hunt.id)
    progress = engine.get_progress(PLAYER_ID, hunt.id)
    assert (progress.completed, progress.total, progress.percentage) == (0, 2, 0)

    # B verrouillé tant que A n'est pas validé
    with pytest.raises(CheckpointLocked):
        engine.attempt_check_in(PLAYER_ID, hunt.id, b.id, AT_B)

    result = engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)
    assert result.check_in.checkpoint_id == a.id
    assert result.check_in.checked_in_at == NOW
    assert result.distance_m < 50
    assert (result.progress.completed, result.progress.total, result.progress.percentage) == (1, 2, 50)
    assert result.hunt_completed is False
    assert result.newly_available == [b.id]

    # B déverrouillé, mais le joueur est encore près de A (≈ 85 m de B)
    with pytest.raises(TooFar):
        engine.attempt_check_in(PLAYER_ID, hunt.id, b.id, AT_A)
    assert len(storage.check_ins) == 1

    result = engine.attempt_check_in(PLAYER_ID, hunt.id, b.id, AT_B)
    assert result.progress.percentage == 100
    assert result.hunt_completed is True

    finished = storage.get_player_hunt(player_hunt.id)
    assert finished.status == COMPLETED
    assert finished.completed_at == NOW


# ----------------------------------------------------------------
# Ordre des préconditions : la première qui échoue l'emporte
# ----------------------------------------------------------------

class TestPreconditions:
    def test_chasse_non_demarree_prime_sur_tout(self, engine, storage, downtown):
        hunt, _, b = downtown
        # B est aussi verrouillé et le joueur est loin
        with pytest.raises(HuntNotStarted):
            engine.attempt_check_in(PLAYER_ID, hunt.id, b.id, FAR_FROM_A)

    def test_verrouille_prime_sur_distance(self, engine, storage, downtown):
        hunt, a, b = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)
        with pytest.raises(CheckpointLocked):
            engine.attempt_check_in(PLAYER_ID, hunt.id, b.id, AT_A)

    def test_doublon_prime_sur_distance(self, engine, storage, downtown):
        hunt, a, _ = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)
        engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)

        with pytest.raises(AlreadyCheckedIn):
            engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, FAR_FROM_A)

    def test_trop_loin(self, engine, storage, downtown):
        hunt, a, _ = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)

        with pytest.raises(TooFar) as exc_info:
            engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, FAR_FROM_A)
        assert exc_info.value.distance_m == pytest.approx(111, abs=1)

    def test_checkpoint_d_une_autre_chasse(self, engine, storage, downtown):
        hunt, _, _ = downtown
        other = storage.add_hunt("Autre")
        stray = storage.add_checkpoint(other.id, "X", 39.9982, -81.7346)
        engine.start_hunt(PLAYER_ID, hunt.id)

        with pytest.raises(CheckpointNotFound):
            engine.attempt_check_in(PLAYER_ID, hunt.id, stray.id, AT_A)

    def test_echec_sans_ecriture(self, engine, storage, downtown):
        hunt, a, b = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)
        writes = storage.writes

        for checkpoint, location in [(b.id, AT_B), (a.id, FAR_FROM_A)]:
            with pytest.raises((CheckpointLocked, TooFar)):
                engine.attempt_check_in(PLAYER_ID, hunt.id, checkpoint, location)

        assert storage.writes == writes
        assert storage.check_ins == []

    def test_apres_abandon_check_in_refuse(self, engine, storage, downtown):
        hunt, a, _ = downtown
        player_hunt = engine.start_hunt(PLAYER_ID, hunt.id)
        engine.abandon_hunt(player_hunt.id)

        with pytest.raises(HuntNotStarted):
            engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)


# ----------------------------------------------------------------
# Idempotence et fin de chasse
# ----------------------------------------------------------------

class TestIdempotence:
    def test_double_check_in_sans_effet(self, engine, storage, downtown):
        hunt, a, _ = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)
        engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)
        before = engine.get_progress(PLAYER_ID, hunt.id)

        with pytest.raises(AlreadyCheckedIn):
            engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)

        assert len(storage.check_ins) == 1
        assert engine.get_progress(PLAYER_ID, hunt.id) == before

    def test_chasse_terminee_ne_change_plus(self, engine, storage):
        hunt = storage.add_hunt("Solo")
        only = storage.add_checkpoint(hunt.id, "Unique", 39.9982, -81.7346)
        engine.start_hunt(PLAYER_ID, hunt.id)

        assert engine.attempt_check_in(PLAYER_ID, hunt.id, only.id, AT_A).hunt_completed is True
        with pytest.raises(HuntNotStarted):
            engine.attempt_check_in(PLAYER_ID, hunt.id, only.id, AT_A)

    def test_fin_de_chasse_rattrapee_apres_echec(self, engine, storage):
        """Check-in écrit mais passage à COMPLETED échoué : le doublon suivant clôture."""
        hunt = storage.add_hunt("Solo")
        only = storage.add_checkpoint(hunt.id, "Unique", 39.9982, -81.7346)
        player_hunt = engine.start_hunt(PLAYER_ID, hunt.id)
        storage.status_failure = StorageUnavailable("Base de données indisponible.")

        with pytest.raises(StorageUnavailable):
            engine.attempt_check_in(PLAYER_ID, hunt.id, only.id, AT_A)
        assert len(storage.check_ins) == 1
        assert storage.get_player_hunt(player_hunt.id).status != COMPLETED

        with pytest.raises(AlreadyCheckedIn):
            engine.attempt_check_in(PLAYER_ID, hunt.id, only.id, AT_A)

        finished = storage.get_player_hunt(player_hunt.id)
        assert finished.status == COMPLETED
        assert finished.completed_at == NOW
        assert len(storage.check_ins) == 1

    def test_doublon_sans_fin_de_chasse_ne_clot_pas(self, engine, storage, downtown):
        hunt, a, _ = downtown
        player_hunt = engine.start_hunt(PLAYER_ID, hunt.id)
        engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)

        with pytest.raises(AlreadyCheckedIn):
            engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)
        assert storage.get_player_hunt(player_hunt.id).status != COMPLETED

    def test_chasse_vide(self, engine, storage):
        hunt = storage.add_hunt("Vide")
        player_hunt = engine.start_hunt(PLAYER_ID, hunt.id)

        progress = engine.get_progress(PLAYER_ID, hunt.id)

        assert (progress.completed, progress.total, progress.percentage) == (0, 0, 0)
        assert storage.get_player_hunt(player_hunt.id).status != COMPLETED


# ----------------------------------------------------------------
# Statuts, disponibilité, fuseaux
# ----------------------------------------------------------------

class TestStatuses:
    def test_statuts_et_indications(self, engine, storage, downtown):
        hunt, a, b = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)

        views = engine.get_checkpoint_statuses(PLAYER_ID, hunt.id, player_location=AT_B)

        assert [v.status for v in views] == [AVAILABLE, LOCKED]
        assert views[0].guidance.direction in {"S", "SE"}
        assert views[1].guidance is None

    def test_statut_valide(self, engine, storage, downtown):
        hunt, a, b = downtown
        engine.start_hunt(PLAYER_ID, hunt.id)
        engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)

        views = engine.get_checkpoint_statuses(PLAYER_ID, hunt.id)
        assert [v.status for v in views] == [CHECKED_IN, AVAILABLE]

    def test_is_checkpoint_available(self, engine, storage, downtown):
        _, a, b = downtown
        assert engine.is_checkpoint_available(PLAYER_ID, a) is True
        assert engine.is_checkpoint_available(PLAYER_ID, b) is False

    def test_fenetre_horaire_dans_le_fuseau_du_joueur(self, storage):
        hunt = storage.add_hunt("Nocturne")
        cp = storage.add_checkpoint(hunt.id, "Musée", 50.8467, 4.3525)
        # 09:00–17:00 à Bruxelles en hiver, stocké en UTC
        storage.add_condition(TimeWindowCondition(checkpoint_id=cp.id, start_time="08:00", end_time="16:00"))
        engine = HuntProgressionEngine(storage, tz=get_zone("Europe/Brussels"))

        open_at = datetime(2026, 1, 15, 15, 30, tzinfo=timezone.utc)    # 16:30 locale
        closed_at = datetime(2026, 1, 15, 16, 30, tzinfo=timezone.utc)  # 17:30 locale

        assert engine.is_checkpoint_available(PLAYER_ID, cp, now=open_at) is True
        assert engine.is_checkpoint_available(PLAYER_ID, cp, now=closed_at) is False

    def test_fenetre_fermee_verrouille_le_check_in(self, storage):
        hunt = storage.add_hunt("Matinale")
        cp = storage.add_checkpoint(hunt.id, "Marché", 39.9982, -81.7346)
        storage.add_condition(TimeWindowCondition(checkpoint_id=cp.id, start_time="06:00", end_time="08:00"))
        engine = HuntProgressionEngine(storage, clock=lambda: NOW)  # 10:00 UTC
        engine.start_hunt(PLAYER_ID, hunt.id)

        with pytest.raises(CheckpointLocked):
            engine.attempt_check_in(PLAYER_ID, hunt.id, cp.id, AT_A)


# ----------------------------------------------------------------
# Pannes du stockage
# ----------------------------------------------------------------

def test_panne_stockage_propagee(engine, storage, downtown):
    hunt, a, _ = downtown
    engine.start_hunt(PLAYER_ID, hunt.id)
    storage.failure = StorageUnavailable("Base de données indisponible.")

    with pytest.raises(StorageUnavailable):
        engine.attempt_check_in(PLAYER_ID, hunt.id, a.id, AT_A)
    with pytest.raises(StorageUnavailable):
        engine.get_progress(PLAYER_ID, hunt.id)
