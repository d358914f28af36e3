import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from src.recompute import RecomputeDriver, SiblingReconciler
from src.recompute.reconciliation import category_value, find_ambiguity, plan_propagation
from src.scoring import CandidateScorer
from src.scoring.penalties import DEFAULT_SCORING
from src.storage.database import DatabaseManager

SENTENCE = {"delito": "Peculado", "estado": "firme", "expediente": "00123-2019"}


def _candidate_factory(**overrides: object) -> dict[str, object]:
    base = {
        "full_name": "JUAN PEREZ",
        "cargo": "senador",
        "education_details": [{"level": "Secundaria completa"}],
        "penal_sentences": [],
        "civil_sentences": [],
        "party_resignations": 0,
    }
    base.update(overrides)
    return base


@pytest.fixture()
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager(database_config={"type": "sqlite", "path": tmp_path / "ranking.db"})


@pytest.fixture()
def reconciler(db: DatabaseManager) -> SiblingReconciler:
    scorer = CandidateScorer(copy.deepcopy(DEFAULT_SCORING), reference_year=2024)
    driver = RecomputeDriver(db, scorer, workers=2)
    return SiblingReconciler(db, driver, threshold=92)


def test_sibling_propagation_copies_penal_record_and_rescores(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    senador = db.add_candidate(_candidate_factory())
    presidente = db.add_candidate(
        _candidate_factory(cargo="presidente", penal_sentences=[SENTENCE])
    )
    reconciler.driver.recompute_all()
    assert db.get_score(senador)["integrity"] == 100

    report = reconciler.reconcile()

    assert report.updated == {senador: ["penal_sentences"]}
    assert report.ambiguous == []
    assert db.get_candidate(senador)["penal_sentences"] == [SENTENCE]
    assert db.get_score(senador)["integrity"] == 30
    assert db.count_score_logs(senador, operation="reconcile") == 1
    assert db.get_candidate(presidente)["penal_sentences"] == [SENTENCE]
    assert db.count_score_logs(presidente, operation="reconcile") == 0


def test_names_are_grouped_by_folded_key(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    diputado = db.add_candidate(
        _candidate_factory(full_name="José  Quiñones", cargo="diputado", party_resignations=3)
    )
    senador = db.add_candidate(_candidate_factory(full_name="JOSE QUINONES"))

    report = reconciler.reconcile()

    assert report.updated == {senador: ["party_resignations"]}
    assert db.get_candidate(senador)["party_resignations"] == 3
    assert db.get_candidate(diputado)["party_resignations"] == 3


def test_same_cargo_group_is_skipped_and_reported(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    empty = db.add_candidate(_candidate_factory())
    db.add_candidate(_candidate_factory(penal_sentences=[SENTENCE]))

    report = reconciler.reconcile()

    assert report.updated == {}
    assert len(report.ambiguous) == 1
    assert "cargo repetido" in report.ambiguous[0].reason
    assert db.get_candidate(empty)["penal_sentences"] == []


def test_different_dni_group_is_skipped(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    db.add_candidate(_candidate_factory(dni="11111111"))
    db.add_candidate(
        _candidate_factory(cargo="presidente", dni="22222222", penal_sentences=[SENTENCE])
    )

    report = reconciler.reconcile()

    assert report.updated == {}
    assert report.ambiguous[0].reason == "DNI distinto entre registros"


def test_conflicting_category_data_is_never_guessed(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    other = dict(SENTENCE, expediente="00999-2021")
    db.add_candidate(_candidate_factory(penal_sentences=[SENTENCE]))
    db.add_candidate(_candidate_factory(cargo="presidente", penal_sentences=[other]))
    empty = db.add_candidate(_candidate_factory(cargo="diputado"))

    report = reconciler.reconcile()

    assert report.ambiguous[0].reason == "datos distintos en penal_sentences"
    assert db.get_candidate(empty)["penal_sentences"] == []


def test_near_identical_names_reported_as_possible_duplicates(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    db.add_candidate(_candidate_factory(full_name="MARIA DEL CARMEN FLORES"))
    db.add_candidate(_candidate_factory(full_name="MARIA DEL CARMEN FLOREZ", cargo="diputado"))

    report = reconciler.reconcile()

    assert report.groups_checked == 0
    assert report.updated == {}
    assert len(report.possible_duplicates) == 1
    duplicate = report.possible_duplicates[0]
    assert (duplicate.left, duplicate.right) == (
        "MARIA DEL CARMEN FLORES",
        "MARIA DEL CARMEN FLOREZ",
    )
    assert duplicate.score >= 92


def test_plan_propagation_union_never_shrinks() -> None:
    siblings = [
        {"id": 1, "cargo": "senador", "penal_sentences": "[]", "civil_sentences": None,
         "party_resignations": 0},
        {"id": 2, "cargo": "presidente", "penal_sentences": [SENTENCE],
         "civil_sentences": [{"type": "alimentos"}], "party_resignations": 1},
        {"id": 3, "cargo": "diputado", "penal_sentences": [SENTENCE], "civil_sentences": [],
         "party_resignations": 1},
    ]

    updates, reason = plan_propagation(
        siblings, ("penal_sentences", "civil_sentences", "party_resignations")
    )

    assert reason is None
    assert updates == {
        1: {
            "penal_sentences": [SENTENCE],
            "civil_sentences": [{"type": "alimentos"}],
            "party_resignations": 1,
        },
        3: {"civil_sentences": [{"type": "alimentos"}]},
    }


def test_category_value_and_ambiguity_helpers() -> None:
    assert category_value({"penal_sentences": "not json"}, "penal_sentences") is None
    assert category_value({"party_resignations": "2"}, "party_resignations") == 2
    assert find_ambiguity([{"cargo": "senador"}, {"cargo": "diputado", "dni": "1"}]) is None


def test_plan_propagation_copies_superset_list_to_empty_sibling() -> None:
    other = dict(SENTENCE, expediente="00999-2021")
    siblings = [
        {"id": 1, "cargo": "diputado", "penal_sentences": [SENTENCE]},
        {"id": 2, "cargo": "presidente", "penal_sentences": [SENTENCE, other]},
        {"id": 3, "cargo": "senador", "penal_sentences": []},
    ]

    updates, reason = plan_propagation(siblings, ("penal_sentences",))

    assert reason is None
    assert updates == {3: {"penal_sentences": [SENTENCE, other]}}


def test_plan_propagation_diverging_counts_are_ambiguous() -> None:
    siblings = [
        {"id": 1, "cargo": "diputado", "party_resignations": 1},
        {"id": 2, "cargo": "presidente", "party_resignations": 2},
        {"id": 3, "cargo": "senador", "party_resignations": 0},
    ]

    updates, reason = plan_propagation(siblings, ("party_resignations",))

    assert updates == {}
    assert reason == "datos distintos en party_resignations"


def test_superset_sibling_fills_empty_row_in_database(
    db: DatabaseManager, reconciler: SiblingReconciler
) -> None:
    other = dict(SENTENCE, expediente="00999-2021")
    diputado = db.add_candidate(_candidate_factory(cargo="diputado", penal_sentences=[SENTENCE]))
    db.add_candidate(_candidate_factory(cargo="presidente", penal_sentences=[SENTENCE, other]))
    senador = db.add_candidate(_candidate_factory())

    report = reconciler.reconcile()

    assert report.ambiguous == []
    assert report.updated == {senador: ["penal_sentences"]}
    assert db.get_candidate(senador)["penal_sentences"] == [SENTENCE, other]
    assert db.get_candidate(diputado)["penal_sentences"] == [SENTENCE]


class _LockedWritesRepository:
    """Delegates to the real repository but fails sibling writes for some ids."""

    def __init__(self, inner: DatabaseManager, failing_ids: set[int]):
        self.inner = inner
        self.failing_ids = failing_ids

    def __getattr__(self, name: str):
        return getattr(self.inner, name)

    def apply_sibling_updates(self, updates):
        if self.failing_ids & set(updates):
            raise RuntimeError("database is locked")
        return self.inner.apply_sibling_updates(updates)


def test_failed_group_write_does_not_abort_remaining_groups(db: DatabaseManager) -> None:
    ana_senador = db.add_candidate(_candidate_factory(full_name="ANA LOPEZ"))
    ana_presidente = db.add_candidate(
        _candidate_factory(full_name="ANA LOPEZ", cargo="presidente", penal_sentences=[SENTENCE])
    )
    zoe_senador = db.add_candidate(_candidate_factory(full_name="ZOE DIAZ"))
    db.add_candidate(
        _candidate_factory(full_name="ZOE DIAZ", cargo="presidente", penal_sentences=[SENTENCE])
    )
    scorer = CandidateScorer(copy.deepcopy(DEFAULT_SCORING), reference_year=2024)
    driver = RecomputeDriver(db, scorer, workers=2)
    repository = _LockedWritesRepository(db, {ana_senador})
    reconciler = SiblingReconciler(repository, driver, threshold=92)

    report = reconciler.reconcile()

    assert report.groups_checked == 2
    assert sorted(report.errors) == sorted([ana_senador, ana_presidente])
    assert report.updated == {zoe_senador: ["penal_sentences"]}
    assert db.get_candidate(zoe_senador)["penal_sentences"] == [SENTENCE]
    assert db.get_candidate(ana_senador)["penal_sentences"] == []
    assert report.summary()["errors"] == 2
