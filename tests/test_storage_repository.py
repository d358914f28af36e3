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

from src.scoring import CandidateScorer
from src.scoring.penalties import DEFAULT_SCORING
from src.storage.database import DatabaseManager
from src.storage.models import get_model_info


def _candidate_factory(**overrides: object) -> dict[str, object]:
    base = {
        "full_name": "ROSA QUISPE",
        "cargo": "diputado",
        "party_name": "Partido Ejemplo",
        "dni": "87654321",
        "data_verified": True,
        "education_details": [{"level": "Universitaria", "is_completed": True}],
        "experience_details": [
            {"organization": "Municipalidad de Lima", "start_year": 2012, "end_year": 2020}
        ],
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
def scorer() -> CandidateScorer:
    return CandidateScorer(copy.deepcopy(DEFAULT_SCORING), reference_year=2024)


def _score(db: DatabaseManager, scorer: CandidateScorer, candidate_id: int) -> dict:
    result = scorer.score_candidate(db.get_candidate(candidate_id))
    breakdown = result["breakdown"]
    db.save_score(
        candidate_id,
        result,
        operation="full",
        baseline={
            "competence_base": breakdown["competence_base"],
            "integrity_base": breakdown["integrity_base"],
            "applied_categories": breakdown["applied_categories"],
        },
    )
    return result


def test_candidate_roundtrip_and_listing(db: DatabaseManager) -> None:
    active = db.add_candidate(_candidate_factory())
    inactive = db.add_candidate(_candidate_factory(full_name="OTRO", is_active=False))

    assert db.list_candidate_ids() == [active]
    assert db.list_candidate_ids(active_only=False) == [active, inactive]
    row = db.get_candidate(active)
    assert row["full_name"] == "ROSA QUISPE"
    assert row["experience_details"][0]["organization"] == "Municipalidad de Lima"
    assert db.get_candidate(9999) is None
    assert [item["id"] for item in db.get_candidates_snapshot([inactive])] == [inactive]


def test_add_candidate_rejects_unknown_columns(db: DatabaseManager) -> None:
    with pytest.raises(ValueError, match="nickname"):
        db.add_candidate(_candidate_factory(nickname="Rosi"))


def test_save_score_writes_score_breakdown_baseline_and_log(
    db: DatabaseManager, scorer: CandidateScorer
) -> None:
    candidate_id = db.add_candidate(_candidate_factory(civil_sentences=[{"type": "alimentos"}]))

    result = _score(db, scorer, candidate_id)

    stored = db.get_score(candidate_id)
    assert stored["integrity"] == result["integrity"] == 65
    assert stored["score_balanced"] == pytest.approx(result["score_balanced"])
    assert db.get_breakdown(candidate_id)["civil_penalties"] == [
        {"type": "alimentos", "penalty": 35}
    ]
    baseline = db.get_baseline(candidate_id)
    assert baseline["integrity_base"] == 100
    assert "civil" in baseline["applied_categories"]
    assert db.count_score_logs(candidate_id) == 1


def test_save_score_overwrites_and_appends_log(
    db: DatabaseManager, scorer: CandidateScorer
) -> None:
    candidate_id = db.add_candidate(_candidate_factory())

    _score(db, scorer, candidate_id)
    _score(db, scorer, candidate_id)

    assert db.count_score_logs(candidate_id) == 2
    assert db.count_score_logs(candidate_id, operation="apply_penalty") == 0


def test_save_score_rejects_inconsistent_payload(
    db: DatabaseManager, scorer: CandidateScorer
) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    result = scorer.score_candidate(db.get_candidate(candidate_id))
    result["integrity"] = 42

    with pytest.raises(ValueError, match="Invalid scoring payload"):
        db.save_score(candidate_id, result)
    assert db.get_score(candidate_id) is None


def test_save_score_unknown_operation(db: DatabaseManager, scorer: CandidateScorer) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    result = scorer.score_candidate(db.get_candidate(candidate_id))

    with pytest.raises(ValueError, match="Operación desconocida"):
        db.save_score(candidate_id, result, operation="partial")


def test_apply_sibling_updates_never_overwrites(db: DatabaseManager) -> None:
    empty = db.add_candidate(_candidate_factory())
    filled = db.add_candidate(
        _candidate_factory(cargo="senador", penal_sentences=[{"status": "firme"}])
    )

    written = db.apply_sibling_updates(
        {
            empty: {"penal_sentences": [{"status": "proceso"}], "party_resignations": 2},
            filled: {"penal_sentences": [{"status": "proceso"}]},
        }
    )

    assert written == 2
    assert db.get_candidate(empty)["penal_sentences"] == [{"status": "proceso"}]
    assert db.get_candidate(empty)["party_resignations"] == 2
    assert db.get_candidate(filled)["penal_sentences"] == [{"status": "firme"}]


def test_apply_sibling_updates_rejects_other_columns(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(_candidate_factory())

    with pytest.raises(ValueError):
        db.apply_sibling_updates({candidate_id: {"full_name": "X"}})


def test_ranking_orders_and_filters(db: DatabaseManager, scorer: CandidateScorer) -> None:
    clean = db.add_candidate(_candidate_factory(full_name="CLEAN"))
    civil = db.add_candidate(
        _candidate_factory(full_name="CIVIL", civil_sentences=[{"type": "laboral"}])
    )
    penal = db.add_candidate(
        _candidate_factory(full_name="PENAL", penal_sentences=[{"status": "proceso"}])
    )
    for candidate_id in (clean, civil, penal):
        _score(db, scorer, candidate_id)

    ranking = db.get_ranking(mode="integrity")
    assert [row["full_name"] for row in ranking] == ["CLEAN", "CIVIL", "PENAL"]
    assert [row["full_name"] for row in db.get_ranking(only_clean=True)] == ["CLEAN"]
    assert db.get_ranking(limit=1)[0]["full_name"] == "CLEAN"
    assert db.get_ranking(min_confidence=101) == []
    with pytest.raises(ValueError):
        db.get_ranking(mode="popularity")


def test_model_info_lists_engine_tables() -> None:
    info = get_model_info()

    assert info["Score"]["table_name"] == "scores"
    assert "applied_categories" in info["ScoreBaseline"]["columns"]
    assert "idx_candidates_name_cargo" in info["Candidate"]["indexes"]
