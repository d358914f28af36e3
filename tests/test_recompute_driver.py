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

from src.recompute import KeyedLocks, RecomputeDriver, baseline_from
from src.recompute.driver import canonical_categories
from src.scoring import CandidateScorer
from src.scoring.penalties import DEFAULT_SCORING
from src.storage.database import DatabaseManager
from src.storage.models import Candidate

WITHOUT_COMPANY = [
    "penal", "civil", "resignation", "reinfo", "incumbent", "voting", "tax", "omission",
]


def _candidate_factory(**overrides: object) -> dict[str, object]:
    base = {
        "full_name": "LUIS RAMOS",
        "cargo": "presidente",
        "dni": "11112222",
        "education_details": [{"level": "Maestría"}],
        "experience_details": [
            {"organization": "Gobierno Regional de Piura", "position": "Gerente general",
             "start_year": 2008, "end_year": 2019}
        ],
        "company_issues": {"penal": 1, "laboral": 1},
        "penal_sentences": [{"status": "proceso"}],
    }
    base.update(overrides)
    return base


def _scorer(enabled=None) -> CandidateScorer:
    config = copy.deepcopy(DEFAULT_SCORING)
    if enabled is not None:
        config["integrity"]["enabled_categories"] = list(enabled)
    return CandidateScorer(config, reference_year=2024)


@pytest.fixture()
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager(database_config={"type": "sqlite", "path": tmp_path / "ranking.db"})


class FlakyRepository:
    """Delegates to the real repository but fails to persist one candidate."""

    def __init__(self, inner: DatabaseManager, failing_id: int):
        self.inner = inner
        self.failing_id = failing_id

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def save_score(self, candidate_id, score_data, **kwargs):
        if candidate_id == self.failing_id:
            raise RuntimeError("disk full")
        return self.inner.save_score(candidate_id, score_data, **kwargs)


def test_recompute_all_scores_every_active_candidate(db: DatabaseManager) -> None:
    first = db.add_candidate(_candidate_factory())
    second = db.add_candidate(_candidate_factory(full_name="ELENA DIAZ", penal_sentences=[]))
    db.add_candidate(_candidate_factory(full_name="INACTIVO", is_active=False))
    driver = RecomputeDriver(db, _scorer(), workers=2)

    result = driver.recompute_all()

    assert (result.processed, result.changed, result.errors) == (2, 2, 0)
    assert db.get_score(first)["integrity"] == 100 - 35 - 60
    assert db.get_score(second)["integrity"] == 40
    assert db.get_baseline(first)["integrity_base"] == 100


def test_full_recompute_twice_is_idempotent(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    driver = RecomputeDriver(db, _scorer(), workers=1)

    driver.recompute_all()
    score = db.get_score(candidate_id)
    breakdown = db.get_breakdown(candidate_id)
    again = driver.recompute_all()

    assert again.changed == 0
    assert db.get_score(candidate_id) == score
    assert db.get_breakdown(candidate_id) == breakdown


def test_apply_new_penalty_replays_from_baseline_and_is_idempotent(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    driver = RecomputeDriver(db, _scorer(WITHOUT_COMPANY), workers=2)
    driver.recompute_all()
    assert db.get_score(candidate_id)["integrity"] == 65

    first = driver.apply_new_penalty("company")
    after_first = db.get_score(candidate_id)
    second = driver.apply_new_penalty("company")

    assert (first.processed, first.changed) == (1, 1)
    assert after_first["integrity"] == 65 - 60
    assert second.changed == 0
    assert db.get_score(candidate_id) == after_first
    breakdown = db.get_breakdown(candidate_id)
    assert breakdown["company_penalty"] == 60
    assert "company" in breakdown["applied_categories"]
    assert db.get_baseline(candidate_id)["integrity_base"] == 100
    assert db.count_score_logs(candidate_id, operation="apply_penalty") == 2


def test_apply_new_penalty_keeps_baseline_competence(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    driver = RecomputeDriver(db, _scorer(WITHOUT_COMPANY), workers=1)
    driver.recompute_all()
    competence = db.get_score(candidate_id)["competence"]

    with db.get_session() as session:
        session.get(Candidate, candidate_id).experience_details = []
    driver.apply_new_penalty("company")

    assert db.get_score(candidate_id)["competence"] == competence


def test_apply_new_penalty_captures_missing_baseline(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(_candidate_factory())
    driver = RecomputeDriver(db, _scorer(WITHOUT_COMPANY), workers=1)

    result = driver.apply_new_penalty("company")

    assert result.errors == 0
    assert db.get_baseline(candidate_id) is not None
    assert db.get_score(candidate_id)["integrity"] == 5


def test_later_penalty_run_keeps_categories_applied_by_earlier_run(db: DatabaseManager) -> None:
    candidate_id = db.add_candidate(
        _candidate_factory(
            penal_sentences=[],
            voting_record={"pro_crime_in_favor": 1},
        )
    )
    RecomputeDriver(db, _scorer(["penal", "civil"]), workers=1).recompute_all()
    assert db.get_score(candidate_id)["integrity"] == 100

    RecomputeDriver(db, _scorer(["penal", "civil"]), workers=1).apply_new_penalty("company")
    assert db.get_score(candidate_id)["integrity"] == 40

    RecomputeDriver(db, _scorer(["penal", "civil"]), workers=1).apply_new_penalty("voting")

    breakdown = db.get_breakdown(candidate_id)
    assert breakdown["company_penalty"] == 60
    assert breakdown["applied_categories"] == ["penal", "civil", "company", "voting"]
    assert breakdown["voting_penalty"] == 10
    assert db.get_score(candidate_id)["integrity"] == 30
    assert db.get_baseline(candidate_id)["applied_categories"] == [
        "penal", "civil", "company", "voting",
    ]


def test_canonical_categories_merges_in_fixed_order() -> None:
    assert canonical_categories(["voting", "penal"], ("company", "penal")) == (
        "penal",
        "company",
        "voting",
    )


def test_apply_new_penalty_rejects_unknown_category(db: DatabaseManager) -> None:
    driver = RecomputeDriver(db, _scorer(), workers=1)

    with pytest.raises(ValueError, match="Unknown penalty category"):
        driver.apply_new_penalty("astrology")


def test_persistence_failure_is_counted_and_batch_continues(db: DatabaseManager) -> None:
    failing = db.add_candidate(_candidate_factory())
    healthy = db.add_candidate(_candidate_factory(full_name="ELENA DIAZ"))
    driver = RecomputeDriver(FlakyRepository(db, failing), _scorer(), workers=2)

    result = driver.recompute_all()

    assert (result.processed, result.errors) == (1, 1)
    assert db.get_score(failing) is None
    assert db.get_score(healthy) is not None


def test_missing_candidate_is_reported_as_error(db: DatabaseManager) -> None:
    driver = RecomputeDriver(db, _scorer(), workers=1)

    result = driver.recompute_all([404])

    assert (result.processed, result.errors) == (0, 1)


def test_baseline_from_reads_breakdown() -> None:
    result = _scorer().score_candidate(_candidate_factory(id=5))

    assert baseline_from(result) == {
        "competence_base": result["breakdown"]["competence_base"],
        "integrity_base": 100,
        "applied_categories": list(DEFAULT_SCORING["integrity"]["enabled_categories"]),
    }


def test_keyed_locks_reuse_lock_per_key() -> None:
    locks = KeyedLocks()

    with locks.hold(("candidate", 1)):
        pass
    with locks.hold(("candidate", 1)):
        pass
    with locks.hold(("name", "JUAN PEREZ")):
        pass

    assert len(locks) == 2
