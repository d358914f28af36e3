import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.scoring import compute_composites
from src.scoring.composites import round_one_decimal, weighted_score


def test_default_composites_follow_fixed_coefficients() -> None:
    scores = compute_composites(80, 10, 88)

    assert scores.score_balanced == pytest.approx(49.3)
    assert scores.score_merit == pytest.approx(59.8)
    assert scores.score_integrity == pytest.approx(38.8)


def test_composites_rounded_half_up_to_one_decimal() -> None:
    assert round_one_decimal(0.25) == 0.3
    assert round_one_decimal(49.349) == 49.3
    assert weighted_score(1, 0, 0, {"competence": 0.45, "integrity": 0.45, "transparency": 0.1}) == 0.5


def test_custom_weights_are_respected() -> None:
    weights = {"competence": 0.0, "integrity": 1.0, "transparency": 0.0}
    config = {"balanced": weights, "merit": weights, "integrity_first": weights}

    scores = compute_composites(100, 42, 100, config)

    assert scores.as_dict() == {
        "score_balanced": 42.0,
        "score_merit": 42.0,
        "score_integrity": 42.0,
    }
