import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.recompute import AMBIGUOUS, MATCHED, UNMATCHED, NameMatcher

RECORDS = [
    {"id": 1, "full_name": "JUAN PEREZ", "cargo": "senador"},
    {"id": 2, "full_name": "Juan  Pérez", "cargo": "presidente"},
    {"id": 3, "full_name": "MARIA DEL CARMEN FLORES", "cargo": "diputado"},
    {"id": 4, "full_name": "ROSA QUISPE", "cargo": "diputado"},
]


@pytest.fixture()
def matcher() -> NameMatcher:
    return NameMatcher(RECORDS, threshold=92)


def test_exact_key_with_cargo_is_matched(matcher: NameMatcher) -> None:
    result = matcher.match("juan pérez", cargo="senador")

    assert result.outcome == MATCHED
    assert result.candidate_id == 1
    assert result.score == 100.0


def test_exact_key_without_cargo_is_ambiguous(matcher: NameMatcher) -> None:
    result = matcher.match("JUAN PEREZ")

    assert result.outcome == AMBIGUOUS
    assert result.candidates == [1, 2]
    assert result.candidate_id is None


def test_fuzzy_match_above_threshold(matcher: NameMatcher) -> None:
    result = matcher.match("MARIA DEL CARMEN FLOREZ")

    assert result.outcome == MATCHED
    assert result.candidate_id == 3
    assert 92 <= result.score < 100


def test_word_order_does_not_matter(matcher: NameMatcher) -> None:
    assert matcher.match("QUISPE ROSA").candidate_id == 4


def test_below_threshold_is_unmatched(matcher: NameMatcher) -> None:
    assert matcher.match("PEDRO CASTILLO").outcome == UNMATCHED
    assert matcher.match("").outcome == UNMATCHED
    assert matcher.match("JUAN PEREZ", cargo="diputado").outcome == UNMATCHED


def test_similar_keys_excludes_itself(matcher: NameMatcher) -> None:
    assert matcher.similar_keys("JUAN PEREZ") == []
    hits = NameMatcher(RECORDS + [{"id": 5, "full_name": "ROSA QUISPE H", "cargo": "senador"}],
                       threshold=90).similar_keys("ROSA QUISPE")
    assert [key for key, _ in hits] == ["ROSA QUISPE H"]


def test_similarity_folds_accents_and_case() -> None:
    assert NameMatcher.similarity("José Quiñones", "JOSE QUINONES") == 100.0
    assert NameMatcher.similarity("", "X") == 0.0
