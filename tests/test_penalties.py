import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.normalization.records import (
    CivilSentenceRecord,
    CompanyIssueCounts,
    ControversialVote,
    IncumbentPerformance,
    JudicialDiscrepancy,
    PenalSentenceRecord,
    ProposalQuality,
    ProposalScores,
    ReinfoRight,
    TaxStatus,
    VotingRecordSummary,
)
from src.scoring.penalties import (
    civil_penalties,
    company_penalty,
    incumbent_competence_delta,
    incumbent_penalty,
    omission_penalty,
    penal_penalty,
    performance_score,
    proposal_quality,
    reinfo_penalty,
    reinfo_severity,
    resignation_penalty,
    round_half_up,
    tax_penalty,
    voting_adjustment,
)


def test_penal_firm_sentences_weigh_more_and_are_uncapped() -> None:
    firm = PenalSentenceRecord(status="firme")
    served = PenalSentenceRecord(status="cumplida")
    pending = PenalSentenceRecord(status="proceso")

    assert penal_penalty([]) == 0
    assert penal_penalty([pending]) == 35
    assert penal_penalty([firm, served, pending]) == 70 + 70 + 35
    assert penal_penalty([firm] * 3) == 210


def test_civil_penalties_itemized_per_subtype() -> None:
    sentences = [
        CivilSentenceRecord(type="alimentos"),
        CivilSentenceRecord(type="laboral"),
        CivilSentenceRecord(type="alimentos"),
        CivilSentenceRecord(type="mystery"),
    ]

    total, items = civil_penalties(sentences)

    assert items == [
        {"type": "alimentos", "penalty": 70},
        {"type": "laboral", "penalty": 25},
        {"type": "mystery", "penalty": 10},
    ]
    assert total == 105


def test_civil_red_subtypes_weigh_more_than_amber() -> None:
    red, _ = civil_penalties([CivilSentenceRecord(type="violencia_familiar")])
    amber, _ = civil_penalties([CivilSentenceRecord(type="contractual")])

    assert CivilSentenceRecord(type="violencia_familiar").severity == "RED"
    assert CivilSentenceRecord(type="contractual").severity == "AMBER"
    assert red > amber


def test_resignation_penalty_is_monotonic() -> None:
    values = [resignation_penalty(count) for count in range(0, 8)]

    assert values[0] == 0
    assert values == sorted(values)
    assert values[1] == 5
    assert values[2] == 10
    assert values[4] == 15


def test_reinfo_red_and_amber_scale_with_distinct_rights() -> None:
    red = [ReinfoRight("A-1", "Vigente"), ReinfoRight("A-2", "Excluido")]
    amber = [ReinfoRight("B-1", "Excluido"), ReinfoRight("B-1", "Excluido")]

    assert reinfo_severity([]) is None
    assert reinfo_severity(red) == "RED"
    assert reinfo_severity(amber) == "AMBER"
    assert reinfo_penalty(red) == 25
    assert reinfo_penalty(amber) == 10
    many = [ReinfoRight(f"C-{index}", "Suspendido") for index in range(20)]
    assert reinfo_penalty(many) == 40


def test_company_penalty_cap_enforced() -> None:
    issues = CompanyIssueCounts(penal=5, laboral=0, ambiental=0, consumidor=10)

    assert company_penalty(issues) == 60


def test_company_penalty_weighted_sum_below_cap() -> None:
    assert company_penalty(CompanyIssueCounts(ambiental=1, laboral=1)) == 45
    assert company_penalty(CompanyIssueCounts(consumidor=5)) == 0
    assert company_penalty(CompanyIssueCounts(consumidor=6)) == 15
    assert company_penalty(None) == 0


def test_tax_penalty_condition_status_and_coactive_debts() -> None:
    assert tax_penalty(None) == 0
    assert tax_penalty(TaxStatus(condition="habido", status="activo")) == 0
    assert tax_penalty(TaxStatus(condition="no_hallado", status="baja")) == 20 + 10
    assert tax_penalty(TaxStatus(has_coactive_debts=True)) == 20
    suspended = TaxStatus(status="suspendido", has_coactive_debts=True, coactive_debt_count=2)
    assert tax_penalty(suspended) == 15 + 40


def test_tax_penalty_limits_debt_count_and_caps() -> None:
    many_debts = TaxStatus(has_coactive_debts=True, coactive_debt_count=9)
    worst = TaxStatus(
        condition="no_habido", status="suspendido", has_coactive_debts=True, coactive_debt_count=3
    )

    assert tax_penalty(many_debts) == 60
    assert tax_penalty(worst) == 85


def test_omission_penalty_requires_discrepancy_flag() -> None:
    flagged = JudicialDiscrepancy(has_discrepancy=True, severity="major", undeclared_cases_count=2)
    unflagged = JudicialDiscrepancy(severity="critical", undeclared_cases_count=5)
    worst = JudicialDiscrepancy(has_discrepancy=True, severity="critical", undeclared_cases_count=4)

    assert omission_penalty(None) == 0
    assert omission_penalty(unflagged) == 0
    assert omission_penalty(flagged) == 40 + 20
    assert omission_penalty(JudicialDiscrepancy(has_discrepancy=True)) == 0
    assert omission_penalty(worst) == 85


def test_incumbent_penalty_example() -> None:
    performance = IncumbentPerformance(
        is_incumbent=True,
        budget_execution_pct=55,
        contraloria_reports=2,
        performance_score=40,
    )

    assert incumbent_penalty(performance) == 24


def test_incumbent_penalty_zero_unless_incumbent_and_capped() -> None:
    outgoing = IncumbentPerformance(is_incumbent=False, budget_execution_pct=10)
    worst = IncumbentPerformance(
        is_incumbent=True, budget_execution_pct=0, contraloria_reports=10, performance_score=0
    )

    assert incumbent_penalty(None) == 0
    assert incumbent_penalty(outgoing) == 0
    assert incumbent_penalty(worst) == 40


def test_incumbent_competence_delta_is_bounded_and_signed() -> None:
    low = IncumbentPerformance(is_incumbent=True, budget_execution_pct=55)
    high = IncumbentPerformance(is_incumbent=True, budget_execution_pct=95)
    awful = IncumbentPerformance(is_incumbent=True, budget_execution_pct=0)

    assert incumbent_competence_delta(low) == -3
    assert incumbent_competence_delta(high) == 5
    assert incumbent_competence_delta(awful) == -5
    assert incumbent_competence_delta(IncumbentPerformance(budget_execution_pct=0)) == 0


def test_performance_score_prefers_explicit_value() -> None:
    assert performance_score(None) is None
    derived = IncumbentPerformance(is_incumbent=True, budget_execution_pct=70, contraloria_reports=1)
    assert performance_score(derived) == pytest.approx(50.0)
    explicit = IncumbentPerformance(is_incumbent=True, performance_score=81.5)
    assert performance_score(explicit) == pytest.approx(81.5)


def test_voting_penalty_and_bonus_stay_separate() -> None:
    summary = VotingRecordSummary(
        pro_crime_in_favor=2, anti_democratic_in_favor=1, pro_crime_against=1
    )

    adjustment = voting_adjustment(summary)

    assert adjustment.penalty == 30
    assert adjustment.bonus == 5
    assert voting_adjustment(None).penalty == 0


def test_voting_per_law_votes_take_precedence_and_cap() -> None:
    summary = VotingRecordSummary(
        pro_crime_in_favor=50,
        controversial_votes=[
            ControversialVote("PL-1", "favor", penalty_points=60),
            ControversialVote("PL-2", "favor", penalty_points=60),
            ControversialVote("PL-3", "contra", bonus_points=20),
        ],
    )

    adjustment = voting_adjustment(summary)

    assert adjustment.penalty == 85
    assert adjustment.bonus == 15


def test_proposal_quality_is_informational_average() -> None:
    quality = ProposalQuality(
        proposals=[ProposalScores(8, 6, 7, 5), ProposalScores(4, 4, 4, 4)]
    )

    assert proposal_quality(quality) == pytest.approx(5.25)
    assert proposal_quality(ProposalQuality(overall_quality=7.333)) == pytest.approx(7.33)
    assert proposal_quality(None) is None


@pytest.mark.parametrize("value, expected", [(0.5, 1), (1.49, 1), (2.5, 3), (-0.5, 0)])
def test_round_half_up(value, expected) -> None:
    assert round_half_up(value) == expected
