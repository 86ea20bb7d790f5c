"""
Unit tests for contradiction detection between decision, clauses, claim and evidence.
"""

from decimal import Decimal

from claimcheck.schemas import Contradiction, DecisionStatus, PolicyClause, Severity
from claimcheck.services.contradictions import (
    ContradictionDetector,
    check_amount_limits,
    check_confidence_status,
    check_decision_vs_citations,
    check_evidence_amounts,
    check_mixed_clauses,
    extract_amounts,
    get_contradiction_summary,
    has_critical_contradictions,
)
from conftest import MOTOR_CLAUSES, make_decision, make_request

detector = ContradictionDetector()


def _contradiction(severity, description="d"):
    return Contradiction(source_a="A", source_b="B", description=description, impact="i", severity=severity)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

class TestDecisionVsCitations:
    def test_denial_without_exclusion_language(self):
        decision = make_decision(status=DecisionStatus.NOT_COVERED, refs=("motor_policy_001",))
        found = check_decision_vs_citations(decision, MOTOR_CLAUSES)
        assert len(found) == 1
        assert found[0].severity == Severity.HIGH

    def test_denial_citing_exclusion_is_fine(self):
        decision = make_decision(status=DecisionStatus.NOT_COVERED, refs=("motor_policy_003",))
        assert check_decision_vs_citations(decision, MOTOR_CLAUSES) == []

    def test_covered_citing_exclusion_is_critical(self):
        decision = make_decision(refs=("motor_policy_001", "motor_policy_003"))
        found = check_decision_vs_citations(decision, MOTOR_CLAUSES)
        assert [c.severity for c in found] == [Severity.CRITICAL]

    def test_no_references_no_findings(self):
        decision = make_decision(status=DecisionStatus.NOT_COVERED, refs=())
        assert check_decision_vs_citations(decision, MOTOR_CLAUSES) == []


class TestMixedClauses:
    def test_coverage_and_exclusion_cited_together(self):
        decision = make_decision(refs=("motor_policy_004", "motor_policy_003"))
        found = check_mixed_clauses(decision, MOTOR_CLAUSES)
        assert len(found) == 1
        assert found[0].severity == Severity.HIGH

    def test_not_covered_alone_is_not_coverage_language(self):
        decision = make_decision(refs=("motor_policy_003",))
        assert check_mixed_clauses(decision, MOTOR_CLAUSES) == []

    def test_excluded_alone_is_not_exclusion_language_here(self):
        excluded = PolicyClause(
            clause_id="motor_policy_009",
            coverage_type="Wear",
            text="Wear and tear is excluded.",
        )
        clauses = [*MOTOR_CLAUSES, excluded]
        decision = make_decision(refs=("motor_policy_004", "motor_policy_009"))
        assert check_mixed_clauses(decision, clauses) == []

    def test_excluded_still_justifies_a_denial(self):
        excluded = PolicyClause(
            clause_id="motor_policy_009",
            coverage_type="Wear",
            text="Wear and tear is excluded.",
        )
        decision = make_decision(status=DecisionStatus.NOT_COVERED, refs=("motor_policy_009",))
        assert check_decision_vs_citations(decision, [excluded]) == []


class TestConfidenceStatus:
    def test_confident_manual_review(self):
        found = check_confidence_status(make_decision(status=DecisionStatus.MANUAL_REVIEW, confidence=0.9))
        assert [c.severity for c in found] == [Severity.MEDIUM]

    def test_unsure_automated_decision(self):
        found = check_confidence_status(make_decision(status=DecisionStatus.NOT_COVERED, confidence=0.6))
        assert [c.severity for c in found] == [Severity.HIGH]
        assert "Not Covered" in found[0].source_b

    def test_middle_band_is_quiet(self):
        assert check_confidence_status(make_decision(confidence=0.75)) == []
        assert check_confidence_status(make_decision(status=DecisionStatus.MANUAL_REVIEW, confidence=0.5)) == []


class TestAmounts:
    def test_extract_amounts(self):
        assert extract_amounts("Paid $1,250.50 then $300 and 400") == [Decimal("1250.50"), Decimal("300")]
        assert extract_amounts("") == []

    def test_claim_over_clause_limit(self):
        found = check_amount_limits(make_request(amount="1500"), MOTOR_CLAUSES)
        assert len(found) == 1
        assert "motor_policy_004" in found[0].source_b
        assert "$500.00" in found[0].description

    def test_claim_under_limit(self):
        assert check_amount_limits(make_request(amount="900"), MOTOR_CLAUSES) == []

    def test_amounts_ignored_without_limit_word(self):
        clause = PolicyClause(clause_id="c", coverage_type="x", text="Deductible of $250 applies.")
        assert check_amount_limits(make_request(amount="5000"), [clause]) == []

    def test_evidence_amount_within_tolerance(self):
        assert check_evidence_amounts(make_request(amount="1000"), ["Invoice total: $1,100.00"]) == []

    def test_evidence_amount_outside_tolerance(self):
        found = check_evidence_amounts(make_request(amount="1000"), ["Invoice total: $1,100.01"])
        assert len(found) == 1
        assert found[0].source_b == "Document Amount ($1,100.01)"


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def test_detector_runs_evidence_check_only_with_evidence():
    request = make_request(amount="800")
    decision = make_decision(confidence=0.9)
    assert detector.detect(request, decision, MOTOR_CLAUSES) == []
    found = detector.detect(request, decision, MOTOR_CLAUSES, ["Repair quote $2,400"])
    assert len(found) == 1


def test_detector_collects_all_checks():
    request = make_request(amount="1500")
    decision = make_decision(confidence=0.6, refs=("motor_policy_004", "motor_policy_003"))
    found = detector.detect(request, decision, MOTOR_CLAUSES)
    # critical exclusion citation, mixed clauses, low confidence, glass limit
    assert [c.severity for c in found] == [Severity.CRITICAL, Severity.HIGH, Severity.HIGH, Severity.HIGH]


def test_has_critical_contradictions():
    assert not has_critical_contradictions([])
    assert not has_critical_contradictions([_contradiction(Severity.MEDIUM), _contradiction(Severity.LOW)])
    assert has_critical_contradictions([_contradiction(Severity.LOW), _contradiction(Severity.HIGH)])
    assert detector.has_critical_contradictions([_contradiction(Severity.CRITICAL)])


def test_summary_sorted_by_severity_and_stable():
    items = [
        _contradiction(Severity.LOW, "first low"),
        _contradiction(Severity.HIGH, "first high"),
        _contradiction(Severity.CRITICAL, "critical"),
        _contradiction(Severity.HIGH, "second high"),
    ]
    assert get_contradiction_summary(items) == [
        "[Critical] critical: A vs B",
        "[High] first high: A vs B",
        "[High] second high: A vs B",
        "[Low] first low: A vs B",
    ]
