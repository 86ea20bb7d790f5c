"""
Cross-checks a decision against the claim, the cited clauses, and any evidence text.

Every check runs independently and contributes zero or more Contradiction
entries. The list is diagnostic only; callers decide what to do with it.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from claimcheck.schemas import (
    ClaimDecision,
    ClaimRequest,
    Contradiction,
    DecisionStatus,
    PolicyClause,
    Severity,
)

HIGH_CONFIDENCE = 0.85
LOW_CONFIDENCE = 0.70
EVIDENCE_TOLERANCE = Decimal("0.10")

SEVERITY_ORDER = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

_AMOUNT_RE = re.compile(r"\$[\d,]+(?:\.\d{2})?")


def extract_amounts(text: str) -> list[Decimal]:
    """Dollar amounts written as $1,234 or $1,234.56."""
    amounts: list[Decimal] = []
    for match in _AMOUNT_RE.findall(text or ""):
        digits = match.replace("$", "").replace(",", "")
        if not digits or digits == ".":
            continue
        try:
            amounts.append(Decimal(digits))
        except InvalidOperation:
            continue
    return amounts


def _has_exclusion_language(text: str, include_excluded: bool = True) -> bool:
    """
    Denials accept "excluded" as exclusion language; the mixed-clause check
    only counts "exclusion" and "not covered".
    """
    lowered = text.lower()
    if "exclusion" in lowered or "not covered" in lowered:
        return True
    return include_excluded and "excluded" in lowered


def _has_coverage_language(text: str) -> bool:
    lowered = text.lower().replace("not covered", "")
    return "covered" in lowered or "eligible" in lowered


def _cited(decision: ClaimDecision, clauses: Sequence[PolicyClause]) -> list[PolicyClause]:
    cited = set(decision.clause_references)
    return [c for c in clauses if c.clause_id in cited]


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def check_decision_vs_citations(decision: ClaimDecision, clauses: Sequence[PolicyClause]) -> list[Contradiction]:
    found: list[Contradiction] = []
    if not decision.clause_references:
        return found
    cited = _cited(decision, clauses)

    if decision.status == DecisionStatus.NOT_COVERED and not any(_has_exclusion_language(c.text) for c in cited):
        found.append(Contradiction(
            source_a="Decision Status (Not Covered)",
            source_b="Cited Policy Clauses",
            description="Claim denied but cited clauses do not contain exclusion language",
            impact="Decision may lack proper justification",
            severity=Severity.HIGH,
        ))

    if decision.status == DecisionStatus.COVERED and any("exclusion" in c.text.lower() for c in cited):
        found.append(Contradiction(
            source_a="Decision Status (Covered)",
            source_b="Policy Exclusion Clause",
            description="Claim marked as covered but exclusion clause is cited",
            impact="May result in incorrect approval",
            severity=Severity.CRITICAL,
        ))

    return found


def check_mixed_clauses(decision: ClaimDecision, clauses: Sequence[PolicyClause]) -> list[Contradiction]:
    cited = _cited(decision, clauses)
    has_coverage = any(_has_coverage_language(c.text) for c in cited)
    has_exclusion = any(_has_exclusion_language(c.text, include_excluded=False) for c in cited)
    if not (has_coverage and has_exclusion):
        return []
    return [Contradiction(
        source_a="Coverage Policy Clause",
        source_b="Exclusion Policy Clause",
        description="Both coverage and exclusion clauses cited - requires policy interpretation",
        impact="Ambiguous policy application",
        severity=Severity.HIGH,
    )]


def check_confidence_status(decision: ClaimDecision) -> list[Contradiction]:
    found: list[Contradiction] = []
    score = decision.confidence_score

    if score > HIGH_CONFIDENCE and decision.status == DecisionStatus.MANUAL_REVIEW:
        found.append(Contradiction(
            source_a=f"High Confidence Score ({score:.2f})",
            source_b="Manual Review Status",
            description="Model is confident but decision requires manual review - may indicate conflicting business rules",
            impact="Potential for automated decision",
            severity=Severity.MEDIUM,
        ))

    if score < LOW_CONFIDENCE and decision.status in (DecisionStatus.COVERED, DecisionStatus.NOT_COVERED):
        found.append(Contradiction(
            source_a=f"Low Confidence Score ({score:.2f})",
            source_b=f"Automated Decision ({decision.status.value})",
            description="Low confidence decision made automatically - should trigger manual review",
            impact="Risk of incorrect decision",
            severity=Severity.HIGH,
        ))

    return found


def check_amount_limits(request: ClaimRequest, clauses: Sequence[PolicyClause]) -> list[Contradiction]:
    found: list[Contradiction] = []
    for clause in clauses:
        if "limit" not in clause.text.lower():
            continue
        for limit in extract_amounts(clause.text):
            if request.claim_amount > limit:
                found.append(Contradiction(
                    source_a=f"Claim Amount ({_money(request.claim_amount)})",
                    source_b=f"Policy Limit ({_money(limit)}) in {clause.clause_id}",
                    description=f"Claim amount exceeds policy limit by {_money(request.claim_amount - limit)}",
                    impact="May require partial approval or denial",
                    severity=Severity.HIGH,
                ))
    return found


def check_evidence_amounts(request: ClaimRequest, evidence_texts: Sequence[str]) -> list[Contradiction]:
    found: list[Contradiction] = []
    tolerance = request.claim_amount * EVIDENCE_TOLERANCE
    for text in evidence_texts:
        for amount in extract_amounts(text):
            difference = abs(amount - request.claim_amount)
            if difference > tolerance:
                found.append(Contradiction(
                    source_a=f"Claimed Amount ({_money(request.claim_amount)})",
                    source_b=f"Document Amount ({_money(amount)})",
                    description=f"Claim amount differs from supporting document by {_money(difference)}",
                    impact="Verify correct claim amount",
                    severity=Severity.HIGH,
                ))
    return found


def has_critical_contradictions(contradictions: Sequence[Contradiction]) -> bool:
    return any(c.severity in (Severity.CRITICAL, Severity.HIGH) for c in contradictions)


def get_contradiction_summary(contradictions: Sequence[Contradiction]) -> list[str]:
    ordered = sorted(contradictions, key=lambda c: SEVERITY_ORDER[c.severity], reverse=True)
    return [f"[{c.severity.value}] {c.description}: {c.source_a} vs {c.source_b}" for c in ordered]


class ContradictionDetector:
    def detect(
        self,
        request: ClaimRequest,
        decision: ClaimDecision,
        clauses: Sequence[PolicyClause],
        evidence_texts: Optional[Sequence[str]] = None,
    ) -> list[Contradiction]:
        contradictions: list[Contradiction] = []
        contradictions.extend(check_decision_vs_citations(decision, clauses))
        contradictions.extend(check_mixed_clauses(decision, clauses))
        contradictions.extend(check_confidence_status(decision))
        contradictions.extend(check_amount_limits(request, clauses))
        if evidence_texts:
            contradictions.extend(check_evidence_amounts(request, evidence_texts))
        return contradictions

    has_critical_contradictions = staticmethod(has_critical_contradictions)
    get_contradiction_summary = staticmethod(get_contradiction_summary)
