"""
Deterministic business rules layered over the model's draft decision.

Rules are ordered data: the first rule whose predicate holds transforms the
decision and evaluation stops. Low confidence and high amount are checked
before the "looks good" annotations so they always take precedence.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional, Sequence

from claimcheck.schemas import ClaimDecision, ClaimRequest, DecisionStatus, PolicyClause

CONFIDENCE_THRESHOLD = 0.85
AUTO_APPROVAL_CONFIDENCE = 0.90
LOW_VALUE_LIMIT = Decimal("500")
MODERATE_VALUE_LIMIT = Decimal("1000")
AUTO_APPROVAL_LIMIT = Decimal("5000")

AUTO_APPROVED_NOTE = "Auto-approved: low-value claim with high confidence and supporting evidence."
REDUCED_REVIEW_NOTE = "Reduced review: moderate claim amount with sufficient confidence."
EXCLUSION_NOTE = "Potential exclusion clause detected."


@dataclass(frozen=True)
class RuleContext:
    decision: ClaimDecision
    request: ClaimRequest
    has_supporting_evidence: bool
    clauses: Sequence[PolicyClause] = ()

    @property
    def is_covered(self) -> bool:
        return self.decision.status == DecisionStatus.COVERED

    def cited_clauses(self) -> list[PolicyClause]:
        cited = set(self.decision.clause_references)
        return [c for c in self.clauses if c.clause_id in cited]


@dataclass(frozen=True)
class BusinessRule:
    name: str
    predicate: Callable[[RuleContext], bool]
    transform: Callable[[RuleContext], ClaimDecision]


def _annotate(
    decision: ClaimDecision,
    note: str,
    status: Optional[DecisionStatus] = None,
) -> ClaimDecision:
    """Return a copy with `note` prefixed once; re-applying the same note is a no-op."""
    explanation = decision.explanation
    if note not in explanation:
        explanation = f"{note} {explanation}".strip()
    update: dict = {"explanation": explanation}
    if status is not None:
        update["status"] = status
    return decision.model_copy(update=update)


def _confidence_note(decision: ClaimDecision) -> str:
    return (
        f"Confidence below threshold ({decision.confidence_score:.2f} < {CONFIDENCE_THRESHOLD})."
    )


def _limit_note(request: ClaimRequest) -> str:
    return (
        f"Amount ${request.claim_amount:,.2f} exceeds auto-approval limit of "
        f"${AUTO_APPROVAL_LIMIT:,.0f}."
    )


def _cites_exclusion(ctx: RuleContext) -> bool:
    if any("exclusion" in ref.lower() for ref in ctx.decision.clause_references):
        return True
    return any("exclusion" in c.text.lower() for c in ctx.cited_clauses())


DEFAULT_RULES: tuple[BusinessRule, ...] = (
    BusinessRule(
        name="low_confidence",
        predicate=lambda ctx: ctx.decision.confidence_score < CONFIDENCE_THRESHOLD,
        transform=lambda ctx: _annotate(
            ctx.decision, _confidence_note(ctx.decision), DecisionStatus.MANUAL_REVIEW
        ),
    ),
    BusinessRule(
        name="low_value_auto_approval",
        predicate=lambda ctx: (
            ctx.request.claim_amount < LOW_VALUE_LIMIT
            and ctx.decision.confidence_score >= AUTO_APPROVAL_CONFIDENCE
            and ctx.is_covered
            and ctx.has_supporting_evidence
        ),
        transform=lambda ctx: _annotate(ctx.decision, AUTO_APPROVED_NOTE),
    ),
    BusinessRule(
        name="moderate_value_reduced_review",
        predicate=lambda ctx: (
            ctx.request.claim_amount < MODERATE_VALUE_LIMIT
            and ctx.decision.confidence_score >= CONFIDENCE_THRESHOLD
            and ctx.is_covered
        ),
        transform=lambda ctx: _annotate(ctx.decision, REDUCED_REVIEW_NOTE),
    ),
    BusinessRule(
        name="high_value_manual_review",
        predicate=lambda ctx: ctx.request.claim_amount > AUTO_APPROVAL_LIMIT and ctx.is_covered,
        transform=lambda ctx: _annotate(
            ctx.decision, _limit_note(ctx.request), DecisionStatus.MANUAL_REVIEW
        ),
    ),
    BusinessRule(
        name="exclusion_clause_cited",
        predicate=lambda ctx: ctx.is_covered and _cites_exclusion(ctx),
        transform=lambda ctx: _annotate(ctx.decision, EXCLUSION_NOTE, DecisionStatus.MANUAL_REVIEW),
    ),
)


class BusinessRuleEngine:
    def __init__(self, rules: Sequence[BusinessRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def matching_rule(self, ctx: RuleContext) -> Optional[BusinessRule]:
        for rule in self.rules:
            if rule.predicate(ctx):
                return rule
        return None

    def apply(
        self,
        decision: ClaimDecision,
        request: ClaimRequest,
        has_supporting_evidence: bool,
        clauses: Sequence[PolicyClause] = (),
    ) -> ClaimDecision:
        """Return the decision transformed by the first matching rule, or unchanged."""
        ctx = RuleContext(decision, request, has_supporting_evidence, tuple(clauses))
        rule = self.matching_rule(ctx)
        if rule is None:
            return decision
        return rule.transform(ctx)
