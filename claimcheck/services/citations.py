"""
Citation checks for model-generated decisions.

Catches hallucinated clause IDs (cited but never retrieved), decisions that
cite nothing, and explanation language that suggests the model is guessing
instead of reading the supplied policy text.

Returns a ValidationResult; nothing here raises or blocks a decision.
"""

import re
from typing import Iterable, Sequence

from claimcheck.schemas import ClaimDecision, DecisionStatus, PolicyClause, ValidationResult

LOW_CONFIDENCE = 0.5
MAX_CITATIONS_AT_LOW_CONFIDENCE = 5
PREVIEW_CHARS = 100

CITATION_PATTERNS = [
    re.compile(r"\[.*?\]"),
    re.compile(r"clause[:\s]", re.IGNORECASE),
    re.compile(r"section[:\s]\s*\d+", re.IGNORECASE),
    re.compile(r"\bpolicy_\w+", re.IGNORECASE),
    re.compile(r"\b\w+_policy_\w+", re.IGNORECASE),
]

UNCERTAINTY_PHRASES = [
    "i think", "i believe", "probably", "maybe", "possibly",
    "it seems", "appears to be", "likely", "might be", "could be",
    "generally", "typically", "usually", "in most cases",
]

PERSONAL_KNOWLEDGE_PHRASES = [
    "i know that", "i understand", "in my experience",
    "i recall", "i remember", "based on my knowledge",
]

VAGUE_REFERENCES = [
    "according to the policy", "the policy states",
    "policy guidelines", "standard practice",
    "insurance regulations", "common practice",
]


def _clause_ids(clauses: Iterable[PolicyClause]) -> set[str]:
    return {c.clause_id for c in clauses}


def contains_citation_marker(explanation: str) -> bool:
    if not explanation:
        return False
    return any(pattern.search(explanation) for pattern in CITATION_PATTERNS)


def detect_hallucination_indicators(explanation: str) -> list[str]:
    indicators: list[str] = []
    if not explanation:
        return indicators

    normalized = explanation.lower()

    for phrase in UNCERTAINTY_PHRASES:
        if phrase in normalized:
            indicators.append(f"Uncertainty phrase: '{phrase}'")

    for phrase in PERSONAL_KNOWLEDGE_PHRASES:
        if phrase in normalized:
            indicators.append(f"Personal knowledge claim: '{phrase}'")

    has_vague_reference = any(ref in normalized for ref in VAGUE_REFERENCES)
    if has_vague_reference and not contains_citation_marker(explanation):
        indicators.append("Vague policy reference without specific clause citation")

    return indicators


def are_citations_valid(citations: Sequence[str], available_clauses: Sequence[PolicyClause]) -> bool:
    """True iff every citation resolves against the retrieved clauses."""
    return not get_missing_citations(citations, available_clauses)


def get_missing_citations(citations: Sequence[str], available_clauses: Sequence[PolicyClause]) -> list[str]:
    available = _clause_ids(available_clauses)
    missing: list[str] = []
    for citation in citations:
        if citation not in available and citation not in missing:
            missing.append(citation)
    return missing


def enhance_explanation_with_citations(explanation: str, cited_clauses: Sequence[PolicyClause]) -> str:
    """Append a 'Policy References' block for display. Does not validate anything."""
    if not explanation or not cited_clauses:
        return explanation

    lines = [explanation, "", "Policy References:"]
    for clause in cited_clauses:
        preview = clause.text
        if len(preview) > PREVIEW_CHARS:
            preview = preview[:PREVIEW_CHARS] + "..."
        lines.append(f"- [{clause.clause_id}] {preview}")
    return "\n".join(lines) + "\n"


class CitationValidator:
    def validate(self, decision: ClaimDecision, available_clauses: Sequence[PolicyClause]) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        citations = decision.clause_references

        if not citations:
            errors.append(
                "Decision is missing required policy citations. "
                "All decisions must be backed by policy clauses."
            )

        for citation in get_missing_citations(citations, available_clauses):
            errors.append(
                f"Cited clause '{citation}' not found in retrieved policy clauses. "
                "This may indicate hallucination."
            )

        if decision.confidence_score < LOW_CONFIDENCE and len(citations) > MAX_CITATIONS_AT_LOW_CONFIDENCE:
            warnings.append(
                f"Low confidence ({decision.confidence_score:.2f}) with many citations "
                f"({len(citations)}) may indicate over-fitting or hallucination."
            )

        if citations and not contains_citation_marker(decision.explanation):
            warnings.append(
                "Explanation does not reference the cited policy clauses. "
                "Consider improving citation integration."
            )

        warnings.extend(
            f"Potential hallucination indicator: {indicator}"
            for indicator in detect_hallucination_indicators(decision.explanation)
        )

        if decision.status == DecisionStatus.COVERED and not citations:
            errors.append("'Covered' decisions must cite at least one policy clause supporting coverage.")

        if decision.status == DecisionStatus.NOT_COVERED and not citations:
            warnings.append(
                "'Not Covered' decisions should cite policy exclusions or limitations for transparency."
            )

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            warning_message="Citation quality issues detected" if warnings else None,
        )

    # Method forms of the module helpers, so callers can hold one validator object.
    are_citations_valid = staticmethod(are_citations_valid)
    get_missing_citations = staticmethod(get_missing_citations)
    detect_hallucination_indicators = staticmethod(detect_hallucination_indicators)
    enhance_explanation_with_citations = staticmethod(enhance_explanation_with_citations)
