"""
Prompt builder for claim decisions: claim + retrieved clauses (+ evidence) → JSON decision.

The model may only use the clauses it is given and must cite them by ID.
"""

from decimal import Decimal
from typing import Optional, Sequence

from claimcheck.schemas import ClaimRequest, PolicyClause

SYSTEM_INSTRUCTION = """You are an insurance claims validation assistant with strict evidence-based decision making.

You MUST:
- Use ONLY the provided policy clauses. Never invent or assume policy language.
- Cite clause IDs for every statement, e.g. 'covered according to [motor_policy_003]'.
- List every cited clause ID in clauseReferences.
- If you are unsure or evidence is missing, use "Manual Review".
- Respond with a single valid JSON object only. No markdown, no commentary."""

SYSTEM_INSTRUCTION_WITH_EVIDENCE = """You are an insurance claims validation assistant with strict evidence-based validation.

You MUST:
- Use ONLY the provided policy clauses and supporting documents.
- Check that the claim details match the supporting documents and flag any discrepancy.
- Cite policy clauses as [clause-id] and documents as [Document: n].
- If evidence is contradictory, incomplete, or does not support the claim amount, use "Manual Review".
- Respond with a single valid JSON object only. No markdown, no commentary."""

RESPONSE_FORMAT = """{
  "status": "Covered" | "Not Covered" | "Manual Review",
  "explanation": "<explanation citing clauses as [clause-id]>",
  "clauseReferences": ["<clause-id>"],
  "requiredDocuments": ["<document>"],
  "confidenceScore": 0.0-1.0
}"""

# Ordered (exclusive upper bound, guidance); the first bound above the amount wins.
DOCUMENT_GUIDANCE_TIERS: list[tuple[Optional[Decimal], str]] = [
    (
        Decimal("500"),
        """DOCUMENT REQUIREMENTS: For this low-value claim (<$500), require only basic proof:
- Claim form or receipt
- Brief description of incident
Note: Minimal documentation acceptable for small claims.""",
    ),
    (
        Decimal("1000"),
        """DOCUMENT REQUIREMENTS: For this moderate claim ($500-$1,000), require standard documentation:
- Claim form
- Receipts or invoices
- Basic incident documentation (e.g., photos, brief report)
Note: Standard verification required.""",
    ),
    (
        Decimal("5000"),
        """DOCUMENT REQUIREMENTS: For this significant claim ($1,000-$5,000), require comprehensive documentation:
- Detailed claim form
- Itemized receipts/bills
- Incident reports or medical records
- Photos or damage assessment
- Supporting evidence of loss
Note: Thorough documentation required for substantial claims.""",
    ),
    (
        None,
        """DOCUMENT REQUIREMENTS: For this high-value claim ($5,000 and above), require extensive documentation and verification:
- Complete claim form with all details
- Comprehensive receipts, bills, and invoices
- Official reports (medical, police, repair estimates)
- Multiple forms of evidence (photos, videos, witness statements)
- Professional assessments where applicable
Note: Extensive verification required. Consider flagging for manual review even with good documentation.""",
    ),
]

EVIDENCE_INSTRUCTIONS = """VALIDATION INSTRUCTIONS:
1. Validate the claim details against the supporting documents
2. Check that document evidence supports the claimed amount (within 10%)
3. Verify all claim details are consistent with the evidence
4. Assess document quality and completeness
5. Increase confidence only if evidence strongly supports the claim
6. Decrease confidence or use "Manual Review" if evidence is missing, contradictory, or insufficient"""


def document_guidance(claim_amount: Decimal) -> str:
    for upper_bound, guidance in DOCUMENT_GUIDANCE_TIERS:
        if upper_bound is None or claim_amount < upper_bound:
            return guidance
    return DOCUMENT_GUIDANCE_TIERS[-1][1]


def format_clauses(clauses: Sequence[PolicyClause]) -> str:
    return "\n\n".join(f"[{c.clause_id}] {c.coverage_type}: {c.text}" for c in clauses)


def build_decision_prompt(
    request: ClaimRequest,
    clauses: Sequence[PolicyClause],
    evidence_texts: Optional[Sequence[str]] = None,
) -> str:
    sections = [
        f"""CLAIM DETAILS:
Policy Number: {request.policy_number}
Policy Type: {request.policy_type.value}
Claim Amount: ${request.claim_amount:,.2f}
Description: {request.claim_description}""",
        f"RELEVANT POLICY CLAUSES:\n{format_clauses(clauses)}",
        document_guidance(request.claim_amount),
    ]

    if evidence_texts:
        documents = "\n\n---\n\n".join(
            f"SUPPORTING DOCUMENT {idx}:\n{text}" for idx, text in enumerate(evidence_texts, start=1)
        )
        sections.append(f"SUPPORTING DOCUMENTS SUBMITTED:\n{documents}")
        sections.append(EVIDENCE_INSTRUCTIONS)
        closing = "Analyze this claim with its supporting evidence and return your decision as JSON:"
    else:
        closing = "Analyze this claim and return your decision as JSON:"

    sections.append(f"{closing}\n{RESPONSE_FORMAT}")
    return "\n\n".join(sections)
