"""
Append-only JSON Lines audit trail, one record per validated claim.
"""

import logging
from pathlib import Path
from typing import List, Optional

from claimcheck.collaborators import BaseAuditSink
from claimcheck.config import get_settings
from claimcheck.schemas import AuditRecord, ClaimDecision, ClaimRequest, PolicyClause
from claimcheck.security import redact_pii

logger = logging.getLogger(__name__)

AUDIT_FILENAME = "claims_audit.jsonl"


def build_audit_record(
    request: ClaimRequest,
    decision: ClaimDecision,
    clauses: List[PolicyClause],
    document_ids: Optional[List[str]] = None,
) -> AuditRecord:
    return AuditRecord(
        policy_number=request.policy_number,
        policy_type=request.policy_type,
        claim_amount=request.claim_amount,
        claim_description=redact_pii(request.claim_description) or "",
        decision_status=decision.status,
        explanation=decision.explanation,
        confidence_score=decision.confidence_score,
        clause_references=list(decision.clause_references),
        required_documents=list(decision.required_documents),
        document_ids=list(document_ids or []),
        retrieved_clauses=[
            {"clauseId": c.clause_id, "score": c.relevance_score} for c in clauses
        ],
    )


class JsonlAuditSink(BaseAuditSink):
    def __init__(self, audit_dir: Optional[str] = None) -> None:
        self.audit_dir = Path(audit_dir or get_settings().AUDIT_DIR)

    @property
    def path(self) -> Path:
        return self.audit_dir / AUDIT_FILENAME

    def save(
        self,
        request: ClaimRequest,
        decision: ClaimDecision,
        clauses: List[PolicyClause],
        document_ids: Optional[List[str]] = None,
    ) -> None:
        record = build_audit_record(request, decision, clauses, document_ids)
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(record.model_dump_json(by_alias=True) + "\n")
        logger.info("Audit record %s written to %s", record.claim_id, self.path)
