"""
Pydantic models shared by the decision engine.
This is the source of truth for the claim / decision JSON shape.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PolicyType(str, Enum):
    MOTOR = "Motor"
    HOME = "Home"
    HEALTH = "Health"
    LIFE = "Life"


class DecisionStatus(str, Enum):
    COVERED = "Covered"
    NOT_COVERED = "Not Covered"
    MANUAL_REVIEW = "Manual Review"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class _WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ClaimRequest(_WireModel):
    policy_number: str = Field(min_length=1)
    policy_type: PolicyType
    claim_amount: Decimal = Field(ge=0)
    claim_description: str


class PolicyClause(_WireModel):
    clause_id: str
    coverage_type: str
    text: str
    relevance_score: float = 0.0


class ClaimDecision(_WireModel):
    status: DecisionStatus
    explanation: str = ""
    clause_references: list[str] = []
    required_documents: list[str] = []
    confidence_score: float = Field(ge=0.0, le=1.0)


class Contradiction(_WireModel):
    source_a: str
    source_b: str
    description: str
    impact: str
    severity: Severity


class ValidationResult(_WireModel):
    is_valid: bool
    errors: list[str] = []
    warnings: list[str] = []
    warning_message: Optional[str] = None


class ValidationOutcome(_WireModel):
    """Final decision of one validation run plus the diagnostics gathered on the way."""

    decision: ClaimDecision
    draft_decision: Optional[ClaimDecision] = None
    clauses: list[PolicyClause] = []
    citation_result: Optional[ValidationResult] = None
    contradictions: list[Contradiction] = []
    requires_human_review: bool = False


class EvidenceValidationRequest(_WireModel):
    """API body for POST /api/claims/validate-with-evidence."""

    claim: ClaimRequest
    document_ids: list[str] = Field(min_length=1)


class AuditRecord(_WireModel):
    claim_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    policy_number: str
    policy_type: PolicyType
    claim_amount: Decimal
    claim_description: str
    decision_status: DecisionStatus
    explanation: str
    confidence_score: float
    clause_references: list[str]
    required_documents: list[str]
    document_ids: list[str] = []
    retrieved_clauses: list[dict] = []
