"""
Shared fixtures: claim factories and in-memory fakes for every collaborator.
No test touches the network or loads a model.
"""

import json
import time
from decimal import Decimal

import pytest

from claimcheck.collaborators import (
    BaseAuditSink,
    BaseClauseRetriever,
    BaseEmbedder,
    BaseEvidenceExtractor,
    BaseImageAnalyzer,
    BaseInferenceClient,
)
from claimcheck.schemas import ClaimDecision, ClaimRequest, DecisionStatus, PolicyClause, PolicyType


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeEmbedder(BaseEmbedder):
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def embed(self, texts):
        self.calls.append(list(texts))
        if self.error:
            raise self.error
        return [[0.1, 0.2, 0.3] for _ in texts]


class FakeRetriever(BaseClauseRetriever):
    def __init__(self, clauses=None, error=None, delay=0.0):
        self.clauses = list(clauses or [])
        self.error = error
        self.delay = delay
        self.calls = []

    def retrieve(self, vector, policy_type):
        self.calls.append((list(vector), policy_type))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.clauses)


class FakeInferenceClient(BaseInferenceClient):
    def __init__(self, response="", error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = []

    def generate(self, system_instruction, prompt, max_tokens=1024, temperature=0.0):
        self.calls.append({
            "system": system_instruction,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response


class FakeEvidenceExtractor(BaseEvidenceExtractor):
    """documents maps id → text, an exception instance, or (delay_seconds, text)."""

    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    def extract(self, document_id):
        self.calls.append(document_id)
        value = self.documents[document_id]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, tuple):
            delay, text = value
            time.sleep(delay)
            return text
        return value


class FakeImageAnalyzer(BaseImageAnalyzer):
    def __init__(self, findings=None, error=None):
        self.findings = findings or {}
        self.error = error

    def analyze(self, document_id):
        if self.error:
            raise self.error
        return self.findings.get(document_id)


class FakeAuditSink(BaseAuditSink):
    def __init__(self, error=None):
        self.records = []
        self.error = error

    def save(self, request, decision, clauses, document_ids=None):
        if self.error:
            raise self.error
        self.records.append((request, decision, list(clauses), document_ids))


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_request(amount="1200", policy_type=PolicyType.MOTOR, description=None, policy_number="POL-2024-001"):
    return ClaimRequest(
        policy_number=policy_number,
        policy_type=policy_type,
        claim_amount=Decimal(str(amount)),
        claim_description=description or "Vehicle collision on highway resulting in front-end damage",
    )


def make_decision(status=DecisionStatus.COVERED, confidence=0.9, refs=("motor_policy_001",),
                  explanation="Covered under collision coverage [motor_policy_001].", docs=()):
    return ClaimDecision(
        status=status,
        explanation=explanation,
        clause_references=list(refs),
        required_documents=list(docs),
        confidence_score=confidence,
    )


def model_reply(status="Covered", confidence=0.92, refs=("motor_policy_001",),
                explanation="Collision damage is covered per [motor_policy_001].", docs=("Repair estimate",)):
    return json.dumps({
        "status": status,
        "explanation": explanation,
        "clauseReferences": list(refs),
        "requiredDocuments": list(docs),
        "confidenceScore": confidence,
    })


MOTOR_CLAUSES = [
    PolicyClause(
        clause_id="motor_policy_001",
        coverage_type="Collision",
        text="Collision coverage pays for damage to the insured vehicle caused by collision with another vehicle or object.",
        relevance_score=0.92,
    ),
    PolicyClause(
        clause_id="motor_policy_002",
        coverage_type="Comprehensive",
        text="Comprehensive coverage includes theft, vandalism, fire and natural disasters. Deductible applies.",
        relevance_score=0.88,
    ),
    PolicyClause(
        clause_id="motor_policy_003",
        coverage_type="Exclusions",
        text="Exclusion: damage from racing, intentional acts, or driving under the influence is not covered.",
        relevance_score=0.85,
    ),
    PolicyClause(
        clause_id="motor_policy_004",
        coverage_type="Glass Coverage",
        text="Windshield and glass repair is eligible up to a limit of $1,000 per incident.",
        relevance_score=0.78,
    ),
]


@pytest.fixture
def motor_clauses():
    return list(MOTOR_CLAUSES)


