"""
Interfaces for the remote collaborators the decision engine depends on.

Default implementations live in claimcheck.adapters and claimcheck.llm;
tests swap in in-memory fakes.
"""

from typing import List, Optional, Sequence

from claimcheck.schemas import ClaimDecision, ClaimRequest, PolicyClause, PolicyType


class BaseEmbedder:
    def embed(self, texts: List[str]) -> List[List[float]]:
        raise NotImplementedError


class BaseClauseRetriever:
    def retrieve(self, vector: Sequence[float], policy_type: PolicyType) -> List[PolicyClause]:
        """Return clauses ordered by relevance. An empty list is a valid answer."""
        raise NotImplementedError


class BaseInferenceClient:
    def generate(
        self,
        system_instruction: str,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> str:
        """Return raw model text. Raise FatalTransportError if the service cannot answer."""
        raise NotImplementedError


class BaseEvidenceExtractor:
    def extract(self, document_id: str) -> str:
        raise NotImplementedError


class BaseImageAnalyzer:
    def analyze(self, document_id: str) -> Optional[str]:
        """Return a short findings summary, or None when the document holds no image."""
        raise NotImplementedError


class BaseAuditSink:
    def save(
        self,
        request: ClaimRequest,
        decision: ClaimDecision,
        clauses: List[PolicyClause],
        document_ids: Optional[List[str]] = None,
    ) -> None:
        raise NotImplementedError
