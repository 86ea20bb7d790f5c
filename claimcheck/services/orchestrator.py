"""
Orchestrates claim validation:
  embed → retrieve → guardrail → generate → diagnostics → business rules → audit

This is the only entry point for validating a claim.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from claimcheck.collaborators import (
    BaseAuditSink,
    BaseClauseRetriever,
    BaseEmbedder,
    BaseEvidenceExtractor,
    BaseImageAnalyzer,
)
from claimcheck.config import Settings, get_settings
from claimcheck.errors import ConfigurationError, FatalTransportError
from claimcheck.schemas import (
    ClaimDecision,
    ClaimRequest,
    DecisionStatus,
    PolicyClause,
    ValidationOutcome,
)
from claimcheck.services.citations import CitationValidator
from claimcheck.services.contradictions import (
    ContradictionDetector,
    get_contradiction_summary,
    has_critical_contradictions,
)
from claimcheck.services.generator import DecisionGenerator
from claimcheck.services.rules import BusinessRuleEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_CLAUSES_EXPLANATION = "No relevant policy clauses found for this claim type"
NO_CLAUSES_DOCUMENTS = ["Policy Document", "Claim Evidence"]
EXTRACTION_FAILED_PLACEHOLDER = "extraction failed — document unavailable"


def no_clauses_decision() -> ClaimDecision:
    return ClaimDecision(
        status=DecisionStatus.MANUAL_REVIEW,
        explanation=NO_CLAUSES_EXPLANATION,
        clause_references=[],
        required_documents=list(NO_CLAUSES_DOCUMENTS),
        confidence_score=0.0,
    )


def call_with_timeout(collaborator: str, timeout: float, fn: Callable[..., T], *args) -> T:
    """Run a blocking collaborator call with a deadline. Any failure is fatal for the request."""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"claimcheck-{collaborator}")
    future = executor.submit(fn, *args)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        raise FatalTransportError(collaborator, f"timed out after {timeout:g}s")
    except FatalTransportError:
        raise
    except Exception as exc:
        raise FatalTransportError(collaborator, f"{type(exc).__name__}: {exc}") from exc
    finally:
        executor.shutdown(wait=False)


class ValidationOrchestrator:
    def __init__(
        self,
        embedder: BaseEmbedder,
        retriever: BaseClauseRetriever,
        generator: DecisionGenerator,
        audit_sink: Optional[BaseAuditSink] = None,
        evidence_extractor: Optional[BaseEvidenceExtractor] = None,
        image_analyzer: Optional[BaseImageAnalyzer] = None,
        citation_validator: Optional[CitationValidator] = None,
        contradiction_detector: Optional[ContradictionDetector] = None,
        rule_engine: Optional[BusinessRuleEngine] = None,
        embed_timeout: float = 30.0,
        retrieval_timeout: float = 30.0,
        inference_timeout: float = 60.0,
        evidence_timeout: float = 45.0,
    ) -> None:
        self.embedder = embedder
        self.retriever = retriever
        self.generator = generator
        self.audit_sink = audit_sink
        self.evidence_extractor = evidence_extractor
        self.image_analyzer = image_analyzer
        self.citation_validator = citation_validator or CitationValidator()
        self.contradiction_detector = contradiction_detector or ContradictionDetector()
        self.rule_engine = rule_engine or BusinessRuleEngine()
        self.embed_timeout = embed_timeout
        self.retrieval_timeout = retrieval_timeout
        self.inference_timeout = inference_timeout
        self.evidence_timeout = evidence_timeout

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def validate(self, request: ClaimRequest) -> ClaimDecision:
        return self.run(request).decision

    def validate_with_evidence(self, request: ClaimRequest, evidence_document_ids: Sequence[str]) -> ClaimDecision:
        return self.run_with_evidence(request, evidence_document_ids).decision

    def run(self, request: ClaimRequest) -> ValidationOutcome:
        return self._run(request, document_ids=None)

    def run_with_evidence(self, request: ClaimRequest, evidence_document_ids: Sequence[str]) -> ValidationOutcome:
        if self.evidence_extractor is None:
            raise ConfigurationError("No evidence extractor configured for evidence validation")
        return self._run(request, document_ids=list(evidence_document_ids))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, request: ClaimRequest, document_ids: Optional[List[str]]) -> ValidationOutcome:
        logger.info(
            "Validating claim policy=%s type=%s amount=%s evidence_docs=%d",
            request.policy_number,
            request.policy_type.value,
            request.claim_amount,
            len(document_ids or []),
        )
        clauses = self._retrieve_clauses(request)

        if not clauses:
            logger.warning("No clauses retrieved for policy type %s — manual review", request.policy_type.value)
            decision = no_clauses_decision()
            self._audit(request, decision, clauses, document_ids)
            return ValidationOutcome(decision=decision, requires_human_review=True)

        evidence_texts: Optional[List[str]] = None
        has_supporting_evidence = False
        if document_ids is not None:
            evidence_texts, has_supporting_evidence = self._extract_evidence(document_ids)

        draft = call_with_timeout(
            "inference", self.inference_timeout, self.generator.generate, request, clauses, evidence_texts
        )

        citation_result = self.citation_validator.validate(draft, clauses)
        contradictions = self.contradiction_detector.detect(request, draft, clauses, evidence_texts)
        self._log_diagnostics(request, citation_result, contradictions)

        decision = self.rule_engine.apply(draft, request, has_supporting_evidence, clauses)
        if decision != draft:
            logger.info("Business rules adjusted decision: %s → %s", draft.status.value, decision.status.value)

        self._audit(request, decision, clauses, document_ids)

        logger.info(
            "Claim validated: policy=%s status=%s confidence=%.2f",
            request.policy_number,
            decision.status.value,
            decision.confidence_score,
        )
        return ValidationOutcome(
            decision=decision,
            draft_decision=draft,
            clauses=clauses,
            citation_result=citation_result,
            contradictions=contradictions,
            requires_human_review=(
                not citation_result.is_valid or has_critical_contradictions(contradictions)
            ),
        )

    def _retrieve_clauses(self, request: ClaimRequest) -> List[PolicyClause]:
        vectors = call_with_timeout(
            "embedding", self.embed_timeout, self.embedder.embed, [request.claim_description]
        )
        if not vectors:
            raise FatalTransportError("embedding", "embedder returned no vector")
        return list(call_with_timeout(
            "retrieval", self.retrieval_timeout, self.retriever.retrieve, vectors[0], request.policy_type
        ))

    def _extract_one(self, document_id: str) -> str:
        text = self.evidence_extractor.extract(document_id)
        if self.image_analyzer is not None:
            try:
                findings = self.image_analyzer.analyze(document_id)
            except Exception as exc:
                logger.warning("Image analysis failed for document %s: %s", document_id, exc)
                findings = None
            if findings:
                text = f"{text}\n\nIMAGE ANALYSIS:\n{findings}"
        return text

    def _extract_evidence(self, document_ids: List[str]) -> Tuple[List[str], bool]:
        """
        Extract every document concurrently.

        Every document gets its own worker and all of them share one deadline,
        so a hung document cannot hold up or starve the others. A failed or
        slow document is replaced by a placeholder.
        Returns (texts in input order, whether any document succeeded).
        """
        if not document_ids:
            return [], False

        executor = ThreadPoolExecutor(
            max_workers=len(document_ids),
            thread_name_prefix="claimcheck-evidence",
        )
        futures = [executor.submit(self._extract_one, doc_id) for doc_id in document_ids]

        texts: List[str] = []
        extracted = 0
        try:
            done, _ = wait(futures, timeout=self.evidence_timeout)
            for doc_id, future in zip(document_ids, futures):
                if future not in done:
                    logger.warning("Evidence extraction timed out for document %s", doc_id)
                    texts.append(EXTRACTION_FAILED_PLACEHOLDER)
                    continue
                try:
                    texts.append(future.result())
                    extracted += 1
                except Exception as exc:
                    logger.warning("Evidence extraction failed for document %s: %s", doc_id, exc)
                    texts.append(EXTRACTION_FAILED_PLACEHOLDER)
        finally:
            # Slow extractions keep running in the background; nobody waits for them.
            executor.shutdown(wait=False)

        logger.info("Extracted %d of %d evidence document(s)", extracted, len(document_ids))
        return texts, extracted > 0

    def _log_diagnostics(self, request, citation_result, contradictions) -> None:
        for error in citation_result.errors:
            logger.warning("Citation error for policy=%s: %s", request.policy_number, error)
        for warning in citation_result.warnings:
            logger.info("Citation warning for policy=%s: %s", request.policy_number, warning)
        for line in get_contradiction_summary(contradictions):
            logger.warning("Contradiction for policy=%s: %s", request.policy_number, line)

    def _audit(
        self,
        request: ClaimRequest,
        decision: ClaimDecision,
        clauses: List[PolicyClause],
        document_ids: Optional[List[str]],
    ) -> None:
        if self.audit_sink is None:
            return
        try:
            self.audit_sink.save(request, decision, clauses, document_ids)
        except Exception:
            logger.exception("Audit write failed for policy=%s — decision still returned", request.policy_number)


def build_default_orchestrator(settings: Optional[Settings] = None) -> ValidationOrchestrator:
    """Wire the orchestrator with the default Groq / sentence-transformers / FAISS adapters."""
    from claimcheck.adapters.audit import JsonlAuditSink
    from claimcheck.adapters.embedder import SentenceTransformerEmbedder
    from claimcheck.adapters.evidence import FileEvidenceExtractor
    from claimcheck.adapters.vectorstore import FaissClauseIndex
    from claimcheck.llm import GroqClient

    settings = settings or get_settings()
    try:
        retriever = FaissClauseIndex.load(settings.POLICY_INDEX_DIR, top_k=settings.RETRIEVAL_TOP_K)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ConfigurationError(f"Cannot load policy index from {settings.POLICY_INDEX_DIR}: {exc}")

    return ValidationOrchestrator(
        embedder=SentenceTransformerEmbedder(settings.SENT_TRANSFORMER_MODEL),
        retriever=retriever,
        generator=DecisionGenerator(GroqClient(settings), max_tokens=settings.LLM_MAX_TOKENS),
        audit_sink=JsonlAuditSink(settings.AUDIT_DIR),
        evidence_extractor=FileEvidenceExtractor(settings.EVIDENCE_DIR),
        embed_timeout=settings.EMBED_TIMEOUT_SECONDS,
        retrieval_timeout=settings.RETRIEVAL_TIMEOUT_SECONDS,
        inference_timeout=settings.LLM_TIMEOUT_SECONDS,
        evidence_timeout=settings.EVIDENCE_TIMEOUT_SECONDS,
    )
