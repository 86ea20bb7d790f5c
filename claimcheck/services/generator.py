"""
Draft decision step: claim + retrieved clauses (+ evidence) → ClaimDecision.

Sends the grounded prompt to the inference service and parses the JSON reply.
A reply that cannot be parsed becomes the fixed Manual Review fallback; only a
transport failure from the inference service escapes this module.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError

from claimcheck.collaborators import BaseInferenceClient
from claimcheck.errors import FatalTransportError
from claimcheck.prompts.decision_prompt import (
    SYSTEM_INSTRUCTION,
    SYSTEM_INSTRUCTION_WITH_EVIDENCE,
    build_decision_prompt,
)
from claimcheck.schemas import ClaimDecision, ClaimRequest, DecisionStatus, PolicyClause

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION = "Failed to parse model response"

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

_STATUS_SYNONYMS = {
    "covered": DecisionStatus.COVERED,
    "notcovered": DecisionStatus.NOT_COVERED,
    "denied": DecisionStatus.NOT_COVERED,
    "manualreview": DecisionStatus.MANUAL_REVIEW,
    "needsmanualreview": DecisionStatus.MANUAL_REVIEW,
}

_WIRE_KEYS = {
    "status": "status",
    "explanation": "explanation",
    "clausereferences": "clauseReferences",
    "requireddocuments": "requiredDocuments",
    "confidencescore": "confidenceScore",
}


@dataclass(frozen=True)
class DecisionParseFailure:
    reason: str
    raw: str


def fallback_decision() -> ClaimDecision:
    return ClaimDecision(
        status=DecisionStatus.MANUAL_REVIEW,
        explanation=FALLBACK_EXPLANATION,
        clause_references=[],
        required_documents=[],
        confidence_score=0.0,
    )


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).strip()


def normalize_status(value: Any) -> Optional[DecisionStatus]:
    if not isinstance(value, str):
        return None
    key = re.sub(r"[\s_\-]", "", value).lower()
    return _STATUS_SYNONYMS.get(key)


def parse_decision(raw: Optional[str]) -> Union[ClaimDecision, DecisionParseFailure]:
    """Decode a model reply into a ClaimDecision, or describe why it could not be decoded."""
    if not raw or not raw.strip():
        return DecisionParseFailure("empty response", raw or "")

    cleaned = strip_code_fences(raw)
    start = cleaned.find("{")
    end = cleaned.rfind("}") + 1
    if start < 0 or end <= start:
        return DecisionParseFailure("no JSON object found", raw)

    try:
        payload = json.loads(cleaned[start:end])
    except (json.JSONDecodeError, RecursionError) as exc:
        return DecisionParseFailure(f"invalid JSON: {exc}", raw)

    if not isinstance(payload, dict):
        return DecisionParseFailure("JSON root is not an object", raw)

    # Models are inconsistent about key casing ("Status" vs "status").
    fields: dict[str, Any] = {}
    for key, value in payload.items():
        wire_key = _WIRE_KEYS.get(str(key).replace("_", "").lower())
        if wire_key is not None:
            fields[wire_key] = value

    status = normalize_status(fields.get("status"))
    if status is None:
        return DecisionParseFailure(f"unknown status {fields.get('status')!r}", raw)
    fields["status"] = status

    for list_key in ("clauseReferences", "requiredDocuments"):
        if fields.get(list_key) is None:
            fields[list_key] = []
    if fields.get("explanation") is None:
        fields["explanation"] = ""

    try:
        return ClaimDecision.model_validate(fields)
    except ValidationError as exc:
        return DecisionParseFailure(f"schema mismatch: {exc.error_count()} error(s)", raw)


class DecisionGenerator:
    def __init__(
        self,
        client: BaseInferenceClient,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> None:
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate(
        self,
        request: ClaimRequest,
        clauses: Sequence[PolicyClause],
        evidence_texts: Optional[Sequence[str]] = None,
    ) -> ClaimDecision:
        """
        Ask the model for a draft decision grounded in the given clauses.

        Returns the fallback Manual Review decision when the reply cannot be parsed.
        Any inference client failure surfaces as FatalTransportError.
        """
        system_instruction = SYSTEM_INSTRUCTION_WITH_EVIDENCE if evidence_texts else SYSTEM_INSTRUCTION
        prompt = build_decision_prompt(request, clauses, evidence_texts)

        logger.info(
            "Generating decision for policy=%s type=%s with %d clause(s), %d evidence document(s)",
            request.policy_number,
            request.policy_type.value,
            len(clauses),
            len(evidence_texts or []),
        )
        try:
            raw = self.client.generate(
                system_instruction,
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except FatalTransportError:
            raise
        except Exception as exc:
            logger.error("Inference client failed (%s): %s", type(exc).__name__, exc)
            raise FatalTransportError("inference", f"{type(exc).__name__}: {exc}") from exc

        parsed = parse_decision(raw)
        if isinstance(parsed, DecisionParseFailure):
            logger.warning("Model response unusable (%s) — falling back to Manual Review", parsed.reason)
            logger.debug("Unparsable model response: %s", parsed.raw)
            return fallback_decision()

        logger.info(
            "Draft decision: status=%s confidence=%.2f citations=%d",
            parsed.status.value,
            parsed.confidence_score,
            len(parsed.clause_references),
        )
        return parsed
