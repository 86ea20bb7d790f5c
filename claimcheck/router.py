"""
API endpoints for claim validation.

POST /api/claims/validate               — claim → decision
POST /api/claims/validate-with-evidence — claim + evidence document IDs → decision
GET  /api/claims/health                 — liveness
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Query

from claimcheck.config import get_settings
from claimcheck.errors import ConfigurationError, FatalTransportError
from claimcheck.schemas import (
    ClaimDecision,
    ClaimRequest,
    EvidenceValidationRequest,
    ValidationOutcome,
)
from claimcheck.security import mask_policy_number, sanitize_input, validate_claim_description
from claimcheck.services.orchestrator import ValidationOrchestrator, build_default_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["Claims"])


@lru_cache(maxsize=1)
def get_orchestrator() -> ValidationOrchestrator:
    return build_default_orchestrator()


def _screen(request: ClaimRequest) -> ClaimRequest:
    """Reject descriptions that look like prompt injection; return a sanitised copy otherwise."""
    result = validate_claim_description(
        request.claim_description, max_chars=get_settings().MAX_DESCRIPTION_CHARS
    )
    if not result.is_valid:
        logger.warning("Rejected claim for policy=%s: %s", mask_policy_number(request.policy_number), result.errors)
        raise HTTPException(
            status_code=400,
            detail={"message": "Claim description rejected", "errors": result.errors},
        )
    return request.model_copy(update={"claim_description": sanitize_input(request.claim_description)})


def orchestrator_dependency() -> ValidationOrchestrator:
    try:
        return get_orchestrator()
    except ConfigurationError as exc:
        logger.error("Claim validation unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/health")
def health() -> dict:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/validate", response_model=Union[ValidationOutcome, ClaimDecision])
def validate_claim(
    request: ClaimRequest,
    include_debug: bool = Query(False, description="Return retrieved clauses and diagnostics with the decision"),
    orchestrator: ValidationOrchestrator = Depends(orchestrator_dependency),
):
    """
    Validate a claim against retrieved policy clauses.

    Returns the final decision. Set include_debug=true to receive the draft
    decision, citation check, and contradictions alongside it.
    """
    request = _screen(request)
    try:
        outcome = orchestrator.run(request)
    except FatalTransportError as exc:
        logger.exception("Validation failed for policy=%s", request.policy_number)
        raise HTTPException(status_code=502, detail=str(exc))
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return outcome if include_debug else outcome.decision


@router.post("/validate-with-evidence", response_model=Union[ValidationOutcome, ClaimDecision])
def validate_claim_with_evidence(
    body: EvidenceValidationRequest,
    include_debug: bool = Query(False, description="Return retrieved clauses and diagnostics with the decision"),
    orchestrator: ValidationOrchestrator = Depends(orchestrator_dependency),
):
    """
    Validate a claim together with its supporting documents.

    Each document is extracted independently; an unreadable document is
    replaced by a placeholder rather than failing the request.
    """
    request = _screen(body.claim)
    try:
        outcome = orchestrator.run_with_evidence(request, body.document_ids)
    except FatalTransportError as exc:
        logger.exception("Evidence validation failed for policy=%s", request.policy_number)
        raise HTTPException(status_code=502, detail=str(exc))
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return outcome if include_debug else outcome.decision
