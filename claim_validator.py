"""
Claim validation utilities.

Cross-checks assertions made in an essay against source material:
- `validate_claim` matches a claim against arbitrary source texts with the
  similarity engine's fuzzy containment primitive.
- `validate_typed_claim` checks leadership, activity and achievement claims
  against a student's recorded activities and honors, and explains the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Literal

from app_types import ActivityRecord, ClaimValidationResult, TypedClaimResult
from config import get_settings
from text_analysis import best_overlap, fuzzy_contains

logger = logging.getLogger(__name__)

ClaimType = Literal["leadership", "activity", "achievement"]

LEADERSHIP_KEYWORDS = ("president", "captain", "leader", "founder", "chair", "director", "head")
ACTIVITY_KINDS = frozenset({"extracurricular", "work", "volunteer", "project"})
HONOR_KINDS = frozenset({"honor", "recognition"})

# Thresholds for matching a claim against a single record.
CLAIM_IN_EVIDENCE_THRESHOLD = 0.3
EVIDENCE_IN_CLAIM_THRESHOLD = 0.6
RECORD_MATCH_THRESHOLD = 0.5


def validate_claim(
    claim: str,
    source_texts: Sequence[str],
    threshold: float | None = None,
) -> ClaimValidationResult:
    """
    Check whether a claim is supported by any of the source texts.

    Each source gets a confidence of 1.0 when it contains the normalized claim verbatim,
    otherwise the share of claim words it contains. The source with the highest
    confidence wins; the earliest source wins ties.

    Args:
        claim (str): The assertion to verify.
        source_texts (Sequence[str]): Candidate supporting texts, in caller order.
        threshold (float | None): Minimum confidence to count as verified; defaults to settings.

    Returns:
        ClaimValidationResult: `verified`, the index of the best source (None without sources)
            and its confidence.
    """
    limit = get_settings().claims.threshold if threshold is None else threshold
    if not source_texts:
        return ClaimValidationResult(verified=False, best_match_index=None, confidence=0.0)

    best_index, confidence = best_overlap(claim, source_texts)
    verified = confidence >= limit and confidence > 0.0
    logger.debug("Claim %r: best source %s with confidence %.2f (verified=%s).", claim[:50], best_index,
                 confidence, verified)
    return ClaimValidationResult(verified=verified, best_match_index=best_index, confidence=confidence)


def _no_records(subject: str) -> TypedClaimResult:
    return TypedClaimResult(
        is_valid=False,
        confidence=0.0,
        evidence_found=[],
        suggestion=f"Add your {subject} to validate this claim",
    )


def validate_leadership_claim(claim: str, records: Iterable[ActivityRecord] | None) -> TypedClaimResult:
    """Validate a leadership claim against records flagged as leadership roles."""
    if records is None:
        return _no_records("extracurricular activities")

    evidence = [f"{r.role or 'Member'} of {r.name}" for r in records if r.leadership_role]

    claim_lower = claim.lower()
    if not any(keyword in claim_lower for keyword in LEADERSHIP_KEYWORDS):
        return TypedClaimResult(
            is_valid=True,
            confidence=0.5,
            evidence_found=evidence,
            suggestion="Claim is vague - be more specific about your leadership role",
        )

    if not evidence:
        return TypedClaimResult(
            is_valid=False,
            confidence=0.0,
            evidence_found=[],
            suggestion=(
                "You claim leadership experience, but your activity list shows no leadership roles. "
                "Either add your leadership roles to your activity list, or revise this claim."
            ),
        )

    matches = any(
        fuzzy_contains(claim, item, CLAIM_IN_EVIDENCE_THRESHOLD)
        or fuzzy_contains(item, claim, EVIDENCE_IN_CLAIM_THRESHOLD)
        for item in evidence
    )
    if not matches:
        return TypedClaimResult(
            is_valid=False,
            confidence=0.3,
            evidence_found=evidence,
            suggestion=(
                f"Your claimed role doesn't match your activity list. You have: {', '.join(evidence)}. "
                "Update your claim to match one of these roles."
            ),
        )

    return TypedClaimResult(
        is_valid=True,
        confidence=0.9,
        evidence_found=evidence,
        suggestion=f"Validated! You have {len(evidence)} leadership role(s) on record.",
    )


def validate_activity_claim(claim: str, records: Iterable[ActivityRecord] | None) -> TypedClaimResult:
    """Validate that a claimed activity appears among extracurricular, work, volunteer or project records."""
    if records is None:
        return _no_records("activities")

    evidence = [
        r.name or "Unnamed activity"
        for r in records
        if r.kind in ACTIVITY_KINDS and fuzzy_contains(claim, r.text, RECORD_MATCH_THRESHOLD)
    ]
    if not evidence:
        return TypedClaimResult(
            is_valid=False,
            confidence=0.0,
            evidence_found=[],
            suggestion="This activity is not in your activity list. Add it to your profile or choose a different story.",
        )
    noun = "activities" if len(evidence) > 1 else "activity"
    return TypedClaimResult(
        is_valid=True,
        confidence=0.8,
        evidence_found=evidence,
        suggestion=f"Found {len(evidence)} matching {noun}",
    )


def validate_achievement_claim(claim: str, records: Iterable[ActivityRecord] | None) -> TypedClaimResult:
    """Validate a claimed honor or award against honor and recognition records."""
    if records is None:
        return _no_records("achievements")

    evidence = [
        r.name or ("Academic honor" if r.kind == "honor" else "Recognition")
        for r in records
        if r.kind in HONOR_KINDS and fuzzy_contains(claim, f"{r.name} {r.description}", RECORD_MATCH_THRESHOLD)
    ]
    if not evidence:
        return TypedClaimResult(
            is_valid=False,
            confidence=0.0,
            evidence_found=[],
            suggestion=(
                "This achievement is not in your honors/awards list. Add it to your profile or provide more context."
            ),
        )
    return TypedClaimResult(
        is_valid=True,
        confidence=0.85,
        evidence_found=evidence,
        suggestion=f"Validated against {len(evidence)} honor(s)/award(s)",
    )


_TYPED_VALIDATORS = {
    "leadership": validate_leadership_claim,
    "activity": validate_activity_claim,
    "achievement": validate_achievement_claim,
}


def validate_typed_claim(
    claim: str,
    claim_type: ClaimType,
    records: Iterable[ActivityRecord] | None,
) -> TypedClaimResult:
    """
    Route a claim to the validator for its type.

    Args:
        claim (str): The assertion from the essay.
        claim_type (ClaimType): "leadership", "activity" or "achievement".
        records (Iterable[ActivityRecord] | None): The student's records; None when none are on file.

    Returns:
        TypedClaimResult: Validity, confidence, supporting records and a suggestion for the writer.
            Unknown claim types yield an invalid result rather than an error.
    """
    validator = _TYPED_VALIDATORS.get(claim_type)
    if validator is None:
        logger.warning("Unknown claim type '%s'.", claim_type)
        return TypedClaimResult(is_valid=False, confidence=0.0, evidence_found=[], suggestion="Unknown claim type")
    return validator(claim, None if records is None else list(records))
