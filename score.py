"""
Orchestrates essay scoring by combining the rubric scorer, repetition detection and claim validation.

This module defines the main `score_essay` function, which takes an essay with its
externally produced dimension scores and returns an `EssayReport` holding the
composite score breakdown, the overlap with the student's prior essays and the
verification outcome of each claim.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from app_types import DimensionScoreEntry, EssayReport, RepetitionReport
from claim_validator import validate_claim
from repetition import check_repetition
from rubric_definitions import get_rubric
from rubric_scorer import score
from settings import app_logger, settings


def score_essay(
    essay: str,
    dimension_scores: Mapping[str, DimensionScoreEntry],
    rubric_version: str | None = None,
    prior_essays: Sequence[str] = (),
    claims: Sequence[str] = (),
    claim_sources: Sequence[str] = (),
) -> EssayReport:
    """
    Scores an essay and cross-checks it against the student's other material.

    This function computes:
    - The rubric composite with per-dimension breakdown, fired rules, flags and levers.
    - Repetition against each prior essay (skipped when there are none).
    - Verification of each claim against the claim sources.

    Args:
        essay (str): The essay text.
        dimension_scores (Mapping[str, DimensionScoreEntry]): Raw scores keyed by dimension id.
        rubric_version (str | None): Rubric to apply; defaults to `settings.rubric.default_version`.
        prior_essays (Sequence[str]): The student's other essays.
        claims (Sequence[str]): Assertions from the essay to verify.
        claim_sources (Sequence[str]): Texts the claims are checked against (activity descriptions, etc.).

    Returns:
        EssayReport: A Pydantic model instance containing all the computed results.

    Raises:
        RubricConfigurationError: If the rubric version is unknown or the score map does not match it.
    """
    rubric = get_rubric(rubric_version or settings.rubric.default_version)
    composite = score(dimension_scores, rubric, essay_text=essay)

    repetition = check_repetition(essay, prior_essays) if prior_essays else RepetitionReport()
    if repetition.has_repetition:
        app_logger.warning(f"Essay repeats material from {len(repetition.matches)} prior essay(s).")

    claim_results = {claim: validate_claim(claim, claim_sources) for claim in claims}
    unverified = [claim for claim, result in claim_results.items() if not result.verified]
    if unverified:
        app_logger.info(f"{len(unverified)} of {len(claim_results)} claim(s) could not be verified.")

    return EssayReport(composite=composite, repetition=repetition, claim_results=claim_results)
