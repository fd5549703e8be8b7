"""
Detects content an essay repeats from a student's other essays.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app_types import SEVERITY_ORDER, RepetitionMatch, RepetitionReport, Severity
from config import get_settings
from text_analysis import extract_overlap, similarity

logger = logging.getLogger(__name__)

MAX_PHRASES_PER_MATCH = 5

_SUGGESTIONS: dict[str, str] = {
    "critical": "Essay {n} tells nearly the same story. Pick a different experience for one of them.",
    "major": "Essay {n} covers much of the same ground. Shift the focus to a different side of the experience.",
    "minor": "Essay {n} shares some material. Make sure each essay reveals something new about you.",
}


def check_repetition(
    current_text: str,
    prior_texts: Sequence[str],
    min_severity: Severity | None = None,
) -> RepetitionReport:
    """
    Compare an essay with the student's prior essays.

    Args:
        current_text (str): The essay being checked.
        prior_texts (Sequence[str]): The student's other essays; match indices refer to this order.
        min_severity (Severity | None): Lowest severity worth reporting; defaults to settings.

    Returns:
        RepetitionReport: Matches at or above `min_severity`, highest score first, with the shared
            phrases (longest first) and one suggestion per match.
    """
    threshold = min_severity or get_settings().repetition.min_severity
    floor = SEVERITY_ORDER[threshold]

    matches: list[RepetitionMatch] = []
    for index, prior in enumerate(prior_texts):
        result = similarity(current_text, prior)
        if result.severity == "none" or SEVERITY_ORDER[result.severity] < floor:
            continue
        phrases = extract_overlap(current_text, prior)[:MAX_PHRASES_PER_MATCH]
        matches.append(
            RepetitionMatch(index=index, score=result.score, severity=result.severity, overlapping_phrases=phrases)
        )

    matches.sort(key=lambda match: match.score, reverse=True)
    suggestions = [_SUGGESTIONS[match.severity].format(n=match.index + 1) for match in matches]
    if matches:
        logger.info("Essay overlaps %d of %d prior essays.", len(matches), len(prior_texts))

    return RepetitionReport(has_repetition=bool(matches), matches=matches, suggestions=suggestions)
