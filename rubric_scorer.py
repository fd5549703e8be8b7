"""
Rubric scorer with interaction-rule support.

Turns externally produced per-dimension raw scores into an explainable
composite score:

1. Validate the score map against the rubric (missing or unknown dimensions are
   configuration errors, never silently treated as zero).
2. Clamp out-of-range raw scores to their dimension bounds, recording each event.
3. Run the interaction rules once, in ascending priority (declaration order
   breaks ties). Each rule sees the scores as left by the rules before it.
4. Weight the adjusted scores into a 0-100 composite whose per-dimension
   contributions add up exactly to the pre-clamp total.
5. Assign the impression label, raise diagnostic flags and rank improvement levers.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping

from app_types import (
    BoostEffect,
    CapEffect,
    ClampEvent,
    CompositeScoreResult,
    DimensionBreakdown,
    DimensionScoreEntry,
    FlagRule,
    InteractionRule,
    MultiplyEffect,
    ReduceEffect,
    RubricConfigurationError,
    RubricDefinition,
    RuleApplication,
)
from preprocess import normalize_text

logger = logging.getLogger(__name__)

COMPOSITE_MIN = 0.0
COMPOSITE_MAX = 100.0
CLAMP_TOLERANCE = 1e-9
MAX_LEVERS = 5
LEVER_MIN_GAP_SHARE = 0.2
LEVER_MAX_SCORE_SHARE = 0.8


def _check_score_map(dimension_scores: Mapping[str, DimensionScoreEntry], rubric: RubricDefinition) -> None:
    """
    Verify that the score map and the rubric cover exactly the same dimensions.

    Raises:
        RubricConfigurationError: Naming the first missing, unknown or mislabeled dimension id.
    """
    for dimension_id in rubric.dimension_ids:
        if dimension_id not in dimension_scores:
            msg = f"Missing score for dimension '{dimension_id}' required by rubric {rubric.version}"
            raise RubricConfigurationError(msg, dimension_id=dimension_id)
    known = set(rubric.dimension_ids)
    for key, entry in dimension_scores.items():
        if key not in known:
            msg = f"Unknown dimension '{key}' for rubric {rubric.version}"
            raise RubricConfigurationError(msg, dimension_id=key)
        if entry.dimension_id != key:
            msg = f"Score entry for '{entry.dimension_id}' is stored under key '{key}'"
            raise RubricConfigurationError(msg, dimension_id=key)


def _clamp_raw_scores(
    dimension_scores: Mapping[str, DimensionScoreEntry],
    rubric: RubricDefinition,
) -> tuple[dict[str, float], list[ClampEvent]]:
    working: dict[str, float] = {}
    events: list[ClampEvent] = []
    for dimension in rubric.dimensions:
        raw = dimension_scores[dimension.id].raw_score
        if math.isnan(raw):
            msg = f"Score for dimension '{dimension.id}' is NaN"
            raise RubricConfigurationError(msg, dimension_id=dimension.id)
        clamped = dimension.clamp(raw)
        if clamped != raw:
            logger.warning(
                "Raw score %s for '%s' is outside [%s, %s]; clamped to %s.",
                raw,
                dimension.id,
                dimension.min_score,
                dimension.max_score,
                clamped,
            )
            events.append(
                ClampEvent(
                    dimension_id=dimension.id,
                    raw_score=raw,
                    clamped_to=clamped,
                    min_score=dimension.min_score,
                    max_score=dimension.max_score,
                ),
            )
        working[dimension.id] = clamped
    return working, events


def _apply_effect(rule: InteractionRule, current: float, rubric: RubricDefinition) -> float:
    effect = rule.effect
    dimension = rubric.get_dimension(effect.dimension_id)
    if isinstance(effect, CapEffect):
        return min(current, effect.max_value)
    if isinstance(effect, BoostEffect):
        return dimension.clamp(current + effect.delta)
    if isinstance(effect, ReduceEffect):
        return dimension.clamp(current - effect.delta)
    if isinstance(effect, MultiplyEffect):
        return dimension.clamp(current * effect.factor)
    msg = f"Unsupported effect kind for rule '{rule.id}': {effect!r}"
    raise TypeError(msg)


def order_rules(rules: Iterable[InteractionRule]) -> list[InteractionRule]:
    """Return rules in evaluation order: ascending priority, declaration order on ties."""
    return sorted(rules, key=lambda rule: rule.priority)


def apply_interaction_rules(
    scores: Mapping[str, float],
    rubric: RubricDefinition,
) -> tuple[dict[str, float], list[RuleApplication]]:
    """
    Run the rubric's interaction rules once over a copy of `scores`.

    Rules are composed sequentially: a rule's conditions are evaluated against the
    scores as already adjusted by every earlier rule. Rules never re-trigger.

    Args:
        scores (Mapping[str, float]): Current score per dimension id; not modified.
        rubric (RubricDefinition): The rubric whose rules are applied.

    Raises:
        RubricConfigurationError: If a rule references a dimension absent from `scores`.

    Returns:
        tuple[dict[str, float], list[RuleApplication]]: Adjusted scores and the fired rules in order.
    """
    working = dict(scores)
    applications: list[RuleApplication] = []
    for rule in order_rules(rubric.interaction_rules):
        if not rule.matches(working):
            continue
        target = rule.effect.dimension_id
        if target not in working:
            msg = f"Rule '{rule.id}' targets dimension '{target}' which has no score"
            raise RubricConfigurationError(msg, dimension_id=target)
        before = working[target]
        after = _apply_effect(rule, before, rubric)
        working[target] = after
        applications.append(
            RuleApplication(
                rule_id=rule.id,
                dimension_id=target,
                kind=rule.effect.kind,
                before=before,
                after=after,
                reason=rule.reason or rule.description,
            ),
        )
        logger.debug("Rule '%s' fired on '%s': %s -> %s.", rule.id, target, before, after)
    return working, applications


def _flag_markers_present(flag: FlagRule, normalized_text: str) -> int:
    padded = f" {normalized_text} "
    found = {normalize_text(marker) for marker in flag.text_markers}
    return sum(1 for marker in found if marker and f" {marker} " in padded)


def detect_flags(scores: Mapping[str, float], rubric: RubricDefinition, essay_text: str | None = None) -> list[str]:
    """
    Evaluate the rubric's flag rules on adjusted scores.

    Flags that require text markers are only raised when `essay_text` is given and
    contains at least `min_marker_count` distinct markers as whole words or phrases.
    """
    normalized = normalize_text(essay_text) if essay_text else ""
    flags: list[str] = []
    for flag in rubric.flag_rules:
        if not all(condition.holds(scores) for condition in flag.conditions):
            continue
        if flag.text_markers:
            if not normalized or _flag_markers_present(flag, normalized) < flag.min_marker_count:
                continue
        flags.append(flag.id)
    return flags


def prioritized_levers(scores: Mapping[str, float], rubric: RubricDefinition) -> list[str]:
    """
    Rank the dimensions whose improvement would move the composite the most.

    A dimension qualifies when its gap to the maximum is at least 20% of its range and
    its score is below 80% of the maximum. Levers are ordered by `weight * gap`.
    """
    candidates: list[tuple[float, str]] = []
    for dimension in rubric.dimensions:
        current = scores[dimension.id]
        gap = dimension.max_score - current
        span = dimension.max_score - dimension.min_score
        if gap >= LEVER_MIN_GAP_SHARE * span and current < LEVER_MAX_SCORE_SHARE * dimension.max_score:
            weight_pct = round(dimension.weight / rubric.total_weight * 100)
            lever = (
                f"Improve {dimension.display_name} "
                f"(current: {current:g}/{dimension.max_score:g}, weight: {weight_pct}%)"
            )
            candidates.append((dimension.weight * gap, lever))
    candidates.sort(key=lambda item: item[0], reverse=True)
    return [lever for _, lever in candidates[:MAX_LEVERS]]


def build_assessment(final_score: float, rubric: RubricDefinition, flags: list[str]) -> str:
    """Compose the human-readable assessment for a composite score and its flags."""
    band = rubric.label_for(final_score)
    lines = [f"Composite: {final_score:.1f}/100 - {band.description or band.label}"]
    if flags:
        descriptions = {flag.id: flag.description for flag in rubric.flag_rules}
        lines.append("")
        lines.append("Critical Issues:")
        lines.extend(f"- {descriptions.get(flag) or flag}" for flag in flags)
    return "\n".join(lines)


def score(
    dimension_scores: Mapping[str, DimensionScoreEntry],
    rubric: RubricDefinition,
    essay_text: str | None = None,
) -> CompositeScoreResult:
    """
    Score a set of per-dimension raw scores against a rubric.

    Args:
        dimension_scores (Mapping[str, DimensionScoreEntry]): One entry per rubric dimension,
            keyed by dimension id.
        rubric (RubricDefinition): The rubric version to apply.
        essay_text (str | None): The scored text, used only by flags that look for text markers.

    Raises:
        RubricConfigurationError: If a dimension is missing, unknown, or stored under the wrong key.

    Returns:
        CompositeScoreResult: Final score, pre-clamp total, per-dimension breakdown, fired rules,
            clamp events, impression label, flags, levers and assessment.
    """
    _check_score_map(dimension_scores, rubric)
    clamped, clamp_events = _clamp_raw_scores(dimension_scores, rubric)
    adjusted, applications = apply_interaction_rules(clamped, rubric)

    total_weight = rubric.total_weight
    changed_dimensions = {a.dimension_id for a in applications if a.changed}
    per_dimension: dict[str, DimensionBreakdown] = {}
    for dimension in rubric.dimensions:
        entry = dimension_scores[dimension.id]
        value = adjusted[dimension.id]
        contribution = value / dimension.max_score * COMPOSITE_MAX * dimension.weight / total_weight
        per_dimension[dimension.id] = DimensionBreakdown(
            dimension_id=dimension.id,
            display_name=dimension.display_name,
            weight=dimension.weight,
            raw=entry.raw_score,
            clamped_raw=clamped[dimension.id],
            adjusted=value,
            contribution_to_total=contribution,
            evidence_snippets=entry.evidence_snippets,
            note=entry.note,
            modified_by_rules=dimension.id in changed_dimensions,
        )

    final_score_raw = sum(b.contribution_to_total for b in per_dimension.values())
    final_score = min(max(final_score_raw, COMPOSITE_MIN), COMPOSITE_MAX)
    was_clamped = (
        final_score_raw < COMPOSITE_MIN - CLAMP_TOLERANCE or final_score_raw > COMPOSITE_MAX + CLAMP_TOLERANCE
    )
    if was_clamped:
        logger.warning("Composite %.4f outside [0, 100]; clamped to %.1f.", final_score_raw, final_score)

    flags = detect_flags(adjusted, rubric, essay_text)
    band = rubric.label_for(final_score)

    logger.info(
        "Scored rubric %s: composite %.1f (%s), %d rule(s) fired, %d clamp event(s).",
        rubric.version,
        final_score,
        band.label,
        len(applications),
        len(clamp_events),
    )

    return CompositeScoreResult(
        rubric_version=rubric.version,
        final_score=final_score,
        final_score_raw=final_score_raw,
        was_clamped=was_clamped,
        per_dimension=per_dimension,
        applied_rules=[a.rule_id for a in applications],
        rule_applications=applications,
        clamp_events=clamp_events,
        impression_label=band.label,
        flags=flags,
        prioritized_levers=prioritized_levers(adjusted, rubric),
        assessment=build_assessment(final_score, rubric, flags),
    )


def validate_dimension_scores(entries: Iterable[DimensionScoreEntry], rubric: RubricDefinition) -> list[str]:
    """
    List problems with a batch of score entries without raising.

    Reports dimensions the rubric needs but the batch lacks, entries for unknown
    dimensions, and raw scores outside their dimension's bounds.

    Returns:
        list[str]: Problem descriptions; empty when the batch can be scored without clamping.
    """
    errors: list[str] = []
    provided = {entry.dimension_id: entry for entry in entries}
    missing = [d for d in rubric.dimension_ids if d not in provided]
    if missing:
        errors.append(f"Missing dimensions: {', '.join(missing)}")
    known = set(rubric.dimension_ids)
    for dimension_id, entry in provided.items():
        if dimension_id not in known:
            errors.append(f"Unknown dimension: {dimension_id}")
            continue
        dimension = rubric.get_dimension(dimension_id)
        if not (dimension.min_score <= entry.raw_score <= dimension.max_score):
            errors.append(
                f"{dimension_id}: score {entry.raw_score:g} out of range "
                f"[{dimension.min_score:g}, {dimension.max_score:g}]",
            )
    return errors


def format_scoring_summary(result: CompositeScoreResult, rubric: RubricDefinition) -> str:
    """Render a plain-text summary of a scoring result for logs and quick inspection."""
    lines = [
        f"RUBRIC SCORING ({result.rubric_version})",
        f"Composite: {result.final_score:.1f}/100",
        f"Impression: {result.impression_label}",
        "",
        "DIMENSION SCORES:",
    ]
    for dimension in rubric.dimensions:
        breakdown = result.per_dimension[dimension.id]
        line = (
            f"  {dimension.display_name}: {breakdown.adjusted:g}/{dimension.max_score:g} "
            f"(+{breakdown.contribution_to_total:.2f})"
        )
        if breakdown.modified_by_rules:
            line += f" [Modified: {breakdown.clamped_raw:g} -> {breakdown.adjusted:g}]"
        lines.append(line)

    if result.applied_rules:
        lines.extend(["", f"RULES APPLIED ({len(result.applied_rules)}):"])
        lines.extend(f"  - {rule_id}" for rule_id in result.applied_rules)

    if result.flags:
        lines.extend(["", f"FLAGS ({len(result.flags)}):"])
        lines.extend(f"  - {flag}" for flag in result.flags)

    if result.prioritized_levers:
        lines.extend(["", "TOP IMPROVEMENT LEVERS:"])
        lines.extend(f"  {i}. {lever}" for i, lever in enumerate(result.prioritized_levers, start=1))

    lines.extend(["", "ASSESSMENT:"])
    lines.extend(f"  {line}" for line in result.assessment.split("\n"))
    return "\n".join(lines)
