"""Defines Pydantic data models used throughout the rubric scoring engine.

This module centralizes the definitions of data structures, ensuring type safety
and clear contracts between different parts of the application. Models include:
- Similarity results (`SimilarityResult`) produced by the text similarity engine.
- Rubric configuration (`DimensionDefinition`, `InteractionRule` and its effect
  variants, `ImpressionBand`, `FlagRule`, `RubricDefinition`). These are frozen
  value objects: a rubric version is never edited, it is superseded.
- Scorer input and output (`DimensionScoreEntry`, `CompositeScoreResult` and
  the breakdown records it carries).
- Claim validation, repetition detection and the aggregated `EssayReport`.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Severity = Literal["none", "minor", "major", "critical"]
SEVERITY_ORDER: dict[str, int] = {"none": 0, "minor": 1, "major": 2, "critical": 3}

ComparisonOperator = Literal["<", "<=", ">", ">=", "=="]
_OPERATORS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}


class RubricConfigurationError(ValueError):
    """Raised when a rubric and the scores given to it do not agree on dimension ids."""

    def __init__(self, message: str, dimension_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.dimension_id = dimension_id


# --- Similarity ---


class SimilarityResult(BaseModel):
    """Result of comparing two text fragments."""

    score: float = Field(..., ge=0.0, le=1.0, description="Similarity from 0 (unrelated) to 1 (identical).")
    severity: Severity = Field(..., description="Step-function bucket of the score.")
    method: Literal["jaccard", "tfidf_cosine"] = Field(
        ..., description="Which comparison path produced the score (short-text overlap or TF-IDF cosine).",
    )


# --- Rubric configuration ---


class ScoreAnchor(BaseModel):
    """One example description pinned to a score value on a dimension's scale."""

    model_config = ConfigDict(frozen=True)

    score: float
    description: str


class DimensionDefinition(BaseModel):
    """A single weighted axis of evaluation with bounded scores."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable dimension identifier used as the score-map key.")
    display_name: str = Field(..., description="Human readable name.")
    definition: str = Field(default="", description="What the dimension measures.")
    weight: float = Field(..., gt=0.0, description="Relative weight in the composite.")
    min_score: float = Field(default=0.0, description="Lowest valid score.")
    max_score: float = Field(default=10.0, description="Highest valid score.")
    score_anchors: tuple[ScoreAnchor, ...] = Field(default=(), description="Anchors ordered by score.")

    @model_validator(mode="after")
    def check_bounds(self) -> DimensionDefinition:
        """Validate that the score range is non-empty and anchors sit inside it in ascending order."""
        if self.min_score >= self.max_score:
            msg = f"Dimension '{self.id}': min_score ({self.min_score}) must be below max_score ({self.max_score})"
            raise ValueError(msg)
        if self.max_score <= 0:
            msg = f"Dimension '{self.id}': max_score must be positive to scale into the composite"
            raise ValueError(msg)
        previous = None
        for anchor in self.score_anchors:
            if not (self.min_score <= anchor.score <= self.max_score):
                msg = f"Dimension '{self.id}': anchor score {anchor.score} outside [{self.min_score}, {self.max_score}]"
                raise ValueError(msg)
            if previous is not None and anchor.score <= previous:
                msg = f"Dimension '{self.id}': anchors must be in strictly ascending score order"
                raise ValueError(msg)
            previous = anchor.score
        return self

    def clamp(self, value: float) -> float:
        """Clamp a value into this dimension's score range."""
        return min(max(value, self.min_score), self.max_score)


class ThresholdCondition(BaseModel):
    """Compares one dimension's current score against a fixed threshold."""

    model_config = ConfigDict(frozen=True)

    dimension_id: str
    operator: ComparisonOperator
    threshold: float

    def holds(self, scores: Mapping[str, float]) -> bool:
        """
        Evaluate the comparison against a dimension-score map.

        Raises:
            RubricConfigurationError: If the dimension is absent from `scores`.
        """
        if self.dimension_id not in scores:
            msg = f"Condition references dimension '{self.dimension_id}' which has no score"
            raise RubricConfigurationError(msg, dimension_id=self.dimension_id)
        return _OPERATORS[self.operator](scores[self.dimension_id], self.threshold)


class CapEffect(BaseModel):
    """Lower a dimension to at most `max_value`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["cap"] = "cap"
    dimension_id: str
    max_value: float


class BoostEffect(BaseModel):
    """Add `delta` to a dimension, then clamp to its bounds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["boost"] = "boost"
    dimension_id: str
    delta: float = Field(..., ge=0.0)


class ReduceEffect(BaseModel):
    """Subtract `delta` from a dimension, then clamp to its bounds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reduce"] = "reduce"
    dimension_id: str
    delta: float = Field(..., ge=0.0)


class MultiplyEffect(BaseModel):
    """Multiply a dimension by `factor`, then clamp to its bounds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["multiply"] = "multiply"
    dimension_id: str
    factor: float = Field(..., ge=0.0)


RuleEffect = Annotated[
    Union[CapEffect, BoostEffect, ReduceEffect, MultiplyEffect],
    Field(discriminator="kind"),
]


class InteractionRule(BaseModel):
    """
    A conditional adjustment of one dimension based on the current state of others.

    The condition is the conjunction of `conditions`; a rule with no conditions always fires.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    priority: int = Field(..., description="Rules run in ascending priority; ties keep declaration order.")
    conditions: tuple[ThresholdCondition, ...] = ()
    effect: RuleEffect
    reason: str = Field(default="", description="Explanation shown when the rule changes a score.")

    def referenced_dimensions(self) -> set[str]:
        """Return every dimension id this rule reads or writes."""
        return {c.dimension_id for c in self.conditions} | {self.effect.dimension_id}

    def matches(self, scores: Mapping[str, float]) -> bool:
        """Return True if every condition holds on `scores`."""
        return all(condition.holds(scores) for condition in self.conditions)


class ImpressionBand(BaseModel):
    """A qualitative label for composite scores at or above `min_score`."""

    model_config = ConfigDict(frozen=True)

    label: str
    min_score: float
    description: str = ""


class FlagRule(BaseModel):
    """
    A diagnostic flag raised from the adjusted scores, optionally gated on text markers.

    When `text_markers` is non-empty the flag also needs at least `min_marker_count`
    distinct markers present in the essay text.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    conditions: tuple[ThresholdCondition, ...] = ()
    text_markers: tuple[str, ...] = ()
    min_marker_count: int = Field(default=0, ge=0)


class RubricDefinition(BaseModel):
    """
    A versioned, immutable rubric: weighted dimensions, interaction rules, bands and flags.

    Construction validates the internal consistency of the rubric so that a broken
    rubric fails when it is defined rather than when the first essay is scored.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    name: str = ""
    description: str = ""
    dimensions: tuple[DimensionDefinition, ...]
    interaction_rules: tuple[InteractionRule, ...] = ()
    impression_bands: tuple[ImpressionBand, ...]
    flag_rules: tuple[FlagRule, ...] = ()

    @model_validator(mode="after")
    def check_consistency(self) -> RubricDefinition:
        """
        Validate dimension and rule uniqueness, references and band coverage.

        Violations surface as pydantic `ValidationError` (a `ValueError`) at construction;
        `RubricConfigurationError` is reserved for mismatches found while scoring.
        """
        if not self.dimensions:
            msg = f"Rubric {self.version} declares no dimensions"
            raise ValueError(msg)
        seen: set[str] = set()
        for dimension in self.dimensions:
            if dimension.id in seen:
                msg = f"Rubric {self.version}: duplicate dimension id '{dimension.id}'"
                raise ValueError(msg)
            seen.add(dimension.id)

        rule_ids: set[str] = set()
        for rule in self.interaction_rules:
            if rule.id in rule_ids:
                msg = f"Rubric {self.version}: duplicate rule id '{rule.id}'"
                raise ValueError(msg)
            rule_ids.add(rule.id)
            unknown = sorted(rule.referenced_dimensions() - seen)
            if unknown:
                msg = f"Rubric {self.version}: rule '{rule.id}' references unknown dimension '{unknown[0]}'"
                raise ValueError(msg)

        for flag in self.flag_rules:
            unknown = sorted({c.dimension_id for c in flag.conditions} - seen)
            if unknown:
                msg = f"Rubric {self.version}: flag '{flag.id}' references unknown dimension '{unknown[0]}'"
                raise ValueError(msg)

        if not self.impression_bands:
            msg = f"Rubric {self.version} declares no impression bands"
            raise ValueError(msg)
        mins = [band.min_score for band in self.impression_bands]
        if any(later >= earlier for earlier, later in zip(mins, mins[1:])):
            msg = f"Rubric {self.version}: impression bands must be ordered by strictly descending min_score"
            raise ValueError(msg)
        if mins[-1] > 0:
            msg = f"Rubric {self.version}: lowest impression band must start at or below 0"
            raise ValueError(msg)
        return self

    @property
    def dimension_ids(self) -> list[str]:
        """Dimension ids in declaration order."""
        return [d.id for d in self.dimensions]

    @property
    def total_weight(self) -> float:
        """Sum of all dimension weights."""
        return sum(d.weight for d in self.dimensions)

    def get_dimension(self, dimension_id: str) -> DimensionDefinition:
        """
        Look up a dimension definition by id.

        Raises:
            RubricConfigurationError: If the rubric has no such dimension.
        """
        for dimension in self.dimensions:
            if dimension.id == dimension_id:
                return dimension
        msg = f"Rubric {self.version} has no dimension '{dimension_id}'"
        raise RubricConfigurationError(msg, dimension_id=dimension_id)

    def label_for(self, composite: float) -> ImpressionBand:
        """Return the impression band containing a composite score."""
        for band in self.impression_bands:
            if composite >= band.min_score:
                return band
        return self.impression_bands[-1]


# --- Scorer input and output ---


class DimensionScoreEntry(BaseModel):
    """A raw score for one dimension as produced by an external scorer (model or detector)."""

    model_config = ConfigDict(frozen=True)

    dimension_id: str = Field(..., min_length=1)
    raw_score: float
    evidence_snippets: tuple[str, ...] = ()
    note: str = ""


class ClampEvent(BaseModel):
    """Records that a raw score was outside its dimension's bounds and was clamped."""

    dimension_id: str
    raw_score: float
    clamped_to: float
    min_score: float
    max_score: float


class RuleApplication(BaseModel):
    """One fired interaction rule and the value change it produced."""

    rule_id: str
    dimension_id: str
    kind: Literal["cap", "boost", "reduce", "multiply"]
    before: float
    after: float
    reason: str = ""

    @property
    def changed(self) -> bool:
        """True if the rule moved the score."""
        return self.before != self.after


class DimensionBreakdown(BaseModel):
    """How one dimension contributed to the composite score."""

    dimension_id: str
    display_name: str
    weight: float
    raw: float = Field(..., description="Score as received from the external scorer.")
    clamped_raw: float = Field(..., description="Raw score after clamping to the dimension bounds.")
    adjusted: float = Field(..., description="Score after interaction rules.")
    contribution_to_total: float = Field(..., description="Points this dimension adds to the 0-100 composite.")
    evidence_snippets: tuple[str, ...] = ()
    note: str = ""
    modified_by_rules: bool = False


class CompositeScoreResult(BaseModel):
    """
    The explainable output of scoring one set of dimension scores against a rubric.

    `final_score_raw` is the exact sum of `contribution_to_total` over `per_dimension`.
    `final_score` is that sum clamped to [0, 100]; `was_clamped` tells whether clamping changed it.
    """

    rubric_version: str
    final_score: float = Field(..., ge=0.0, le=100.0)
    final_score_raw: float
    was_clamped: bool = False
    per_dimension: dict[str, DimensionBreakdown]
    applied_rules: list[str] = Field(default_factory=list, description="Fired rule ids in firing order.")
    rule_applications: list[RuleApplication] = Field(default_factory=list)
    clamp_events: list[ClampEvent] = Field(default_factory=list)
    impression_label: str
    flags: list[str] = Field(default_factory=list)
    prioritized_levers: list[str] = Field(default_factory=list)
    assessment: str = ""

    @property
    def contribution_sum(self) -> float:
        """Sum of all per-dimension contributions (equals `final_score_raw`)."""
        return sum(b.contribution_to_total for b in self.per_dimension.values())


# --- Claims ---


class ClaimValidationResult(BaseModel):
    """Outcome of checking a claim against a list of source texts."""

    verified: bool
    best_match_index: Optional[int] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


ActivityKind = Literal["extracurricular", "work", "volunteer", "project", "honor", "recognition"]


class ActivityRecord(BaseModel):
    """A student's recorded activity or honor, used as evidence for typed claims."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    role: str = ""
    description: str = ""
    leadership_role: bool = False
    kind: ActivityKind = "extracurricular"

    @property
    def text(self) -> str:
        """Searchable text of the record."""
        return f"{self.name} {self.description} {self.role}".strip()


class TypedClaimResult(BaseModel):
    """Outcome of validating a leadership, activity or achievement claim against activity records."""

    is_valid: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    evidence_found: list[str] = Field(default_factory=list)
    suggestion: str = ""


# --- Repetition ---


class RepetitionMatch(BaseModel):
    """A prior essay that overlaps the current one."""

    index: int = Field(..., ge=0, description="Position of the prior essay in the caller's list.")
    score: float = Field(..., ge=0.0, le=1.0)
    severity: Severity
    overlapping_phrases: list[str] = Field(default_factory=list)


class RepetitionReport(BaseModel):
    """Result of checking one essay against a student's other essays."""

    has_repetition: bool = False
    matches: list[RepetitionMatch] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


# --- Aggregate ---


class EssayReport(BaseModel):
    """The main data model aggregating everything computed for one essay."""

    composite: CompositeScoreResult = Field(..., description="Rubric composite score with full breakdown.")
    repetition: RepetitionReport = Field(
        default_factory=RepetitionReport, description="Overlap with the student's prior essays.",
    )
    claim_results: dict[str, ClaimValidationResult] = Field(
        default_factory=dict, description="Validation outcome per checked claim, keyed by claim text.",
    )
