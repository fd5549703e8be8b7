"""Shared test fixtures: small hand-built rubrics and score-map builders."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pytest

from app_types import (
    DimensionDefinition,
    DimensionScoreEntry,
    ImpressionBand,
    InteractionRule,
    RubricDefinition,
)
from rubric_definitions import ESSAY_RUBRIC_V1_0_1

ScoreBuilder = Callable[..., dict[str, DimensionScoreEntry]]


def _bands() -> tuple[ImpressionBand, ...]:
    return (
        ImpressionBand(label="strong", min_score=80),
        ImpressionBand(label="middling", min_score=50),
        ImpressionBand(label="weak", min_score=0),
    )


@pytest.fixture
def make_rubric() -> Callable[..., RubricDefinition]:
    """Factory for a two-dimension rubric ("a" and "b", weight 1, range 0-10) with optional rules."""

    def _make(
        rules: Iterable[InteractionRule] = (),
        *,
        min_score: float = 0.0,
        weights: tuple[float, float] = (1.0, 1.0),
    ) -> RubricDefinition:
        return RubricDefinition(
            version="test-v1",
            dimensions=(
                DimensionDefinition(id="a", display_name="Dimension A", weight=weights[0], min_score=min_score),
                DimensionDefinition(id="b", display_name="Dimension B", weight=weights[1], min_score=min_score),
            ),
            interaction_rules=tuple(rules),
            impression_bands=_bands(),
        )

    return _make


@pytest.fixture
def two_dimension_rubric(make_rubric: Callable[..., RubricDefinition]) -> RubricDefinition:
    return make_rubric()


@pytest.fixture
def build_scores() -> ScoreBuilder:
    """Build a score map keyed by dimension id from keyword arguments."""

    def _build(**values: float) -> dict[str, DimensionScoreEntry]:
        return {
            dimension_id: DimensionScoreEntry(dimension_id=dimension_id, raw_score=value)
            for dimension_id, value in values.items()
        }

    return _build


@pytest.fixture
def essay_scores(build_scores: ScoreBuilder) -> Callable[..., dict[str, DimensionScoreEntry]]:
    """Score map for every essay rubric dimension, 7 by default, with per-dimension overrides."""

    def _build(**overrides: float) -> dict[str, DimensionScoreEntry]:
        values = {dimension_id: 7.0 for dimension_id in ESSAY_RUBRIC_V1_0_1.dimension_ids}
        values.update(overrides)
        return build_scores(**values)

    return _build


@pytest.fixture
def sample_essay() -> str:
    return (
        "The smoke alarm went off at 2 a.m. while I was soldering the last joint of our robot's arm. "
        "I had founded the robotics club two years earlier, and that night I realized I had been "
        "building machines to avoid asking my teammates for help."
    )
