"""Tests for rubric construction, the shipped rubric versions and adaptive weights."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app_types import (
    CapEffect,
    DimensionDefinition,
    ImpressionBand,
    InteractionRule,
    RubricConfigurationError,
    RubricDefinition,
    ScoreAnchor,
)
from rubric_definitions import (
    ESSAY_RUBRIC_V1_0_0,
    ESSAY_RUBRIC_V1_0_1,
    EXTRACURRICULAR_RUBRIC_V1_0_0,
    get_rubric,
    rubric_for_activity_category,
    with_weight_overrides,
)

BANDS = (ImpressionBand(label="good", min_score=50), ImpressionBand(label="bad", min_score=0))


def _dimension(dimension_id: str, **kwargs) -> DimensionDefinition:
    return DimensionDefinition(id=dimension_id, display_name=dimension_id.title(), weight=1.0, **kwargs)


class TestRubricConstruction:
    def test_duplicate_dimension_rejected(self) -> None:
        with pytest.raises(ValueError, match="duplicate dimension"):
            RubricDefinition(version="x", dimensions=(_dimension("a"), _dimension("a")), impression_bands=BANDS)

    def test_rule_with_unknown_dimension_rejected(self) -> None:
        rule = InteractionRule(id="r", priority=1, effect=CapEffect(dimension_id="missing", max_value=5))
        with pytest.raises(ValueError, match="unknown dimension 'missing'"):
            RubricDefinition(
                version="x", dimensions=(_dimension("a"),), interaction_rules=(rule,), impression_bands=BANDS,
            )

    def test_construction_errors_are_validation_errors(self) -> None:
        rule = InteractionRule(id="r", priority=1, effect=CapEffect(dimension_id="missing", max_value=5))
        with pytest.raises(ValidationError) as exc_info:
            RubricDefinition(
                version="x", dimensions=(_dimension("a"),), interaction_rules=(rule,), impression_bands=BANDS,
            )
        assert not isinstance(exc_info.value, RubricConfigurationError)

    def test_bands_must_descend(self) -> None:
        bands = (ImpressionBand(label="bad", min_score=0), ImpressionBand(label="good", min_score=50))
        with pytest.raises(ValueError, match="descending"):
            RubricDefinition(version="x", dimensions=(_dimension("a"),), impression_bands=bands)

    def test_lowest_band_must_cover_zero(self) -> None:
        bands = (ImpressionBand(label="good", min_score=50), ImpressionBand(label="ok", min_score=10))
        with pytest.raises(ValueError, match="at or below 0"):
            RubricDefinition(version="x", dimensions=(_dimension("a"),), impression_bands=bands)

    def test_empty_score_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="must be below max_score"):
            _dimension("a", min_score=5, max_score=5)

    def test_anchor_outside_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="outside"):
            _dimension("a", score_anchors=(ScoreAnchor(score=11, description="too high"),))

    def test_non_positive_weight_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DimensionDefinition(id="a", display_name="A", weight=0)

    def test_rubric_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ESSAY_RUBRIC_V1_0_1.version = "v9"

    def test_label_for_uses_lower_bounds(self) -> None:
        assert ESSAY_RUBRIC_V1_0_1.label_for(100).label == "arresting_deeply_human"
        assert ESSAY_RUBRIC_V1_0_1.label_for(90).label == "arresting_deeply_human"
        assert ESSAY_RUBRIC_V1_0_1.label_for(89.5).label == "compelling_clear_voice"
        assert ESSAY_RUBRIC_V1_0_1.label_for(59.99).label == "template_like_rebuild"
        assert ESSAY_RUBRIC_V1_0_1.label_for(0).label == "template_like_rebuild"

    def test_get_dimension_unknown(self) -> None:
        with pytest.raises(RubricConfigurationError) as exc_info:
            ESSAY_RUBRIC_V1_0_1.get_dimension("nope")
        assert exc_info.value.dimension_id == "nope"


class TestShippedRubrics:
    def test_essay_rubric_shape(self) -> None:
        assert len(ESSAY_RUBRIC_V1_0_0.dimensions) == 12
        assert len(ESSAY_RUBRIC_V1_0_0.interaction_rules) == 6
        assert len(ESSAY_RUBRIC_V1_0_0.impression_bands) == 5
        assert len(EXTRACURRICULAR_RUBRIC_V1_0_0.dimensions) == 11

    def test_v1_0_1_supersedes_interiority_only(self) -> None:
        old = ESSAY_RUBRIC_V1_0_0.get_dimension("character_interiority_vulnerability")
        new = ESSAY_RUBRIC_V1_0_1.get_dimension("character_interiority_vulnerability")
        assert [a.score for a in new.score_anchors] == [0, 5, 8, 10]
        assert new.score_anchors != old.score_anchors
        assert new.weight == old.weight
        assert ESSAY_RUBRIC_V1_0_1.dimension_ids == ESSAY_RUBRIC_V1_0_0.dimension_ids
        for dimension_id in ESSAY_RUBRIC_V1_0_0.dimension_ids:
            if dimension_id != "character_interiority_vulnerability":
                assert ESSAY_RUBRIC_V1_0_1.get_dimension(dimension_id) == ESSAY_RUBRIC_V1_0_0.get_dimension(dimension_id)

    def test_registry(self) -> None:
        assert get_rubric("v1.0.0") is ESSAY_RUBRIC_V1_0_0
        assert get_rubric("v1.0.1") is ESSAY_RUBRIC_V1_0_1
        assert get_rubric("extracurricular-v1.0.0") is EXTRACURRICULAR_RUBRIC_V1_0_0

    def test_unknown_version(self) -> None:
        with pytest.raises(RubricConfigurationError, match="Unknown rubric version"):
            get_rubric("v0.0.1")

    def test_rule_priorities_are_unique_per_rubric(self) -> None:
        for rubric in (ESSAY_RUBRIC_V1_0_1, EXTRACURRICULAR_RUBRIC_V1_0_0):
            priorities = [rule.priority for rule in rubric.interaction_rules]
            assert len(priorities) == len(set(priorities))


class TestAdaptiveWeights:
    def test_category_overrides_weights(self) -> None:
        rubric = rubric_for_activity_category("Work")
        assert rubric.version == "extracurricular-v1.0.0+work"
        assert rubric.get_dimension("initiative_leadership").weight == 0.06
        assert rubric.get_dimension("specificity_evidence").weight == (
            EXTRACURRICULAR_RUBRIC_V1_0_0.get_dimension("specificity_evidence").weight
        )
        assert EXTRACURRICULAR_RUBRIC_V1_0_0.get_dimension("initiative_leadership").weight == 0.10

    def test_category_without_overrides_returns_base(self) -> None:
        assert rubric_for_activity_category("leadership") is EXTRACURRICULAR_RUBRIC_V1_0_0
        assert rubric_for_activity_category("knitting") is EXTRACURRICULAR_RUBRIC_V1_0_0

    def test_override_of_unknown_dimension(self) -> None:
        with pytest.raises(RubricConfigurationError):
            with_weight_overrides(ESSAY_RUBRIC_V1_0_1, {"nope": 0.5}, "custom")

    def test_zero_weight_override_rejected(self) -> None:
        overrides = {dimension_id: 0.0 for dimension_id in ESSAY_RUBRIC_V1_0_1.dimension_ids}
        with pytest.raises(ValidationError):
            with_weight_overrides(ESSAY_RUBRIC_V1_0_1, overrides, "zero")

    def test_negative_weight_override_rejected(self) -> None:
        with pytest.raises(ValidationError, match="greater than 0"):
            with_weight_overrides(ESSAY_RUBRIC_V1_0_1, {"school_program_fit": -5.0}, "negative")
