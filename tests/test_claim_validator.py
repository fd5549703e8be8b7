"""Tests for free-text and typed claim validation."""

from __future__ import annotations

import pytest

from app_types import ActivityRecord
from claim_validator import validate_claim, validate_typed_claim

ROBOTICS_PRESIDENT = ActivityRecord(name="Robotics Club", role="President", leadership_role=True)
FOOD_BANK = ActivityRecord(name="Food Bank", description="Weekly volunteer shifts sorting donations", kind="volunteer")
MERIT = ActivityRecord(name="National Merit Semifinalist", kind="honor")


class TestValidateClaim:
    def test_normalized_substring_is_verified(self) -> None:
        result = validate_claim("I founded the club", ["I founded the robotics club in 2021"])
        assert result.verified is True
        assert result.best_match_index == 0
        assert result.confidence == 1.0

    def test_unsupported_claim(self) -> None:
        result = validate_claim("I invented time travel", ["I founded the robotics club"])
        assert result.verified is False
        assert result.best_match_index == 0
        assert result.confidence == 0.25

    def test_empty_sources(self) -> None:
        result = validate_claim("I founded the club", [])
        assert result.verified is False
        assert result.best_match_index is None
        assert result.confidence == 0.0

    def test_best_source_selected(self) -> None:
        sources = ["I play chess on weekends", "As captain I led the debate team", "Captain of the debate team since 2022"]
        result = validate_claim("captain of the debate team", sources)
        assert result.best_match_index == 2
        assert result.verified is True

    def test_custom_threshold(self) -> None:
        result = validate_claim("founded the chess club", ["I founded the robotics club"], threshold=0.8)
        assert result.confidence == 0.75
        assert result.verified is False

    def test_empty_claim_is_not_verified(self) -> None:
        result = validate_claim("", ["anything"])
        assert result.verified is False
        assert result.confidence == 0.0


class TestLeadershipClaims:
    def test_matching_role(self) -> None:
        result = validate_typed_claim("I was president of the robotics club", "leadership", [ROBOTICS_PRESIDENT])
        assert result.is_valid is True
        assert result.confidence == 0.9
        assert result.evidence_found == ["President of Robotics Club"]

    def test_vague_claim(self) -> None:
        result = validate_typed_claim("I helped out a lot", "leadership", [ROBOTICS_PRESIDENT])
        assert result.is_valid is True
        assert result.confidence == 0.5

    def test_no_leadership_roles_on_record(self) -> None:
        result = validate_typed_claim("I was team captain", "leadership", [ActivityRecord(name="Chess")])
        assert result.is_valid is False
        assert result.confidence == 0.0
        assert result.evidence_found == []

    def test_role_mismatch(self) -> None:
        result = validate_typed_claim("As team captain I inspired everyone", "leadership", [ROBOTICS_PRESIDENT])
        assert result.is_valid is False
        assert result.confidence == 0.3
        assert "President of Robotics Club" in result.suggestion

    def test_no_records(self) -> None:
        result = validate_typed_claim("I was president", "leadership", None)
        assert result.is_valid is False
        assert result.confidence == 0.0


class TestActivityAndAchievementClaims:
    def test_activity_found(self) -> None:
        result = validate_typed_claim("volunteer at the food bank", "activity", [FOOD_BANK])
        assert result.is_valid is True
        assert result.confidence == 0.8
        assert result.evidence_found == ["Food Bank"]

    def test_honors_do_not_count_as_activities(self) -> None:
        result = validate_typed_claim("National Merit Semifinalist", "activity", [MERIT])
        assert result.is_valid is False

    def test_achievement_found(self) -> None:
        result = validate_typed_claim("Named National Merit Semifinalist", "achievement", [MERIT, FOOD_BANK])
        assert result.is_valid is True
        assert result.confidence == 0.85
        assert result.evidence_found == ["National Merit Semifinalist"]

    def test_achievement_missing(self) -> None:
        result = validate_typed_claim("I won the state science fair", "achievement", [MERIT])
        assert result.is_valid is False
        assert result.confidence == 0.0

    @pytest.mark.parametrize("claim_type", ["academic", "other"])
    def test_unknown_claim_type(self, claim_type: str) -> None:
        result = validate_typed_claim("anything", claim_type, [FOOD_BANK])
        assert result.is_valid is False
        assert result.suggestion == "Unknown claim type"
