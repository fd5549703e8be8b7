"""Tests for repetition detection across a student's essays."""

from __future__ import annotations

from repetition import check_repetition

CURRENT = "the cat sat on the mat"
SAME = "The cat sat on the mat."
SIMILAR = "the cat sat on a rug"
UNRELATED = "dogs bark loudly"


class TestCheckRepetition:
    def test_no_prior_essays(self) -> None:
        report = check_repetition(CURRENT, [])
        assert report.has_repetition is False
        assert report.matches == []
        assert report.suggestions == []

    def test_matches_sorted_by_score(self) -> None:
        report = check_repetition(CURRENT, [SIMILAR, SAME, UNRELATED])
        assert report.has_repetition is True
        assert [m.index for m in report.matches] == [1, 0]
        assert report.matches[0].severity == "critical"
        assert report.matches[0].score == 1.0
        assert report.matches[1].severity == "major"
        assert len(report.suggestions) == 2
        assert report.suggestions[0].startswith("Essay 2 ")

    def test_overlapping_phrases_longest_first(self) -> None:
        report = check_repetition(CURRENT, [SAME])
        assert report.matches[0].overlapping_phrases[0] == "the cat sat on the mat"

    def test_min_severity_filters(self) -> None:
        report = check_repetition(CURRENT, [SIMILAR, SAME], min_severity="critical")
        assert [m.index for m in report.matches] == [1]

    def test_unrelated_essays_are_not_reported(self) -> None:
        report = check_repetition(CURRENT, [UNRELATED])
        assert report.has_repetition is False
