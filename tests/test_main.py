"""Smoke test for the demo entry point."""

from __future__ import annotations

from main import main


def test_main_renders_report(capsys) -> None:
    report = main()
    assert report.composite.rubric_version == "v1.0.1"
    assert report.claim_results["I founded the robotics club"].verified is True
    assert "Rubric v1.0.1" in capsys.readouterr().out
