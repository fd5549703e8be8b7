"""
Main execution module for the essay rubric scorer.

This module serves as the entry point for running the scoring process.
It demonstrates a simple use case: scoring a sample essay from fixed dimension
scores, checking it against a prior essay and verifying one claim.
"""

import logging

from rich.console import Console
from rich.table import Table

from app_types import DimensionScoreEntry, EssayReport
from logger_utils import get_separator_func
from score import score_essay

SAMPLE_ESSAY = (
    "The smoke alarm went off at 2 a.m. while I was soldering the last joint of our robot's arm. "
    "I had founded the robotics club two years earlier, and that night I realized I had been "
    "building machines to avoid asking my teammates for help. I learned to delegate, and our "
    "team finished third at the regional competition."
)

PRIOR_ESSAY = (
    "I founded the robotics club two years ago. Our team finished third at the regional "
    "competition after months of late nights in the garage."
)

SAMPLE_SCORES = {
    "opening_power_scene_entry": 8,
    "narrative_arc_stakes_turn": 7,
    "character_interiority_vulnerability": 7,
    "show_dont_tell_craft": 6,
    "reflection_meaning_making": 7,
    "intellectual_vitality_curiosity": 6,
    "originality_specificity_voice": 7,
    "structure_pacing_coherence": 8,
    "word_economy_craft": 7,
    "context_constraints_disclosure": 5,
    "school_program_fit": 4,
    "ethical_awareness_humility": 6,
}


def render_report(report: EssayReport, console: Console) -> None:
    """Print the composite breakdown as a table followed by repetition and claim results."""
    composite = report.composite
    table = Table(title=f"Rubric {composite.rubric_version}: {composite.final_score:.1f}/100 ({composite.impression_label})")
    table.add_column("Dimension")
    table.add_column("Weight", justify="right")
    table.add_column("Raw", justify="right")
    table.add_column("Adjusted", justify="right")
    table.add_column("Contribution", justify="right")
    for breakdown in composite.per_dimension.values():
        adjusted = f"{breakdown.adjusted:g}" + (" *" if breakdown.modified_by_rules else "")
        table.add_row(
            breakdown.display_name,
            f"{breakdown.weight:g}",
            f"{breakdown.raw:g}",
            adjusted,
            f"{breakdown.contribution_to_total:.2f}",
        )
    console.print(table)

    for application in composite.rule_applications:
        console.print(f"[bold]{application.rule_id}[/bold]: {application.dimension_id} "
                      f"{application.before:g} -> {application.after:g}")
    for flag in composite.flags:
        console.print(f"[yellow]flag[/yellow] {flag}")
    for match in report.repetition.matches:
        console.print(f"[red]repetition[/red] prior essay {match.index + 1}: {match.score:.2f} ({match.severity})")
    for claim, result in report.claim_results.items():
        status = "verified" if result.verified else "unverified"
        console.print(f"claim {claim!r}: {status} ({result.confidence:.2f})")


def main() -> EssayReport:
    """
    Execute the scoring process with sample inputs.

    Returns:
        EssayReport: The computed report for the sample essay.
    """
    report = score_essay(
        essay=SAMPLE_ESSAY,
        dimension_scores={
            dimension_id: DimensionScoreEntry(dimension_id=dimension_id, raw_score=value)
            for dimension_id, value in SAMPLE_SCORES.items()
        },
        prior_essays=[PRIOR_ESSAY],
        claims=["I founded the robotics club"],
        claim_sources=[PRIOR_ESSAY],
    )
    logging.info(f"Essay report computed for rubric {report.composite.rubric_version}")
    get_separator_func()()
    render_report(report, Console())
    return report


if __name__ == "__main__":
    main()
