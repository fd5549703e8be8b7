"""
Versioned rubric definitions.

Every rubric is an immutable `RubricDefinition`. A change to a rubric is made by
building a new version from the previous one (see `ESSAY_RUBRIC_V1_0_1`), never
by editing a published one, so stored scores can always be traced back to the
exact rubric that produced them.

Rubrics shipped here:
- Essay rubric v1.0.0 and v1.0.1: twelve dimensions scored 0-10, six interaction
  rules, five impression bands and seven diagnostic flags.
- Extracurricular narrative rubric v1.0.0: eleven categories scored 0-10, with
  adaptive weights per activity category.
"""

from __future__ import annotations

import logging
from typing import Any

from app_types import (
    BoostEffect,
    CapEffect,
    DimensionDefinition,
    FlagRule,
    ImpressionBand,
    InteractionRule,
    ReduceEffect,
    RubricConfigurationError,
    RubricDefinition,
    ScoreAnchor,
    ThresholdCondition,
)

logger = logging.getLogger(__name__)


def _anchors(*pairs: tuple[float, str]) -> tuple[ScoreAnchor, ...]:
    return tuple(ScoreAnchor(score=score, description=description) for score, description in pairs)


def _when(dimension_id: str, op: str, threshold: float) -> ThresholdCondition:
    return ThresholdCondition(dimension_id=dimension_id, operator=op, threshold=threshold)


# --- Essay rubric ---

_ESSAY_DIMENSIONS_V1_0_0 = (
    DimensionDefinition(
        id="opening_power_scene_entry",
        display_name="Opening Power & Scene Entry",
        definition="Does the opening drop us into a concrete moment or a precise claim that compels reading?",
        weight=0.10,
        score_anchors=_anchors(
            (0, "Generic aphorism: 'Since I was young...'"),
            (5, "Clear context but abstract, no sensory detail"),
            (10, "Scene on page one or a provocative hook"),
        ),
    ),
    DimensionDefinition(
        id="narrative_arc_stakes_turn",
        display_name="Narrative Arc, Stakes & Turn",
        definition="Tension, decision and consequence; stakes may be internal or external.",
        weight=0.12,
        score_anchors=_anchors(
            (0, "No conflict; a list of traits"),
            (5, "Implied problem, soft turn"),
            (10, "Clear obstacle, visible choice, outcome with cost"),
        ),
    ),
    DimensionDefinition(
        id="character_interiority_vulnerability",
        display_name="Character Interiority & Vulnerability",
        definition="We hear the mind on the page: emotions named, contradictions faced, limits admitted.",
        weight=0.12,
        score_anchors=_anchors(
            (0, "'I learned a lot'"),
            (5, "Mentions feelings"),
            (10, "Named fear or embarrassment plus inner debate"),
        ),
    ),
    DimensionDefinition(
        id="show_dont_tell_craft",
        display_name="Show-Don't-Tell Craft",
        definition="Scenes, snippets of dialogue and concrete images carry meaning, not just summary.",
        weight=0.10,
        score_anchors=_anchors(
            (0, "Pure exposition"),
            (5, "One or two concrete details"),
            (10, "At least one built scene or rich sensory detail throughout"),
        ),
    ),
    DimensionDefinition(
        id="reflection_meaning_making",
        display_name="Reflection & Meaning-Making",
        definition="Insight that reframes the experience without moral-of-the-story cliches.",
        weight=0.12,
        score_anchors=_anchors(
            (0, "'I learned perseverance'"),
            (5, "Specific lesson tied to the event"),
            (10, "Portable insight that changes a lens, or comfort with ambiguity"),
        ),
    ),
    DimensionDefinition(
        id="intellectual_vitality_curiosity",
        display_name="Intellectual Vitality & Curiosity",
        definition="Self-propelled inquiry; ideas connected to lived reality rather than a catalog.",
        weight=0.08,
        score_anchors=_anchors(
            (0, "Name-drops concepts without use"),
            (5, "Applies a concept once"),
            (10, "Connects idea and life with dexterity"),
        ),
    ),
    DimensionDefinition(
        id="originality_specificity_voice",
        display_name="Originality & Specificity of Voice",
        definition="Unmistakably the writer: idioms, cadence, micro-observations.",
        weight=0.08,
        score_anchors=_anchors(
            (0, "Template or AI tone"),
            (5, "Clear but generic"),
            (10, "Lines only this writer could produce"),
        ),
    ),
    DimensionDefinition(
        id="structure_pacing_coherence",
        display_name="Structure, Pacing & Coherence",
        definition="Logical flow, paragraph architecture and transitions.",
        weight=0.06,
        score_anchors=_anchors(
            (0, "Rambling or disjointed"),
            (5, "Mostly coherent, some jumps"),
            (10, "Clean beats or a parallel structure that creates coherence"),
        ),
    ),
    DimensionDefinition(
        id="word_economy_craft",
        display_name="Word Economy & Line-level Craft",
        definition="Tight sentences, verbs doing work, varied cadence, minimal filler.",
        weight=0.06,
        score_anchors=_anchors(
            (0, "Filler and cliches dominate"),
            (5, "Clean but flat"),
            (10, "Energetic prose with no bloat"),
        ),
    ),
    DimensionDefinition(
        id="context_constraints_disclosure",
        display_name="Context & Constraints Disclosure",
        definition="Honest context (work hours, caregiving, resource limits) shown, not excused.",
        weight=0.08,
        score_anchors=_anchors(
            (0, "No context; invites prestige bias"),
            (5, "Mentions a constraint"),
            (10, "We feel the constraint's texture"),
        ),
    ),
    DimensionDefinition(
        id="school_program_fit",
        display_name="School/Program Fit",
        definition="Specific, plausible alignment of the writer's curiosity with a school's methods and assets.",
        weight=0.06,
        score_anchors=_anchors(
            (0, "Brochure copy"),
            (5, "Names a resource"),
            (10, "Ties method to the writer with credible next steps"),
        ),
    ),
    DimensionDefinition(
        id="ethical_awareness_humility",
        display_name="Ethical Awareness & Humility",
        definition="Respect for others, credit-sharing, awareness of power and privilege; no saviorism.",
        weight=0.06,
        score_anchors=_anchors(
            (0, "Self-hero arc"),
            (5, "Acknowledges others"),
            (10, "Names who taught or helped and reflects on limits"),
        ),
    ),
)

_ESSAY_INTERACTION_RULES = (
    InteractionRule(
        id="rule_scene_reflection",
        name="Scene amplifies reflection",
        description="Without at least one live scene, Reflection ceiling is 8",
        priority=10,
        conditions=(_when("show_dont_tell_craft", "<", 6),),
        effect=CapEffect(dimension_id="reflection_meaning_making", max_value=8),
        reason="Deep reflection requires grounding in lived scene",
    ),
    InteractionRule(
        id="rule_fit_ceiling",
        name="Specific fit unlocks ceiling",
        description="Without methods-fit, School Fit ceiling is 6 even if resources are named",
        priority=20,
        conditions=(_when("school_program_fit", "<", 7),),
        effect=CapEffect(dimension_id="school_program_fit", max_value=6),
        reason="Must connect the school's method to your learning mode, not just list resources",
    ),
    InteractionRule(
        id="rule_context_originality",
        name="Context prevents prestige illusions",
        description="Lack of constraints caps Originality at 8",
        priority=30,
        conditions=(_when("context_constraints_disclosure", "<", 5),),
        effect=CapEffect(dimension_id="originality_specificity_voice", max_value=8),
        reason="Originality requires showing constraints that shaped your path",
    ),
    InteractionRule(
        id="rule_interiority_arc",
        name="Interiority can redeem modest arc",
        description="High Interiority and Reflection offset modest external stakes",
        priority=40,
        conditions=(
            _when("character_interiority_vulnerability", ">=", 8),
            _when("reflection_meaning_making", ">=", 8),
        ),
        effect=BoostEffect(dimension_id="narrative_arc_stakes_turn", delta=1),
        reason="Deep internal arc can compensate for modest external stakes",
    ),
    InteractionRule(
        id="rule_humility_eqi",
        name="Humility moderates brag",
        description="Low Ethical Awareness weakens the arc",
        priority=50,
        conditions=(_when("ethical_awareness_humility", "<", 5),),
        effect=ReduceEffect(dimension_id="narrative_arc_stakes_turn", delta=2),
        reason="Self-hero arc without humility signals lack of self-awareness",
    ),
    InteractionRule(
        id="rule_opening_engagement",
        name="Weak opening limits engagement",
        description="A generic opening lowers the reader's generosity to the rest of the essay",
        priority=60,
        conditions=(_when("opening_power_scene_entry", "<", 4),),
        effect=ReduceEffect(dimension_id="structure_pacing_coherence", delta=1),
        reason="Weak opening makes the reader less generous to the rest of the essay",
    ),
)

_ESSAY_IMPRESSION_BANDS = (
    ImpressionBand(
        label="arresting_deeply_human",
        min_score=90,
        description="Stops the reader on the page with its authenticity and unique insight.",
    ),
    ImpressionBand(
        label="compelling_clear_voice",
        min_score=80,
        description="Strong narrative craft and distinct voice make this compelling.",
    ),
    ImpressionBand(
        label="competent_needs_texture",
        min_score=70,
        description="Competent and readable, but needs more scene, stakes, or reflection depth.",
    ),
    ImpressionBand(
        label="readable_but_generic",
        min_score=60,
        description="Coherent but lacks specificity, vulnerability, or narrative arc.",
    ),
    ImpressionBand(
        label="template_like_rebuild",
        min_score=0,
        description="Requires significant rebuild to meet quality standards.",
    ),
)

ACHIEVEMENT_MARKERS = (
    "won",
    "first place",
    "award",
    "champion",
    "top",
    "best",
    "president",
    "founded",
    "started",
    "led",
    "managed",
    "organized",
)

_ESSAY_FLAG_RULES = (
    FlagRule(
        id="ai_sounding_pattern",
        description="Essay has an AI-sounding pattern (low craft, vulnerability and voice)",
        conditions=(
            _when("show_dont_tell_craft", "<", 5),
            _when("character_interiority_vulnerability", "<", 4),
            _when("originality_specificity_voice", "<", 5),
        ),
    ),
    FlagRule(
        id="high_brag_density",
        description="High achievement density without humility or context",
        conditions=(
            _when("ethical_awareness_humility", "<", 4),
            _when("context_constraints_disclosure", "<", 5),
        ),
        text_markers=ACHIEVEMENT_MARKERS,
        min_marker_count=3,
    ),
    FlagRule(
        id="missing_scene_critical",
        description="No concrete scene (critical deficiency)",
        conditions=(_when("show_dont_tell_craft", "<", 4),),
    ),
    FlagRule(
        id="missing_vulnerability_elite_pattern",
        description="Most elite essays show vulnerability; this one lacks it",
        conditions=(_when("character_interiority_vulnerability", "<", 5),),
    ),
    FlagRule(
        id="weak_opening_loses_reader",
        description="Weak opening reduces reader generosity to the rest of the essay",
        conditions=(_when("opening_power_scene_entry", "<", 4),),
    ),
    FlagRule(
        id="all_tell_no_show",
        description="All abstract telling, no showing through scene or dialogue",
        conditions=(_when("show_dont_tell_craft", "<", 5),),
    ),
    FlagRule(
        id="generic_lacks_specificity",
        description="Generic; needs unique details and authentic voice",
        conditions=(
            _when("originality_specificity_voice", "<", 5),
            _when("context_constraints_disclosure", "<", 5),
        ),
    ),
)

ESSAY_RUBRIC_V1_0_0 = RubricDefinition(
    version="v1.0.0",
    name="Essay Rubric v1.0.0",
    description="Twelve-dimension rubric for college application essays with interaction rules.",
    dimensions=_ESSAY_DIMENSIONS_V1_0_0,
    interaction_rules=_ESSAY_INTERACTION_RULES,
    impression_bands=_ESSAY_IMPRESSION_BANDS,
    flag_rules=_ESSAY_FLAG_RULES,
)


def _revised_dimension(dimension: DimensionDefinition, **changes: Any) -> DimensionDefinition:
    """Copy a dimension with `changes` applied, re-running its validators on the result."""
    return DimensionDefinition.model_validate({**dimension.model_dump(), **changes})


def _supersede_dimension(rubric: RubricDefinition, replacement: DimensionDefinition) -> tuple[DimensionDefinition, ...]:
    return tuple(replacement if d.id == replacement.id else d for d in rubric.dimensions)


# v1.0.1 requires several vulnerability moments for a 10 and pins a single one at 8.
ESSAY_RUBRIC_V1_0_1 = RubricDefinition(
    version="v1.0.1",
    name="Essay Rubric v1.0.1",
    description="Refinement of v1.0.0 with a stricter interiority and vulnerability scale.",
    dimensions=_supersede_dimension(
        ESSAY_RUBRIC_V1_0_0,
        _revised_dimension(
            ESSAY_RUBRIC_V1_0_0.get_dimension("character_interiority_vulnerability"),
            score_anchors=_anchors(
                (0, "'I learned a lot'"),
                (5, "Mentions feelings"),
                (8, "One named fear or embarrassment plus inner debate"),
                (10, "Multiple vulnerability moments and sustained introspection"),
            ),
        ),
    ),
    interaction_rules=_ESSAY_INTERACTION_RULES,
    impression_bands=_ESSAY_IMPRESSION_BANDS,
    flag_rules=_ESSAY_FLAG_RULES,
)


# --- Extracurricular narrative rubric ---

_EXTRACURRICULAR_DIMENSIONS = (
    DimensionDefinition(
        id="voice_integrity",
        display_name="Voice Integrity",
        definition="Does this sound like a real person who lived the experience?",
        weight=0.10,
        score_anchors=_anchors((0, "Templated, no personality"), (5, "Clear but flat"), (10, "Human, textured, grounded")),
    ),
    DimensionDefinition(
        id="specificity_evidence",
        display_name="Specificity & Evidence",
        definition="Concrete details, credible scope and visible outcomes without hype.",
        weight=0.09,
        score_anchors=_anchors((0, "'Made a big impact'"), (5, "Basic metrics"), (10, "Precise, plausible, meaningful")),
    ),
    DimensionDefinition(
        id="transformative_impact",
        display_name="Transformative Impact (Self & Others)",
        definition="Evidence of change in the writer and in the people or systems they touched.",
        weight=0.12,
        score_anchors=_anchors((0, "No change implied"), (5, "Generic growth"), (10, "Personal and systemic shift")),
    ),
    DimensionDefinition(
        id="role_clarity_ownership",
        display_name="Role Clarity & Ownership",
        definition="What the writer actually did, decided and drove.",
        weight=0.08,
        score_anchors=_anchors((0, "Title only"), (5, "Lists duties"), (10, "Clear agency with outcomes")),
    ),
    DimensionDefinition(
        id="narrative_arc_stakes",
        display_name="Narrative Arc & Stakes",
        definition="A mini-story with context, obstacle, action and consequence.",
        weight=0.10,
        score_anchors=_anchors((0, "Snapshot with no arc"), (5, "Thin middle"), (10, "Clear stakes and turning point")),
    ),
    DimensionDefinition(
        id="initiative_leadership",
        display_name="Initiative & Leadership Modes",
        definition="Leadership as behavior (starting, persuading, structuring), not rank.",
        weight=0.10,
        score_anchors=_anchors((0, "Follows instructions only"), (5, "Coordinates reliably"), (10, "Sees and solves")),
    ),
    DimensionDefinition(
        id="community_collaboration",
        display_name="Community & Collaboration",
        definition="How the writer listened, included and built with others.",
        weight=0.08,
        score_anchors=_anchors((0, "'I did X, I did Y'"), (5, "Mentions team"), (10, "Others named, real interdependence")),
    ),
    DimensionDefinition(
        id="reflection_meaning",
        display_name="Reflection & Meaning",
        definition="What was learned and why it matters to who the writer is becoming.",
        weight=0.12,
        score_anchors=_anchors((0, "No reflection"), (5, "'It taught me perseverance'"), (10, "Precise, portable insight")),
    ),
    DimensionDefinition(
        id="craft_language_quality",
        display_name="Craft & Language Quality",
        definition="Clean, concise, vivid writing.",
        weight=0.07,
        score_anchors=_anchors((0, "Clutter, cliches, errors"), (5, "Correct but plain"), (10, "Polished, economical")),
    ),
    DimensionDefinition(
        id="fit_trajectory",
        display_name="Fit & Trajectory (Contextual Relevance)",
        definition="How the experience connects to emerging interests without sounding transactional.",
        weight=0.07,
        score_anchors=_anchors((0, "Isolated activity"), (5, "Vague link"), (10, "Clear arc")),
    ),
    DimensionDefinition(
        id="time_investment_consistency",
        display_name="Time Investment & Consistency",
        definition="Sustained commitment proportionate to life context.",
        weight=0.07,
        score_anchors=_anchors((0, "One-off"), (5, "Regular for a semester"), (10, "Multi-term consistency")),
    ),
)

_EXTRACURRICULAR_INTERACTION_RULES = (
    InteractionRule(
        id="rule_arc_amplifies_impact",
        name="Arc amplifies impact",
        description="A modest outcome told with clear stakes reads as more significant",
        priority=10,
        conditions=(_when("narrative_arc_stakes", ">=", 8),),
        effect=BoostEffect(dimension_id="transformative_impact", delta=1),
        reason="Clear stakes make the outcome feel earned",
    ),
    InteractionRule(
        id="rule_reflection_ceiling",
        name="Reflection converts logistics into growth",
        description="Weak Reflection caps the ceiling of seemingly big roles",
        priority=20,
        conditions=(_when("reflection_meaning", "<", 5),),
        effect=CapEffect(dimension_id="transformative_impact", max_value=7),
        reason="Without reflection, impact reads as logistics",
    ),
    InteractionRule(
        id="rule_specificity_credibility",
        name="Specificity controls credibility",
        description="Without specificity, high scores elsewhere are throttled",
        priority=30,
        conditions=(_when("specificity_evidence", "<", 4),),
        effect=CapEffect(dimension_id="initiative_leadership", max_value=7),
        reason="Leadership claims need concrete evidence",
    ),
    InteractionRule(
        id="rule_command_leadership",
        name="Community and leadership co-inform",
        description="Command-style leadership with low collaboration suggests fragility",
        priority=40,
        conditions=(
            _when("initiative_leadership", ">=", 7),
            _when("community_collaboration", "<", 5),
        ),
        effect=ReduceEffect(dimension_id="initiative_leadership", delta=1),
        reason="Leadership without collaboration is fragile",
    ),
)

_EXTRACURRICULAR_IMPRESSION_BANDS = (
    ImpressionBand(label="captivating_grounded", min_score=90, description="Captivating and grounded."),
    ImpressionBand(label="strong_distinct_voice", min_score=80, description="Strong, distinct voice."),
    ImpressionBand(label="solid_needs_polish", min_score=70, description="Solid, needs polish."),
    ImpressionBand(label="patchy_narrative", min_score=60, description="Patchy narrative."),
    ImpressionBand(label="generic_unclear", min_score=0, description="Generic or unclear."),
)

EXTRACURRICULAR_RUBRIC_V1_0_0 = RubricDefinition(
    version="extracurricular-v1.0.0",
    name="Extracurricular Narrative Rubric v1.0.0",
    description="Eleven-category rubric producing a Narrative Quality Index for activity descriptions.",
    dimensions=_EXTRACURRICULAR_DIMENSIONS,
    interaction_rules=_EXTRACURRICULAR_INTERACTION_RULES,
    impression_bands=_EXTRACURRICULAR_IMPRESSION_BANDS,
)

# Weight overrides per activity category; categories absent here use the base weights.
ADAPTIVE_WEIGHTS: dict[str, dict[str, float]] = {
    "leadership": {},
    "service": {},
    "work": {
        "initiative_leadership": 0.06,
        "fit_trajectory": 0.04,
        "voice_integrity": 0.13,
        "reflection_meaning": 0.15,
        "community_collaboration": 0.10,
    },
    "arts": {
        "initiative_leadership": 0.05,
        "role_clarity_ownership": 0.05,
        "craft_language_quality": 0.10,
        "reflection_meaning": 0.15,
        "fit_trajectory": 0.09,
    },
    "research": {
        "specificity_evidence": 0.12,
        "community_collaboration": 0.05,
        "initiative_leadership": 0.12,
    },
    "athletics": {
        "reflection_meaning": 0.08,
        "time_investment_consistency": 0.11,
        "community_collaboration": 0.11,
    },
}


# --- Registry ---

RUBRICS: dict[str, RubricDefinition] = {
    rubric.version: rubric for rubric in (ESSAY_RUBRIC_V1_0_0, ESSAY_RUBRIC_V1_0_1, EXTRACURRICULAR_RUBRIC_V1_0_0)
}


def get_rubric(version: str) -> RubricDefinition:
    """
    Return the rubric registered under `version`.

    Raises:
        RubricConfigurationError: If no rubric has that version.
    """
    try:
        return RUBRICS[version]
    except KeyError:
        msg = f"Unknown rubric version '{version}'. Available: {sorted(RUBRICS)}"
        raise RubricConfigurationError(msg) from None


def with_weight_overrides(rubric: RubricDefinition, overrides: dict[str, float], suffix: str) -> RubricDefinition:
    """
    Build a new rubric version whose dimension weights are replaced by `overrides`.

    Args:
        rubric (RubricDefinition): The base rubric; it is not modified.
        overrides (dict[str, float]): New weight per dimension id.
        suffix (str): Appended to the base version as `<version>+<suffix>`.

    Raises:
        RubricConfigurationError: If an override names a dimension the rubric does not have.
        pydantic.ValidationError: If an override weight is not positive.

    Returns:
        RubricDefinition: The derived rubric, or `rubric` itself when there is nothing to override.
    """
    if not overrides:
        return rubric
    for dimension_id in overrides:
        rubric.get_dimension(dimension_id)
    dimensions = tuple(
        _revised_dimension(d, weight=overrides[d.id]) if d.id in overrides else d for d in rubric.dimensions
    )
    derived = RubricDefinition(
        version=f"{rubric.version}+{suffix}",
        name=f"{rubric.name} ({suffix})",
        description=rubric.description,
        dimensions=dimensions,
        interaction_rules=rubric.interaction_rules,
        impression_bands=rubric.impression_bands,
        flag_rules=rubric.flag_rules,
    )
    total = derived.total_weight
    if abs(total - 1.0) > 0.001:
        logger.debug("Rubric %s weights sum to %.3f; composite is normalized by total weight.", derived.version, total)
    return derived


def rubric_for_activity_category(
    category: str,
    base: RubricDefinition = EXTRACURRICULAR_RUBRIC_V1_0_0,
) -> RubricDefinition:
    """Return the extracurricular rubric with the adaptive weights for an activity category applied."""
    overrides = ADAPTIVE_WEIGHTS.get(category.lower(), {})
    return with_weight_overrides(base, overrides, category.lower())
