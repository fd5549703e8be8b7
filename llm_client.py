"""
Boundary between the rubric scorer and an external language model.

The scorer never talks to a model itself. Callers inject any object satisfying
`ModelClient`; this module builds the request from a rubric, forwards the model
settings, and turns the model's reply into typed `DimensionScoreEntry` values.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from app_types import DimensionScoreEntry, RubricDefinition
from config import get_settings

logger = logging.getLogger(__name__)


class ModelOutputError(ValueError):
    """Raised when a model reply cannot be turned into dimension scores."""


class ModelClient(Protocol):
    """Anything that can send a prompt to a model and return its parsed JSON reply."""

    def call_model(self, prompt: str, options: Mapping[str, Any]) -> Mapping[str, Any] | list[Any]: ...


def build_scoring_prompt(essay_text: str, rubric: RubricDefinition) -> str:
    """
    Build the scoring request for one essay.

    Lists every dimension id with its range and anchors, and asks for a JSON reply
    of the form `{"dimensions": [{"dimension_id", "raw_score", "evidence_snippets", "note"}]}`.
    """
    lines = [
        f"Score the essay below with rubric {rubric.version}.",
        "Reply with JSON only: {\"dimensions\": [{\"dimension_id\": str, \"raw_score\": number, "
        "\"evidence_snippets\": [str], \"note\": str}]}, one entry per dimension.",
        "",
        "Dimensions:",
    ]
    for dimension in rubric.dimensions:
        lines.append(f"- {dimension.id} ({dimension.min_score:g}-{dimension.max_score:g}): {dimension.definition}")
        for anchor in dimension.score_anchors:
            lines.append(f"    {anchor.score:g}: {anchor.description}")
    lines.extend(["", "Essay:", essay_text])
    return "\n".join(lines)


def parse_dimension_scores(
    payload: Mapping[str, Any] | list[Any] | str,
    rubric: RubricDefinition,
) -> dict[str, DimensionScoreEntry]:
    """
    Convert a model reply into dimension score entries.

    Args:
        payload: `{"dimensions": [...]}`, a bare list of entries, or a JSON string of either.
        rubric (RubricDefinition): Rubric whose dimension ids the entries must use.

    Returns:
        dict[str, DimensionScoreEntry]: Entries keyed by dimension id.

    Raises:
        ModelOutputError: If the payload is not valid JSON, has the wrong shape, contains a malformed
            entry, repeats a dimension, or names a dimension the rubric does not define.
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ModelOutputError(f"Model reply is not valid JSON: {e}") from e

    if isinstance(payload, Mapping):
        items = payload.get("dimensions")
    else:
        items = payload
    if not isinstance(items, list):
        raise ModelOutputError("Model reply must be a list of dimension entries or contain a 'dimensions' list.")

    known = set(rubric.dimension_ids)
    entries: dict[str, DimensionScoreEntry] = {}
    for position, item in enumerate(items):
        try:
            entry = DimensionScoreEntry.model_validate(item)
        except ValidationError as e:
            raise ModelOutputError(f"Malformed dimension entry at position {position}: {e}") from e
        if entry.dimension_id not in known:
            raise ModelOutputError(f"Unknown dimension '{entry.dimension_id}' for rubric {rubric.version}.")
        if entry.dimension_id in entries:
            raise ModelOutputError(f"Dimension '{entry.dimension_id}' appears more than once.")
        entries[entry.dimension_id] = entry
    return entries


def request_dimension_scores(
    client: ModelClient,
    essay_text: str,
    rubric: RubricDefinition,
    options: Mapping[str, Any] | None = None,
) -> dict[str, DimensionScoreEntry]:
    """
    Ask the injected model client to score an essay and parse its reply.

    Model settings from configuration are sent with every request; `options` overrides them.
    """
    model = get_settings().model
    request_options: dict[str, Any] = {
        "model": model.name,
        "temperature": model.temperature,
        "max_output_tokens": model.max_output_tokens,
    }
    if options:
        request_options.update(options)

    logger.info("Requesting dimension scores from model '%s' for rubric %s.", request_options["model"], rubric.version)
    reply = client.call_model(build_scoring_prompt(essay_text, rubric), request_options)
    return parse_dimension_scores(reply, rubric)
