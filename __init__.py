"""A module for scoring essays and activity narratives against versioned rubrics.

Rubric Scoring
--------------

Per-dimension raw scores come from an external scorer (usually a language model
reached through `llm_client`). The rubric scorer turns them into a 0-100 composite:

1. The scores are checked against the rubric. A missing or unknown dimension is a
configuration error, never a silent zero.
2. Out-of-range scores are clamped to the dimension bounds and the clamp is recorded.
3. Interaction rules (caps, boosts, reductions, multipliers) run once, in ascending
priority, each seeing the scores left by the rules before it.
4. Each dimension contributes `adjusted / max_score * 100 * weight / total_weight`
points, so the breakdown always adds up to the total.
5. The composite picks an impression band, and flag rules and improvement levers are derived.

Text Similarity
---------------

Two texts are compared by word-set Jaccard overlap when either is short, and by cosine
similarity of their top TF-IDF terms otherwise. Scores map to the severities
`critical`, `major`, `minor` and `none`. Shared word n-gram phrases can be extracted for
repetition reports.

Claim Validation
----------------

A claim is verified against source texts by normalized substring containment or by the
share of its words a source contains. Typed validators check leadership, activity and
achievement claims against a student's activity records.

Environment Variables
---------------------

* `APP_ENV`: `dev` or `prod`; selects `<env>.env` and `envs/<env>.yaml`.
* `APP_CONFIG_DIR`: Directory holding those files.
* `LOG_LEVEL`: Overrides the configured log level.
* `LOG_FORMAT`: Set to `basic` to log without rich formatting.

"""
