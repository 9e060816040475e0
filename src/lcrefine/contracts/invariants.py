"""Formal pipeline invariants.

This file documents what each stage MUST produce. Use it as a reviewer
anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "merge": [
        "Output equals primary wherever primary is not nodata, else secondary",
        "Residual nodata is reported as a coverage gap mask, never dropped",
        "Output shares extent, transform and CRS with both inputs",
    ],

    "spatial": [
        "Rules run in documented order; each mask is built from the previous rule's output",
        "Later rules win on overlapping pixels",
        "Slope and TWI are present and share the grid extent",
        "A rule with no source-class cells is a no-op (empty class support)",
        "Rules 2, 3 and 6 are idempotent; rules 4 and 5 reach a fixed point only after repeated passes",
    ],

    "sieve": [
        "Only cells in components smaller than the minimum mapping unit change",
        "Replacement values come from the radius-1 focal mode of the same input",
        "Single pass: undersized components decrease but may remain",
    ],

    "smoother": [
        "A cell changes only where the focal mode differs from it",
        "No cell takes a class absent from its neighbourhood",
    ],

    "consistency": [
        "True change mask is a subset of the initial disagreement mask",
        "Corrected map equals the later map wherever true change is false",
        "Corrected map equals the earlier map wherever true change is true",
    ],

    "temporal": [
        "Reference epoch is bit-identical to its input",
        "Interior epochs hold the 3-point categorical median",
        "Series ends follow the explicitly configured boundary policy",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "merge": "OPTIONAL",         # Skipped without a secondary map
    "spatial": "REQUIRED",
    "sieve": "REQUIRED",
    "smoother": "REQUIRED",
    "consistency": "OPTIONAL",   # Only with 2+ epochs
    "temporal": "OPTIONAL",      # Only with 3+ epochs
}
