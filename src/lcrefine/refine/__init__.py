"""Refinement stages.

Each stage is a class built from an InternalConfig whose main method takes
grids and returns a new grid plus diagnostics; no stage mutates its input.
"""

from lcrefine.refine.rules import Rule, RuleOutcome, RuleStatus, apply_rules, outcomes_to_frame
from lcrefine.refine.merger import HybridMapMerger, MergeResult
from lcrefine.refine.spatial import SpatialCorrector, SpatialResult
from lcrefine.refine.sieve import PatchSieve, SieveResult
from lcrefine.refine.smoother import ConditionalSmoother, SmoothResult
from lcrefine.refine.consistency import ConsistencyCorrector, ConsistencyResult, transition_table
from lcrefine.refine.temporal import EpochSeries, TemporalSmoother, categorical_median

__all__ = [
    'Rule',
    'RuleOutcome',
    'RuleStatus',
    'apply_rules',
    'outcomes_to_frame',
    'HybridMapMerger',
    'MergeResult',
    'SpatialCorrector',
    'SpatialResult',
    'PatchSieve',
    'SieveResult',
    'ConditionalSmoother',
    'SmoothResult',
    'ConsistencyCorrector',
    'ConsistencyResult',
    'transition_table',
    'EpochSeries',
    'TemporalSmoother',
    'categorical_median',
]
