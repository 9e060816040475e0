"""Pipeline orchestration: single-epoch refinement and the multi-epoch run."""

from lcrefine.pipeline.processor import EpochInputs, EpochRefiner, RefinementResult
from lcrefine.pipeline.orchestrator import PipelineOrchestrator, PipelineResult

__all__ = [
    'EpochInputs',
    'EpochRefiner',
    'RefinementResult',
    'PipelineOrchestrator',
    'PipelineResult',
]
