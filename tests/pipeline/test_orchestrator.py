"""Tests for the multi-epoch pipeline orchestrator."""

import numpy as np
import pytest

from lcrefine.contracts import ContractViolation, InvalidConfiguration
from lcrefine.pipeline import PipelineOrchestrator
from lcrefine.schemas import ParamConfig, UserConfig
from lcrefine.schemas.resolve import resolve_config

pytestmark = pytest.mark.unit

GRASS_BLOCK = (slice(15, 23), slice(10, 18))


@pytest.fixture
def result(pipeline_config, epoch_inputs):
    return PipelineOrchestrator(pipeline_config, configure_logging=False).run(epoch_inputs)


class TestPipelineRun:
    """End-to-end runs over three small epochs."""

    def test_series_is_sorted_with_latest_reference(self, result):
        assert result.smoothed.labels == ["2000", "2010", "2024"]
        assert result.smoothed.reference_epoch == "2024"

    def test_reference_epoch_untouched(self, result):
        ref = result.refined["2024"].values
        assert np.array_equal(result.corrected["2024"].values, ref)
        assert np.array_equal(result.smoothed["2024"].values, ref)

    def test_implausible_change_kept_by_consistency(self, result):
        block = result.corrected["2010"].values[GRASS_BLOCK]
        # Corners are lost to the conditional smoother, the rest is true change
        assert np.count_nonzero(block == 9) == 60

    def test_flicker_removed_by_temporal_smoothing(self, result):
        assert np.all(result.smoothed["2010"].values[GRASS_BLOCK] == 8)
        assert np.array_equal(result.smoothed["2010"].values,
                              result.smoothed["2024"].values)

    def test_transitions_per_historical_epoch(self, result):
        assert set(result.transitions) == {"2000", "2010"}
        table = result.transitions["2000"]
        assert table.values.sum() == 24 * 24
        assert table.loc["Forest", "Forest"] > 0

    def test_report_covers_every_epoch(self, result):
        assert set(result.report["epoch"]) == {"2000", "2010", "2024"}
        assert len(result.report) == 3 * len(result.report[result.report["epoch"] == "2000"])


class TestPipelineConfiguration:
    """Configuration and contract failures."""

    def test_missing_boundary_policy_fails_at_construction(self, internal_config):
        with pytest.raises(InvalidConfiguration):
            PipelineOrchestrator(internal_config, configure_logging=False)

    def test_missing_reference_epoch(self, epoch_inputs):
        config = resolve_config(
            ParamConfig(),
            UserConfig(BOUNDARY_POLICY="passthrough", REFERENCE_EPOCH="1990"),
            None,
        )
        with pytest.raises(ContractViolation):
            PipelineOrchestrator(config, configure_logging=False).run(epoch_inputs)

    def test_no_epochs(self, pipeline_config):
        with pytest.raises(ContractViolation):
            PipelineOrchestrator(pipeline_config, configure_logging=False).run({})

    def test_parallel_matches_serial(self, pipeline_config, epoch_inputs, result):
        config = resolve_config(
            ParamConfig(), UserConfig(BOUNDARY_POLICY="passthrough", MAX_WORKERS=3), None)
        parallel = PipelineOrchestrator(config, configure_logging=False).run(epoch_inputs)

        for label in result.smoothed.labels:
            assert np.array_equal(parallel.smoothed[label].values,
                                  result.smoothed[label].values)

    def test_forward_pair_smooths_series_end(self, epoch_inputs):
        config = resolve_config(
            ParamConfig(),
            UserConfig(BOUNDARY_POLICY="forward_pair", REFERENCE_EPOCH="2010"),
            None,
        )
        out = PipelineOrchestrator(config, configure_logging=False).run(epoch_inputs)

        # 2024 takes 2010's values where they are valid
        assert np.array_equal(out.smoothed["2024"].values, out.smoothed["2010"].values)
