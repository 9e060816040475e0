"""Test config resolution and validation with Pydantic."""

import pytest
from lcrefine.contracts import InvalidConfiguration
from lcrefine.schemas import ParamConfig, UserConfig, CLIConfig, InternalConfig
from lcrefine.schemas.resolve import deep_merge, resolve_config

pytestmark = pytest.mark.unit


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_resolve_config_all_defaults(self):
        """Resolving with no user/CLI overrides uses all ParamConfig defaults."""
        config = resolve_config(ParamConfig(), None, None)

        assert isinstance(config, InternalConfig)
        assert config.grid.nodata == 255
        assert config.spatial.water_classes == [0, 1, 5, 4]
        assert config.sieve.min_patch_size == 8
        assert config.smoother.radius == 1
        assert config.consistency.change_patch_min_size == 30
        assert config.temporal.boundary_policy is None  # No default policy

    def test_user_config_overrides_param_config(self):
        """UserConfig values override ParamConfig defaults."""
        config = resolve_config(ParamConfig(), UserConfig(MIN_PATCH_SIZE=12), None)
        assert config.sieve.min_patch_size == 12

    def test_precedence_param_user_cli(self):
        """Full precedence: CLI > User > Param."""
        user = UserConfig(REFERENCE_EPOCH=2020, BOUNDARY_POLICY="passthrough", MAX_WORKERS=2)
        cli = CLIConfig(boundary_policy="forward_pair")

        config = resolve_config(ParamConfig(), user, cli)

        assert config.temporal.boundary_policy == "forward_pair"   # CLI won
        assert config.temporal.reference_epoch == "2020"           # User preserved
        assert config.execution.max_workers == 2

    def test_nested_override_keeps_siblings(self):
        user = UserConfig(spatial={"edge_buffer_distance": 3.0})
        config = resolve_config(ParamConfig(), user, None)
        assert config.spatial.edge_buffer_distance == 3.0
        assert config.spatial.river_connect_radius == 2

    def test_empty_dicts_use_defaults(self):
        config = resolve_config({}, {}, {})
        assert config.sieve.min_patch_size == 8

    def test_internal_config_is_frozen(self):
        config = resolve_config(ParamConfig(), None, None)
        with pytest.raises(Exception):
            config.sieve = None


class TestInvalidConfiguration:
    """Out-of-range values fail at resolution time with InvalidConfiguration."""

    def test_negative_radius(self):
        with pytest.raises(InvalidConfiguration, match="radius"):
            resolve_config(ParamConfig(), UserConfig(SMOOTHING_RADIUS=0), None)

    def test_threshold_above_cap(self):
        with pytest.raises(InvalidConfiguration, match="large_water_max_size"):
            resolve_config(ParamConfig(), UserConfig(LARGE_WATER_AREA_THRESHOLD=5000), None)

    def test_mmu_above_cap(self):
        with pytest.raises(InvalidConfiguration, match="max_size"):
            resolve_config(ParamConfig(), UserConfig(MIN_PATCH_SIZE=1000), None)

    def test_distance_beyond_search_radius(self):
        with pytest.raises(InvalidConfiguration, match="wetland_search_radius"):
            resolve_config(ParamConfig(), UserConfig(WETLAND_WATER_DISTANCE=2000), None)

    def test_class_code_outside_taxonomy(self):
        user = UserConfig(spatial={"lake_class": 20})
        with pytest.raises(InvalidConfiguration, match="lake_class"):
            resolve_config(ParamConfig(), user, None)

    def test_nodata_collides_with_class_code(self):
        with pytest.raises(InvalidConfiguration, match="nodata"):
            resolve_config(ParamConfig(), UserConfig(NODATA=3), None)

    def test_reference_epoch_must_be_an_input(self):
        user = UserConfig(
            EPOCHS={2000: {"primary": "a.nc", "slope": "s.nc", "twi": "t.nc"}},
            REFERENCE_EPOCH=2024,
        )
        with pytest.raises(InvalidConfiguration, match="reference_epoch"):
            resolve_config(ParamConfig(), user, None)

    def test_unknown_nested_key_rejected(self):
        with pytest.raises(InvalidConfiguration):
            resolve_config(ParamConfig(), UserConfig(spatial={"not_a_field": 1}), None)

    def test_error_carries_stage(self):
        with pytest.raises(InvalidConfiguration) as exc:
            resolve_config(ParamConfig(), UserConfig(SMOOTHING_RADIUS=0), None)
        assert exc.value.stage == "config"


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1}}
    merged = deep_merge(base, {"a": {"c": 2}})
    assert merged == {"a": {"b": 1, "c": 2}}
    assert base == {"a": {"b": 1}}
