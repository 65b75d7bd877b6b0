"""Tests for run and debug options."""

import pytest

from sagasim import ConfigurationError, DebugOptions, RunOptions


class TestRunOptions:
    def test_defaults(self) -> None:
        options = RunOptions()
        assert options.step_limit == 10000
        assert options.fail_on_unconfigured is True
        assert options.swallow_spawn_errors is False
        assert options.wait_for_spawned is False
        assert options.pass_on_none is False
        assert not options.debug.enabled

    def test_from_mapping_accepts_camel_case(self) -> None:
        options = RunOptions.from_mapping(
            {
                "stepLimit": 50,
                "failOnUnconfigured": False,
                "swallowSpawnErrors": True,
                "waitForSpawned": True,
                "passOnUndefined": True,
            }
        )
        assert options == RunOptions(
            step_limit=50,
            fail_on_unconfigured=False,
            swallow_spawn_errors=True,
            wait_for_spawned=True,
            pass_on_none=True,
        )

    def test_from_mapping_passes_instances_through(self) -> None:
        options = RunOptions(step_limit=3)
        assert RunOptions.from_mapping(options) is options
        assert RunOptions.from_mapping(None) == RunOptions()

    def test_unknown_keys(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown option 'stepLimits'"):
            RunOptions.from_mapping({"stepLimits": 3})

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"step_limit": 0},
            {"step_limit": True},
            {"step_limit": "10"},
            {"wait_for_spawned": "yes"},
            {"pass_on_none": 1},
        ],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ConfigurationError, match="Error in the configuration of SagaTester"):
            RunOptions(**kwargs)

    def test_replace(self) -> None:
        options = RunOptions().replace(step_limit=7)
        assert options.step_limit == 7
        assert options.fail_on_unconfigured is True

    def test_debug_mapping_is_converted(self) -> None:
        options = RunOptions(debug={"unblock": [1, "fetch"]})
        assert options.debug == DebugOptions(unblock=[1, "fetch"])
        assert options.debug.enabled


class TestDebugOptions:
    def test_selectors(self) -> None:
        assert DebugOptions(bubble=True).enabled
        assert not DebugOptions(bubble=False).enabled
        assert DebugOptions(interrupt="save").enabled

    def test_invalid_selector(self) -> None:
        with pytest.raises(ConfigurationError, match="debug.unblock"):
            DebugOptions(unblock=[1.5])

    def test_unknown_debug_keys(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown debug options"):
            DebugOptions.from_mapping({"unblocks": True})
        with pytest.raises(ConfigurationError):
            DebugOptions.from_mapping("all")
