import logging

import pytest

from config import PRESETS, FlockParams, GridParams, RepulsionParams, SimulationConfig
from constants import DEFAULT_SEQUENCE, FLOCK, GRID, LOADING, WAVE


def test_defaults():
    config = SimulationConfig()
    assert config.particle_count == 72
    assert config.state_sequence == DEFAULT_SEQUENCE
    assert config.duration(LOADING) is None
    assert config.duration(GRID) == 12.0
    assert config.trail_length(FLOCK) == 10
    assert config.trail_length(GRID) == 0


def test_out_of_range_values_are_clamped_and_logged(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig(max_speed=-3.0, particle_count=0, arrival_min_fraction=2.0)
    assert config.max_speed == 0.0
    assert config.particle_count == 1
    assert config.arrival_min_fraction == 1.0
    assert "out of range" in caplog.text


def test_invalid_value_falls_back_to_default(caplog):
    with caplog.at_level(logging.WARNING):
        params = RepulsionParams(radius="wide")
    assert params.radius == 300.0
    assert "not a valid" in caplog.text


def test_exponent_is_at_least_one():
    assert RepulsionParams(exponent=0.2).exponent == 1.0


def test_config_is_immutable():
    config = SimulationConfig()
    with pytest.raises(Exception):
        config.max_speed = 10.0
    with pytest.raises(TypeError):
        config.state_durations[GRID] = 1.0


def test_sequence_filters_loading_and_unknown_states():
    config = SimulationConfig(state_sequence=(LOADING, GRID, "bogus", FLOCK))
    assert config.state_sequence == (GRID, FLOCK)
    assert SimulationConfig(state_sequence=()).state_sequence == DEFAULT_SEQUENCE


def test_unknown_single_state_is_dropped():
    assert SimulationConfig(single_state="bogus").single_state is None
    assert SimulationConfig(single_state=WAVE).single_state == WAVE


def test_durations_merge_with_defaults():
    config = SimulationConfig(state_durations={GRID: 3.0, WAVE: None})
    assert config.duration(GRID) == 3.0
    assert config.duration(WAVE) is None
    assert config.duration(FLOCK) == 12.0


def test_from_dict_builds_sections(caplog):
    params = {
        "seed": 7,
        "max_force": 1.5,
        "grid": {"rows": 2, "cols": 5, "shuffle": False},
        "state_sequence": ["grid", "flock"],
        "mystery": 1,
    }
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_dict(params)
    assert config.seed == 7
    assert config.max_force == 1.5
    assert config.grid == GridParams(rows=2, cols=5, shuffle=False)
    assert config.state_sequence == (GRID, FLOCK)
    assert "mystery" in caplog.text


def test_unknown_section_key_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_dict({"wave": {"amplitude": 50.0, "colour": "red"}})
    assert config.wave.amplitude == 50.0
    assert "colour" in caplog.text


def test_mobile_preset():
    config = SimulationConfig.from_dict({}, preset="mobile")
    assert config.particle_count == PRESETS["mobile"]["particle_count"]
    assert config.max_speed == 7.0
    assert config.grid.cols == 4
    assert config.wave.orientation == "vertical"
    assert config.repulsion.radius == 400.0


def test_file_values_override_preset():
    config = SimulationConfig.from_dict({"preset": "mobile", "particle_count": 30, "grid": {"cols": 6}})
    assert config.particle_count == 30
    assert config.grid.cols == 6
    assert config.grid.margin_x == 0.0


def test_unknown_preset_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_dict({}, preset="television")
    assert config.particle_count == 72
    assert "Unknown preset" in caplog.text


def test_with_overrides_returns_new_snapshot():
    config = SimulationConfig(seed=1)
    changed = config.with_overrides(auto_cycle=False, particle_count=5)
    assert config.auto_cycle is True
    assert changed.auto_cycle is False
    assert changed.particle_count == 5
    assert changed.seed == 1


def test_invalid_durations_fall_back_to_defaults(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig(state_durations={GRID: "fast", WAVE: float("inf"), FLOCK: 4})
    assert config.duration(GRID) == 12.0
    assert config.duration(WAVE) == 12.0
    assert config.duration(FLOCK) == 4.0
    assert "duration 'fast'" in caplog.text


def test_invalid_trail_lengths_fall_back_to_defaults(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig(trail_lengths={FLOCK: "long", GRID: 3})
    assert config.trail_length(FLOCK) == 10
    assert config.trail_length(GRID) == 3
    assert "trail length 'long'" in caplog.text


def test_non_mapping_durations_and_trails_are_ignored():
    config = SimulationConfig(state_durations=5, trail_lengths=["flock"])
    assert config.duration(GRID) == 12.0
    assert config.trail_length(FLOCK) == 10


@pytest.mark.parametrize("value", [3, "grid", None, 7.5])
def test_non_mapping_section_uses_defaults(caplog, value):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_dict({"flock": value, "max_speed": 6.0})
    assert config.flock == FlockParams()
    assert config.max_speed == 6.0
    assert "section 'flock' must be a mapping" in caplog.text


@pytest.mark.parametrize("value", [5, "grid", None, {"grid": 1}])
def test_non_list_state_sequence_falls_back(caplog, value):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_dict({"state_sequence": value})
    assert config.state_sequence == DEFAULT_SEQUENCE


def test_non_string_entries_are_dropped_from_sequence():
    config = SimulationConfig.from_dict({"state_sequence": ["grid", 3, ["wave"], "flock"]})
    assert config.state_sequence == (GRID, FLOCK)


def test_bad_scalars_never_raise():
    config = SimulationConfig.from_dict({
        "particle_count": 1e400,
        "seed": "abc",
        "single_state": ["grid"],
        "preset": ["mobile"],
    })
    assert config.particle_count == 72
    assert config.seed is None
    assert config.single_state is None


def test_from_dict_accepts_non_mapping_params():
    assert SimulationConfig.from_dict(None).particle_count == 72


@pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
def test_booleans_must_be_real_booleans(caplog, value):
    with caplog.at_level(logging.WARNING):
        grid = GridParams(shuffle=value)
        config = SimulationConfig(auto_cycle=value)
    assert grid.shuffle is True
    assert config.auto_cycle is True
    assert "is not a boolean" in caplog.text


def test_real_booleans_are_kept():
    assert GridParams(shuffle=False).shuffle is False
    assert SimulationConfig.from_dict({"auto_cycle": False}).auto_cycle is False
