import logging

from config import LoadingParams, SimulationConfig
from controller import StateController
from formations import Bounds
from particle import ParticleSystem
from states import TickContext

BOUNDS = Bounds(400.0, 300.0)
FAST_LOADING = LoadingParams(rotations=0.5, rotation_speed=0.5)


def make_controller(**overrides):
    config = SimulationConfig(seed=2, particle_count=10, loading=FAST_LOADING, **overrides)
    system = ParticleSystem(config, BOUNDS)
    system.populate(config.particle_count)
    controller = StateController(system)
    controller.start(TickContext(config, BOUNDS, 0.0))
    return config, controller


def run(controller, config, start, ticks, dt=0.1):
    """Advances the controller through `ticks` ticks and returns the visited state names."""
    visited = [controller.current_name]
    for i in range(1, ticks + 1):
        ctx = TickContext(config, BOUNDS, start + i * dt)
        controller.current.update(ctx)
        controller.system.integrate(config.max_speed, controller.current.wrap_vertical)
        controller.advance(ctx)
        if controller.current_name != visited[-1]:
            visited.append(controller.current_name)
    return visited


def test_starts_in_loading_then_grid():
    config, controller = make_controller()
    assert controller.current_name == "loading"
    assert run(controller, config, 0.0, 100)[:2] == ["loading", "grid"]
    assert len(controller.system) == 10


def test_single_state_starts_directly_and_never_leaves():
    config, controller = make_controller(single_state="wave", state_durations={"wave": 0.5})
    assert run(controller, config, 0.0, 50) == ["wave"]


def test_successor_cycles_and_falls_back():
    config, controller = make_controller()
    ctx = TickContext(config, BOUNDS, 0.0)
    assert controller.successor("grid", ctx) == "wave"
    assert controller.successor("flock", ctx) == "grid"
    assert controller.successor("loading", ctx) == "grid"
    assert controller.successor("circles", ctx) == "grid"


def test_transition_sets_start_time_and_calls_exit_enter():
    config, controller = make_controller()
    assert controller.transition_to("flock", TickContext(config, BOUNDS, 4.0))
    assert controller.current_name == "flock"
    assert controller.current.start_time == 4.0
    assert controller.elapsed(5.5) == 1.5


def test_unknown_state_is_a_logged_no_op(caplog):
    config, controller = make_controller()
    controller.transition_to("grid", TickContext(config, BOUNDS, 0.0))
    before = controller.current
    with caplog.at_level(logging.ERROR):
        assert not controller.transition_to("bogus", TickContext(config, BOUNDS, 1.0))
    assert controller.current is before
    assert "Unknown state 'bogus'" in caplog.text


def test_request_is_applied_at_next_advance():
    config, controller = make_controller(auto_cycle=False)
    controller.transition_to("grid", TickContext(config, BOUNDS, 0.0))
    controller.request("circles")
    assert controller.current_name == "grid"
    assert controller.advance(TickContext(config, BOUNDS, 0.1))
    assert controller.current_name == "circles"

    controller.request_next()
    controller.advance(TickContext(config, BOUNDS, 0.2))
    assert controller.current_name == "grid"


def test_auto_cycle_off_keeps_state():
    config, controller = make_controller(auto_cycle=False, state_durations={"grid": 0.1})
    controller.transition_to("grid", TickContext(config, BOUNDS, 0.0))
    assert not controller.advance(TickContext(config, BOUNDS, 10.0))
    assert controller.current_name == "grid"


def test_custom_sequence_with_wander():
    config, controller = make_controller(
        state_sequence=("grid", "wander", "circles"),
        state_durations={"grid": 0.5, "wander": 0.5, "circles": 0.5},
    )
    visited = run(controller, config, 0.0, 120)
    assert visited[:5] == ["loading", "grid", "wander", "circles", "grid"]


def test_reenter_keeps_start_time_and_population():
    config, controller = make_controller()
    controller.transition_to("grid", TickContext(config, BOUNDS, 2.0))
    state = controller.current
    controller.reenter(TickContext(config, Bounds(800.0, 600.0), 3.0))
    assert controller.current is state
    assert state.start_time == 2.0
    assert len(controller.system) == 10
