import numpy as np
import pytest

from config import GridParams, LoadingParams, SimulationConfig
from simulation import Simulation
from vector import magnitude, vec

FAST_LOADING = LoadingParams(rotations=0.5, rotation_speed=0.5)


def test_settles_on_grid_and_stays(clock):
    config = SimulationConfig(
        seed=4, particle_count=10, max_speed=4.0, max_force=0.5, arrival_radius=50.0,
        single_state="grid", grid=GridParams(rows=2, cols=5),
    )
    sim = Simulation(config, 400, 300, clock=clock)
    assert sim.state_name == "grid"
    for p in sim.particles:
        p.position = vec(50.0, 50.0)
        p.velocity = vec()

    for _ in range(300):
        sim.step(now=clock.advance(1 / 60))
    assert all(magnitude(p.position - p.target) < 1.0 for p in sim.particles)

    for _ in range(50):
        sim.step(now=clock.advance(1 / 60))
    assert all(magnitude(p.position - p.target) < 1.0 for p in sim.particles)
    assert sim.tick_count == 350


@pytest.mark.parametrize("state", ["grid", "wave", "flock", "wander", "circles"])
def test_speed_never_exceeds_max_speed(clock, state):
    config = SimulationConfig(seed=11, particle_count=30, single_state=state)
    sim = Simulation(config, 640, 480, clock=clock)
    rng = np.random.default_rng(3)
    for _ in range(120):
        pointers = [rng.uniform([0.0, 0.0], [640.0, 480.0]) for _ in range(rng.integers(0, 3))]
        sim.step(pointers, now=clock.advance(1 / 60))
        assert all(magnitude(p.velocity) <= config.max_speed + 1e-9 for p in sim.particles)
        assert len(sim.particles) == 30


def test_timer_cycle(clock):
    config = SimulationConfig(
        seed=5, particle_count=12, loading=FAST_LOADING,
        state_durations={"grid": 1.0, "wave": 1.0, "flock": 1.0},
    )
    sim = Simulation(config, 400, 300, clock=clock)
    visited = [sim.state_name]
    for i in range(1, 201):
        sim.step(now=i * 0.1)
        if sim.state_name != visited[-1]:
            visited.append(sim.state_name)
    assert visited[:5] == ["loading", "grid", "wave", "flock", "grid"]


def test_request_next_works_in_single_state_mode(clock):
    config = SimulationConfig(seed=6, particle_count=8, single_state="grid")
    sim = Simulation(config, 400, 300, clock=clock)
    sim.request_next()
    sim.step(now=0.1)
    assert sim.state_name == "wave"
    for i in range(2, 100):
        sim.step(now=i * 0.5)
    assert sim.state_name == "wave"


def test_unknown_state_request_keeps_state(clock, caplog):
    config = SimulationConfig(seed=6, particle_count=8, single_state="grid")
    sim = Simulation(config, 400, 300, clock=clock)
    sim.request_state("bogus")
    sim.step(now=0.1)
    assert sim.state_name == "grid"
    assert "Unknown state" in caplog.text


def test_particle_count_change_rebuilds_population(clock):
    config = SimulationConfig(seed=7, particle_count=10, single_state="grid")
    sim = Simulation(config, 400, 300, clock=clock)
    sim.apply_config(config.with_overrides(particle_count=25))
    assert len(sim.particles) == 10
    sim.step(now=0.1)
    assert len(sim.particles) == 25
    assert all(p.target is not None for p in sim.particles)


def test_resize_reenters_state_and_keeps_count(clock):
    config = SimulationConfig(seed=8, particle_count=10, single_state="grid", grid=GridParams(rows=2, cols=5))
    sim = Simulation(config, 400, 300, clock=clock)
    sim.resize(800, 600, now=0.0)
    assert len(sim.particles) == 10
    targets = np.array([p.target for p in sim.particles])
    assert targets[:, 0].max() > 400.0
    assert sim.bounds.width == 800.0


def test_loading_resize_keeps_count(clock):
    config = SimulationConfig(seed=9, particle_count=15)
    sim = Simulation(config, 400, 300, clock=clock)
    assert sim.state_name == "loading"
    sim.resize(300, 500, now=0.0)
    assert len(sim.particles) == 15


def test_seeded_runs_are_reproducible(clock):
    config = SimulationConfig(seed=10, particle_count=20, single_state="flock")
    first = Simulation(config, 400, 300, clock=clock)
    second = Simulation(config, 400, 300, clock=clock)
    for i in range(1, 60):
        first.step(now=i / 60)
        second.step(now=i / 60)
    assert np.array_equal(first.particles.snapshot().positions, second.particles.snapshot().positions)


def test_frame_exposes_trails_only_when_enabled(clock):
    flock = Simulation(SimulationConfig(seed=1, particle_count=5, single_state="flock"), 400, 300, clock=clock)
    for i in range(1, 5):
        flock.step(now=i / 60)
    frame = flock.frame()
    assert frame.state == "flock"
    assert frame.draw_trails
    assert len(frame.particles) == 5
    assert all(len(view.trail) > 0 for view in frame.particles)

    grid = Simulation(SimulationConfig(seed=1, particle_count=5, single_state="grid"), 400, 300, clock=clock)
    grid.step(now=0.1)
    assert not grid.frame().draw_trails


def test_mean_speed(clock):
    sim = Simulation(SimulationConfig(seed=1, particle_count=4, single_state="grid"), 400, 300, clock=clock)
    for p in sim.particles:
        p.velocity = vec(3.0, 4.0)
    assert sim.mean_speed() == pytest.approx(5.0)


def test_resting_pointer_tilts_flock_without_repelling(clock):
    config = SimulationConfig(seed=12, particle_count=8, single_state="flock")
    calm = Simulation(config, 400, 300, clock=clock)
    windy = Simulation(config, 400, 300, clock=clock)
    calm.step(now=0.1)
    windy.step(now=0.1, present=[(200.0, 0.0)])
    shift = windy.particles.snapshot().velocities - calm.particles.snapshot().velocities
    assert not np.allclose(shift, 0.0)
    assert (shift[:, 1] <= 1e-9).all()


def test_present_defaults_to_active_pointers(clock):
    config = SimulationConfig(seed=13, particle_count=8, single_state="flock")
    first = Simulation(config, 400, 300, clock=clock)
    second = Simulation(config, 400, 300, clock=clock)
    first.step([(100.0, 100.0)], now=0.1)
    second.step([(100.0, 100.0)], now=0.1, present=[(100.0, 100.0)])
    assert np.array_equal(first.particles.snapshot().positions, second.particles.snapshot().positions)
