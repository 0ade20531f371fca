import pytest

from config import SimulationConfig
from formations import Bounds
from particle import ParticleSystem


class FakeClock:
    """Manually advanced time source for Simulation."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bounds():
    return Bounds(400.0, 300.0)


def make_system(count=10, bounds=Bounds(400.0, 300.0), **overrides):
    config = SimulationConfig(seed=1, particle_count=count, **overrides)
    system = ParticleSystem(config, bounds)
    system.populate(count)
    return config, system
