import numpy as np
import pytest

from src.grid_world.grid_world import create_grid


@pytest.fixture
def grid():
    return create_grid(step_reward=-0.04)


@pytest.fixture
def rng():
    return np.random.default_rng(seed=0)
