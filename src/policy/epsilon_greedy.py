"""
Action selection over a cell's action-values Q(s, .)

- greedy: the action with the highest Q, exact ties broken uniformly at
  random so that no direction is favoured by iteration order
- epsilon-greedy: with probability epsilon a uniform action from all four
  (the greedy one included), otherwise greedy
"""

from __future__ import annotations
import numpy as np
from typing import Optional

from src.grid_world.grid_world import ACTIONS, Cell


def greedy_action(cell: Cell, rng: Optional[np.random.Generator] = None) -> str:
    assert cell.is_learnable, f"no policy at {cell.type} cell ({cell.row}, {cell.col})"
    if rng is None:
        rng = np.random.default_rng()
    values = np.array([cell.q_values[a] for a in ACTIONS])
    best_actions = np.flatnonzero(values == np.max(values))
    return ACTIONS[int(rng.choice(best_actions))]


def epsilon_greedy_action(cell: Cell,
                          epsilon: float,
                          rng: Optional[np.random.Generator] = None) -> str:
    assert cell.is_learnable, f"no policy at {cell.type} cell ({cell.row}, {cell.col})"
    if rng is None:
        rng = np.random.default_rng()
    if rng.random() < epsilon:
        return ACTIONS[int(rng.integers(len(ACTIONS)))]  # explore
    return greedy_action(cell, rng)  # exploit
