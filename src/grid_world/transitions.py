from __future__ import annotations
import numpy as np
from typing import List, Optional, Tuple

from src.grid_world.grid_world import GridWorld, Position, UP, DOWN, LEFT, RIGHT

A2DELTA = {UP: (-1, 0), DOWN: (1, 0), LEFT: (0, -1), RIGHT: (0, 1)}
LEFT_OF  = {UP: LEFT, LEFT: DOWN, DOWN: RIGHT, RIGHT: UP}
RIGHT_OF = {UP: RIGHT, RIGHT: DOWN, DOWN: LEFT, LEFT: UP}

P_INTEND = 0.8
P_SLIP = 0.1    # each of the two orthogonal actions


def orthogonal_actions(action: str) -> Tuple[str, str]:
    """(LEFT, RIGHT) for vertical actions, (UP, DOWN) for horizontal ones."""
    if action in (UP, DOWN):
        return (LEFT, RIGHT)
    return (UP, DOWN)


def outcomes(action: str) -> List[Tuple[float, str]]:
    """Executed action for an intended one: list of (prob, action)."""
    o1, o2 = orthogonal_actions(action)
    return [(P_INTEND, action), (P_SLIP, o1), (P_SLIP, o2)]


def move(grid: GridWorld, row: int, col: int, action: str) -> Position:
    """One-step deterministic move; bounds and walls keep you in place."""
    dr, dc = A2DELTA[action]
    nr, nc = row + dr, col + dc
    if grid.is_blocked(nr, nc):
        return (row, col)
    return (nr, nc)


def sample_action(action, rng):
    u = rng.random()
    if u < P_INTEND:
        return action
    o1, o2 = orthogonal_actions(action)
    return o1 if u < P_INTEND + P_SLIP else o2


def compute_next_cell(grid: GridWorld,
                      row: int,
                      col: int,
                      action: str,
                      stochastic: bool = True,
                      rng: Optional[np.random.Generator] = None) -> Position:
    """
    Cell occupied after trying `action` from (row, col).
    Stochastic mode slips to an orthogonal action with prob 0.1 each, using
    a single draw from `rng`. Rewards are read by the caller from the cell
    finally occupied.
    """
    if stochastic:
        if rng is None:
            rng = np.random.default_rng()
        action = sample_action(action, rng)
    return move(grid, row, col, action)
