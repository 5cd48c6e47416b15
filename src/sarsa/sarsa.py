

# SARSA is an on-policy algorithm to learn action-value fn **Q(S,A)**

from __future__ import annotations
import numpy as np
from typing import Optional

from src.grid_world.grid_world import GridWorld, Position
from src.q_learning.q_learning import refresh_display


def sarsa_update(grid: GridWorld,
                 s: Position,
                 a: str,
                 r: float,
                 s_next: Position,
                 a_next: str,
                 alpha: float,
                 gamma: float,
                 rng: Optional[np.random.Generator] = None) -> GridWorld:
    """
    SARSA update on the (s, a, r, s', a') tuple, in place:
        Q(s,a) <- Q(s,a) + alpha * (r + gamma * Q(s',a') - Q(s,a))
    a' is the action actually chosen in s' (epsilon-greedy), supplied by the
    caller. Bootstrap is 0 when s' is terminal.
    """
    cell = grid.cell(*s)
    assert cell.is_learnable, f"cannot update {cell.type} cell {s}"
    nxt = grid.cell(*s_next)
    q_next = 0.0 if nxt.is_terminal else nxt.q_values[a_next]

    td_target = r + gamma * q_next
    td_error = td_target - cell.q_values[a]
    cell.q_values[a] += alpha * td_error

    refresh_display(cell, rng)
    return grid
