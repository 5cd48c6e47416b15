from __future__ import annotations
import numpy as np
from typing import Optional

from src.grid_world.grid_world import Cell, GridWorld, Position
from src.policy.epsilon_greedy import greedy_action


def refresh_display(cell: Cell, rng: Optional[np.random.Generator] = None) -> None:
    """utility and policy are views of q_values: V(s) = max_a Q(s,a), pi(s) = greedy."""
    cell.utility = cell.max_q()
    cell.policy = greedy_action(cell, rng)


def q_learning_update(grid: GridWorld,
                      s: Position,
                      a: str,
                      r: float,
                      s_next: Position,
                      alpha: float,
                      gamma: float,
                      rng: Optional[np.random.Generator] = None) -> GridWorld:
    """
    Off-policy control:
        Q(s,a) <- Q(s,a) + alpha * (r + gamma * max_a' Q(s',a') - Q(s,a))
    The bootstrap is 0 when s' is terminal; its reward is already in r.
    Never looks at the action the agent will actually take in s'.
    """
    cell = grid.cell(*s)
    assert cell.is_learnable, f"cannot update {cell.type} cell {s}"
    nxt = grid.cell(*s_next)
    max_q_next = 0.0 if nxt.is_terminal else nxt.max_q()

    td_target = r + gamma * max_q_next
    td_error = td_target - cell.q_values[a]
    cell.q_values[a] += alpha * td_error

    refresh_display(cell, rng)
    return grid
