from __future__ import annotations
import numpy as np
from typing import Dict, List, Tuple

from src.grid_world.grid_world import ACTIONS, GridWorld, create_grid
from src.grid_world.transitions import move, outcomes


def action_expectations(grid: GridWorld, row: int, col: int) -> Dict[str, float]:
    """E[U(s')] for each intended action: sum over the 0.8/0.1/0.1 outcomes."""
    expected = {}
    for a in ACTIONS:
        val = 0.0
        for p, aa in outcomes(a):
            nr, nc = move(grid, row, col, aa)
            val += p * grid.cells[nr][nc].utility
        expected[a] = val
    return expected


def value_iteration_step(grid: GridWorld, gamma: float) -> GridWorld:
    """
    One synchronous Bellman optimality backup:
        U'(s) = R(s) + gamma * max_a sum_s' P(s'|s,a) U(s')
    Every new utility is computed from `grid` (the previous sweep), never
    from values already updated in this sweep. Returns a new grid; the input
    is left untouched.
    """
    new_grid = grid.copy()
    for cell in grid:
        if cell.is_wall:
            continue
        target = new_grid.cells[cell.row][cell.col]
        if cell.is_terminal:
            # no lookahead through a terminal
            target.utility = cell.reward
            continue

        best = -np.inf
        best_a = None
        for a, q in action_expectations(grid, cell.row, cell.col).items():
            if q > best:  # first found wins ties
                best = q
                best_a = a
        target.utility = cell.reward + gamma * best
        target.policy = best_a
    return new_grid


def value_iteration(grid: GridWorld, gamma: float, n_sweeps: int) -> Tuple[GridWorld, List[float]]:
    """
    Run `n_sweeps` backups. There is no stopping criterion; the returned
    max-norm changes per sweep are for inspection only.
    """
    deltas = []
    for _ in range(n_sweeps):
        new_grid = value_iteration_step(grid, gamma)
        deltas.append(float(np.max(np.abs(new_grid.utilities() - grid.utilities()))))
        grid = new_grid
    return grid, deltas


if __name__ == "__main__":
    from src.grid_world.render import show_policy, show_values

    gamma = 0.9
    grid, deltas = value_iteration(create_grid(step_reward=-0.04), gamma=gamma, n_sweeps=100)
    print(f"sweeps: {len(deltas)}, final Δ: {deltas[-1]:.3e}")
    print("Policy after value iteration:")
    print(show_policy(grid))
    print("\nUtilities after value iteration:")
    print(show_values(grid, prec=3))
