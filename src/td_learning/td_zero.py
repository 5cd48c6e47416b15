from __future__ import annotations

from src.grid_world.grid_world import GridWorld, Position


def td_target_value(grid: GridWorld, s_next: Position) -> float:
    """U'(s'): a terminal's own reward, otherwise the stored utility."""
    nxt = grid.cell(*s_next)
    return nxt.reward if nxt.is_terminal else nxt.utility


def td0_update(grid: GridWorld,
               s: Position,
               r: float,
               s_next: Position,
               alpha: float,
               gamma: float) -> GridWorld:
    """
    TD(0) prediction, in place on the utility of s only:
        U(s) <- U(s) + alpha * (r + gamma * U'(s') - U(s))
    """
    cell = grid.cell(*s)
    assert cell.is_learnable, f"cannot update {cell.type} cell {s}"
    td_error = r + gamma * td_target_value(grid, s_next) - cell.utility
    cell.utility += alpha * td_error
    return grid
