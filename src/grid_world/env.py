from __future__ import annotations
import gymnasium as gym
from gymnasium import spaces
from typing import Dict, List, Optional, Tuple

from src.grid_world.grid_world import ACTIONS, AgentState, GridWorld, create_grid
from src.grid_world.render import show_policy
from src.grid_world.transitions import compute_next_cell, move, outcomes

# P[s][a] = list of (prob, next_state, reward, done)
Transitions = Dict[int, Dict[int, List[Tuple[float, int, float, bool]]]]


def to_s(grid, r, c):
    return r * grid.n_cols + c


def to_rc(grid, s):
    return divmod(s, grid.n_cols)


def transition_table(grid: GridWorld) -> Transitions:
    """
    Tabular model of the slip dynamics. Outcomes that land in the same cell
    are merged; terminals are absorbing with zero reward. Walls get a
    self-loop so the table stays total.
    """
    nS = grid.n_rows * grid.n_cols
    P: Transitions = {s: {ai: [] for ai in range(len(ACTIONS))} for s in range(nS)}
    for cell in grid:
        s = to_s(grid, cell.row, cell.col)
        for ai, a in enumerate(ACTIONS):
            if cell.is_terminal or cell.is_wall:
                P[s][ai] = [(1.0, s, 0.0, cell.is_terminal)]
                continue
            agg = {}
            for p, aa in outcomes(a):
                s_next = move(grid, cell.row, cell.col, aa)
                agg[s_next] = agg.get(s_next, 0.0) + p
            entries = []
            for (nr, nc), p in agg.items():
                nxt = grid.cells[nr][nc]
                entries.append((p, to_s(grid, nr, nc), nxt.reward, nxt.is_terminal))
            P[s][ai] = entries
    return P


class GridWorldEnv(gym.Env):
    """
    gymnasium view of a GridWorld. Observations are row-major cell indices,
    actions index into ACTIONS. The reward is that of the cell entered and
    the episode terminates on entering a terminal.
    """
    metadata = {"render_modes": ["ansi"]}

    def __init__(self,
                 grid: Optional[GridWorld] = None,
                 stochastic: bool = True,
                 max_steps: Optional[int] = None,
                 render_mode: Optional[str] = None):
        super().__init__()
        self.grid = grid if grid is not None else create_grid()
        self.stochastic = stochastic
        self.max_steps = max_steps
        self.render_mode = render_mode

        self.observation_space = spaces.Discrete(self.grid.n_rows * self.grid.n_cols)
        self.action_space = spaces.Discrete(len(ACTIONS))
        self.P = transition_table(self.grid)
        self.pos = self.grid.start
        self.steps = 0

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)
        self.pos = self.grid.start
        self.steps = 0
        return to_s(self.grid, *self.pos), {}

    def step(self, action: int):
        r, c = self.pos
        a = ACTIONS[int(action)]
        self.pos = compute_next_cell(self.grid, r, c, a, self.stochastic, self.np_random)
        self.steps += 1

        cell = self.grid.cell(*self.pos)
        terminated = cell.is_terminal
        truncated = self.max_steps is not None and self.steps >= self.max_steps and not terminated
        return to_s(self.grid, *self.pos), cell.reward, terminated, truncated, {"action": a}

    def render(self):
        if self.render_mode == "ansi":
            return show_policy(self.grid, AgentState(*self.pos))
        return None
