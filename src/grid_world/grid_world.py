from __future__ import annotations
import copy
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

Position = Tuple[int, int]

UP, DOWN, LEFT, RIGHT = 'UP', 'DOWN', 'LEFT', 'RIGHT'
ACTIONS = (UP, DOWN, LEFT, RIGHT)
ARROWS = {UP: '↑', DOWN: '↓', LEFT: '←', RIGHT: '→'}

EMPTY, WALL, TERMINAL, START = 'EMPTY', 'WALL', 'TERMINAL', 'START'
CELL_TYPES = (EMPTY, WALL, TERMINAL, START)

# Canonical 3x4 layout, row 0 is the top row
N_ROWS, N_COLS = 3, 4
WALLS = ((1, 1),)
TERMINALS = {(0, 3): 1.0, (1, 3): -1.0}
START_POS = (2, 0)
DEFAULT_STEP_REWARD = -0.04


def zero_q_values():
    return {a: 0.0 for a in ACTIONS}


@dataclass
class Cell:
    row: int
    col: int
    type: str
    reward: float                                   # received on entering this cell
    utility: float = 0.0                            # V(s)
    q_values: Dict[str, float] = field(default_factory=zero_q_values)
    policy: Optional[str] = None                    # best action, None for walls/terminals
    visit_count: int = 0

    @property
    def is_wall(self) -> bool:
        return self.type == WALL

    @property
    def is_terminal(self) -> bool:
        return self.type == TERMINAL

    @property
    def is_learnable(self) -> bool:
        return self.type not in (WALL, TERMINAL)

    def max_q(self) -> float:
        return max(self.q_values[a] for a in ACTIONS)


@dataclass
class GridWorld:
    """
    R x C grid of cells stored row-major. Dimensions and cell types are fixed
    for the lifetime of the grid; only utility, q_values, policy and
    visit_count change.
    """
    n_rows: int
    n_cols: int
    cells: List[List[Cell]]
    start: Position

    def cell(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise IndexError(f"cell ({row}, {col}) outside {self.n_rows}x{self.n_cols} grid")
        return self.cells[row][col]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.n_rows and 0 <= col < self.n_cols

    def is_blocked(self, row: int, col: int) -> bool:
        """Out of bounds or a wall: moves into it bump back."""
        return not self.in_bounds(row, col) or self.cells[row][col].is_wall

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def copy(self) -> "GridWorld":
        return copy.deepcopy(self)

    def utilities(self) -> np.ndarray:
        return np.array([[c.utility for c in row] for row in self.cells], dtype=float)

    def rewards(self) -> np.ndarray:
        return np.array([[c.reward for c in row] for row in self.cells], dtype=float)

    def q_table(self) -> np.ndarray:
        """Q as an (n_rows, n_cols, 4) array, last axis in ACTIONS order."""
        return np.array([[[c.q_values[a] for a in ACTIONS] for c in row] for row in self.cells],
                        dtype=float)

    def policy_grid(self) -> List[List[Optional[str]]]:
        return [[c.policy for c in row] for row in self.cells]


@dataclass
class AgentState:
    row: int
    col: int
    last_action: Optional[str] = None
    total_reward: float = 0.0               # since the last respawn
    pending_action: Optional[str] = None    # a' already committed by SARSA

    @classmethod
    def at_start(cls, grid: GridWorld) -> "AgentState":
        r, c = grid.start
        return cls(row=r, col=c)

    @property
    def position(self) -> Position:
        return (self.row, self.col)


@dataclass
class AlgorithmParams:
    gamma: float = 0.9          # discount
    alpha: float = 0.1          # learning rate
    epsilon: float = 0.2        # exploration rate
    reward_step: float = DEFAULT_STEP_REWARD


def build_grid(n_rows: int,
               n_cols: int,
               walls: Iterable[Position] = (),
               terminals: Optional[Dict[Position, float]] = None,
               start: Position = (0, 0),
               step_reward: float = DEFAULT_STEP_REWARD) -> GridWorld:
    walls = set(walls)
    terminals = dict(terminals or {})
    assert n_rows > 0 and n_cols > 0, "grid needs at least one cell"
    assert start not in walls and start not in terminals, "start must be an open cell"
    assert not walls & set(terminals), "a cell cannot be both wall and terminal"

    cells = []
    for r in range(n_rows):
        row = []
        for c in range(n_cols):
            p = (r, c)
            if p in walls:
                cell = Cell(r, c, WALL, 0.0)
            elif p in terminals:
                cell = Cell(r, c, TERMINAL, float(terminals[p]))
            elif p == start:
                cell = Cell(r, c, START, step_reward)
            else:
                cell = Cell(r, c, EMPTY, step_reward)
            row.append(cell)
        cells.append(row)

    grid = GridWorld(n_rows=n_rows, n_cols=n_cols, cells=cells, start=start)
    assert sum(c.type == START for c in grid) == 1, "exactly one START cell"
    return grid


def create_grid(step_reward: float = DEFAULT_STEP_REWARD) -> GridWorld:
    """The canonical 3x4 world: wall at (1,1), +1 at (0,3), -1 at (1,3), start at (2,0)."""
    return build_grid(N_ROWS, N_COLS, walls=WALLS, terminals=TERMINALS,
                      start=START_POS, step_reward=step_reward)
