from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from src.grid_world.grid_world import AgentState, AlgorithmParams, GridWorld, create_grid
from src.grid_world.transitions import compute_next_cell
from src.policy.epsilon_greedy import epsilon_greedy_action
from src.q_learning.q_learning import q_learning_update
from src.sarsa.sarsa import sarsa_update
from src.td_learning.td_zero import td0_update
from src.value_iteration.value_iteration import value_iteration_step

VALUE_ITERATION, TD, Q_LEARNING, SARSA = 'VALUE_ITERATION', 'TD', 'Q_LEARNING', 'SARSA'
MODES = (VALUE_ITERATION, TD, Q_LEARNING, SARSA)
LEARNING_MODES = (TD, Q_LEARNING, SARSA)

# seconds between auto-play ticks
AUTOPLAY_INTERVAL = {VALUE_ITERATION: 0.5, TD: 0.1, Q_LEARNING: 0.1, SARSA: 0.1}


def check_mode(mode: str) -> str:
    if mode not in MODES:
        raise ValueError(f"unknown mode {mode!r}, expected one of {', '.join(MODES)}")
    return mode


@dataclass
class StepResult:
    grid: GridWorld
    agent: AgentState       # state for the next step (already respawned if terminal)
    action: str
    reward: float
    next_row: int
    next_col: int
    terminal: bool


def rl_step(grid: GridWorld,
            agent: AgentState,
            mode: str,
            params: AlgorithmParams,
            rng: Optional[np.random.Generator] = None,
            stochastic: bool = True) -> StepResult:
    """
    One learning tick:
      choose a (epsilon-greedy) -> slip-prone move -> reward of the cell
      entered -> TD(0) / Q-learning / SARSA update of s -> advance the agent,
      or respawn it on START with zero return when s' is terminal.
    """
    if check_mode(mode) not in LEARNING_MODES:
        raise ValueError(f"rl_step does not run {mode}")
    if rng is None:
        rng = np.random.default_rng()

    s = agent.position
    cell = grid.cell(*s)

    if mode == SARSA and agent.pending_action is not None:
        action = agent.pending_action
    else:
        action = epsilon_greedy_action(cell, params.epsilon, rng)

    next_row, next_col = compute_next_cell(grid, agent.row, agent.col, action, stochastic, rng)
    s_next = (next_row, next_col)
    next_cell = grid.cell(*s_next)
    reward = next_cell.reward
    terminal = next_cell.is_terminal

    pending = None
    if mode == TD:
        grid = td0_update(grid, s, reward, s_next, params.alpha, params.gamma)
    elif mode == Q_LEARNING:
        grid = q_learning_update(grid, s, action, reward, s_next, params.alpha, params.gamma, rng)
    else:
        # a' is picked before the update and then executed on the next tick
        if not terminal:
            pending = epsilon_greedy_action(next_cell, params.epsilon, rng)
        grid = sarsa_update(grid, s, action, reward, s_next, pending, params.alpha, params.gamma, rng)
    cell.visit_count += 1

    if terminal:
        new_agent = AgentState.at_start(grid)
    else:
        new_agent = AgentState(row=next_row, col=next_col, last_action=action,
                               total_reward=agent.total_reward + reward,
                               pending_action=pending)
    return StepResult(grid=grid, agent=new_agent, action=action, reward=reward,
                      next_row=next_row, next_col=next_col, terminal=terminal)


@dataclass
class Simulation:
    """
    Owns the grid, the agent and the active mode. Each call to `step` runs to
    completion before the next one starts; nothing here is thread-safe.
    """
    mode: str = VALUE_ITERATION
    params: AlgorithmParams = field(default_factory=AlgorithmParams)
    seed: Optional[int] = None
    stochastic: bool = True

    grid: GridWorld = field(init=False)
    agent: Optional[AgentState] = field(init=False, default=None)
    iteration: int = field(init=False, default=0)
    episodes: int = field(init=False, default=0)
    episode_returns: List[float] = field(init=False, default_factory=list)
    last_step: Optional[StepResult] = field(init=False, default=None)

    def __post_init__(self):
        check_mode(self.mode)
        self.rng = np.random.default_rng(seed=self.seed)
        self.reset()

    def reset(self) -> None:
        self.grid = create_grid(self.params.reward_step)
        self.iteration = 0
        self.episodes = 0
        self.episode_returns = []
        self.last_step = None
        self.agent = AgentState.at_start(self.grid) if self.mode in LEARNING_MODES else None

    def set_mode(self, mode: str) -> None:
        # switching algorithms always starts from a fresh grid
        self.mode = check_mode(mode)
        self.reset()

    def step(self) -> Optional[StepResult]:
        if self.mode == VALUE_ITERATION:
            self.grid = value_iteration_step(self.grid, self.params.gamma)
            self.iteration += 1
            return None

        result = rl_step(self.grid, self.agent, self.mode, self.params,
                         rng=self.rng, stochastic=self.stochastic)
        if result.terminal:
            self.episodes += 1
            self.episode_returns.append(self.agent.total_reward + result.reward)
        self.grid = result.grid
        self.agent = result.agent
        self.last_step = result
        self.iteration += 1
        return result

    def run(self, n_steps: int) -> "Simulation":
        for _ in range(n_steps):
            self.step()
        return self
