import matplotlib.pyplot as plt
import pytest

from src.grid_world.grid_world import AgentState, AlgorithmParams, DOWN, LEFT, RIGHT, UP
from src.simulation.simulation import (
    AUTOPLAY_INTERVAL, Q_LEARNING, SARSA, TD, VALUE_ITERATION, Simulation, rl_step,
)
from src.simulation import run

GREEDY = AlgorithmParams(gamma=0.9, alpha=0.1, epsilon=0.0, reward_step=-0.04)


def test_entering_terminal_respawns_at_start(grid, rng):
    grid.cell(0, 2).q_values[RIGHT] = 1.0
    agent = AgentState(row=0, col=2, last_action=UP, total_reward=-0.2)
    res = rl_step(grid, agent, Q_LEARNING, GREEDY, rng, stochastic=False)
    assert res.terminal
    assert (res.next_row, res.next_col) == (0, 3)
    assert res.reward == 1.0
    assert res.agent.position == grid.start
    assert res.agent.total_reward == 0.0
    assert res.agent.last_action is None


def test_agent_advances_and_accumulates(grid, rng):
    grid.cell(2, 0).q_values[RIGHT] = 1.0
    agent = AgentState.at_start(grid)
    res = rl_step(grid, agent, Q_LEARNING, GREEDY, rng, stochastic=False)
    assert not res.terminal
    assert res.agent.position == (2, 1)
    assert res.agent.last_action == RIGHT
    assert res.agent.total_reward == pytest.approx(-0.04)
    assert res.grid.cell(2, 0).visit_count == 1


def test_td_mode_updates_utility_only(grid, rng):
    grid.cell(2, 0).q_values[UP] = 1.0
    grid.cell(1, 0).utility = 0.5
    res = rl_step(grid, AgentState.at_start(grid), TD, GREEDY, rng, stochastic=False)
    cell = res.grid.cell(2, 0)
    assert cell.utility == pytest.approx(0.1 * (-0.04 + 0.9 * 0.5))
    assert cell.q_values[UP] == 1.0
    assert cell.policy is None


def test_sarsa_executes_the_committed_action(grid, rng):
    grid.cell(2, 0).q_values[RIGHT] = 1.0
    grid.cell(2, 1).q_values[UP] = 1.0
    res = rl_step(grid, AgentState.at_start(grid), SARSA, GREEDY, rng, stochastic=False)
    assert res.agent.pending_action == UP
    # bootstrapped on Q((2,1), UP) = 1.0
    assert res.grid.cell(2, 0).q_values[RIGHT] == pytest.approx(1.0 + 0.1 * (-0.04 + 0.9 * 1.0 - 1.0))

    # greedy would now pick DOWN, but a' = UP was already committed
    grid.cell(2, 1).q_values.update({UP: -5.0, DOWN: 2.0})
    res2 = rl_step(res.grid, res.agent, SARSA, GREEDY, rng, stochastic=False)
    assert res2.action == UP
    assert res2.agent.position == (2, 1)  # bumped into the wall


def test_sarsa_clears_pending_action_on_terminal(grid, rng):
    grid.cell(0, 2).q_values[RIGHT] = 1.0
    res = rl_step(grid, AgentState(row=0, col=2), SARSA, GREEDY, rng, stochastic=False)
    assert res.terminal
    assert res.agent.pending_action is None


def test_rl_step_rejects_other_modes(grid, rng):
    with pytest.raises(ValueError):
        rl_step(grid, AgentState.at_start(grid), VALUE_ITERATION, GREEDY, rng)
    with pytest.raises(ValueError):
        rl_step(grid, AgentState.at_start(grid), 'MONTE_CARLO', GREEDY, rng)


def test_simulation_value_iteration():
    sim = Simulation(mode=VALUE_ITERATION)
    assert sim.agent is None
    assert sim.step() is None
    sim.run(99)
    assert sim.iteration == 100
    assert sim.grid.cell(0, 3).utility == 1.0
    assert sim.grid.cell(0, 2).utility > sim.grid.cell(2, 0).utility


def test_switching_mode_resets():
    sim = Simulation(mode=VALUE_ITERATION, seed=0).run(10)
    sim.set_mode(Q_LEARNING)
    assert sim.iteration == 0
    assert sim.agent.position == (2, 0)
    assert all(c.utility == 0.0 for c in sim.grid)
    with pytest.raises(ValueError):
        sim.set_mode('BOGUS')


@pytest.mark.parametrize("mode", [TD, Q_LEARNING, SARSA])
def test_learning_runs_episodes(mode):
    sim = Simulation(mode=mode, seed=0).run(3000)
    assert sim.iteration == 3000
    assert sim.episodes > 0
    assert len(sim.episode_returns) == sim.episodes
    # shortest path to +1 is five moves
    assert all(g <= 1.0 - 4 * 0.04 + 1e-9 for g in sim.episode_returns)
    assert sim.grid.in_bounds(*sim.agent.position)
    assert not sim.grid.cell(*sim.agent.position).is_terminal
    assert sim.grid.cell(0, 3).q_values == {UP: 0.0, DOWN: 0.0, LEFT: 0.0, RIGHT: 0.0}
    assert sim.grid.cell(1, 1).utility == 0.0


def test_seeded_simulations_match():
    a = Simulation(mode=Q_LEARNING, seed=42).run(500)
    b = Simulation(mode=Q_LEARNING, seed=42).run(500)
    assert (a.grid.q_table() == b.grid.q_table()).all()
    assert a.agent == b.agent


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        Simulation(mode='BOGUS')


def test_cli_learning_run(capsys):
    run.main(["--mode", "Q_LEARNING", "--steps", "300", "--seed", "0"])
    out = capsys.readouterr().out
    assert "Mode: Q_LEARNING" in out
    assert "Episodes finished" in out
    assert "Utilities:" in out


def test_cli_value_iteration_with_plot(tmp_path, capsys):
    path = tmp_path / "vi.png"
    run.main(["--steps", "20", "--plot", str(path), "--verbose"])
    out = capsys.readouterr().out
    assert "VALUE_ITERATION: sweep" in out
    assert path.exists()


def test_cli_rejects_bad_delay(capsys):
    with pytest.raises(SystemExit):
        run.main(["--steps", "1", "--delay", "fast"])
    assert "--delay" in capsys.readouterr().err


def test_cli_auto_delay_uses_mode_interval(monkeypatch):
    slept = []
    monkeypatch.setattr(run.time, "sleep", slept.append)
    run.main(["--mode", "SARSA", "--steps", "3", "--seed", "0", "--delay", "auto"])
    assert slept == [AUTOPLAY_INTERVAL[SARSA]] * 3
    assert run.resolve_delay("auto", VALUE_ITERATION) == 0.5
    assert run.resolve_delay(0.25, VALUE_ITERATION) == 0.25


def test_cli_numeric_delay(monkeypatch):
    slept = []
    monkeypatch.setattr(run.time, "sleep", slept.append)
    run.main(["--steps", "2", "--delay", "0.01"])
    assert slept == [0.01, 0.01]


def test_cli_closes_its_figures(tmp_path):
    plt.close("all")
    run.main(["--mode", "Q_LEARNING", "--steps", "500", "--seed", "0",
              "--plot", str(tmp_path / "q.png"), "--curve", str(tmp_path / "curve.png")])
    assert (tmp_path / "q.png").exists()
    assert (tmp_path / "curve.png").exists()
    assert plt.get_fignums() == []
