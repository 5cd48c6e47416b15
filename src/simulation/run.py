import argparse
import time

import matplotlib.pyplot as plt

from src.grid_world.grid_world import AlgorithmParams
from src.grid_world.render import plot_grid, plot_returns, show_policy, show_values
from src.simulation.simulation import AUTOPLAY_INTERVAL, MODES, VALUE_ITERATION, Simulation

DEFAULTS = AlgorithmParams()


def delay_arg(value):
    """Seconds as a float, or 'auto' for the per-mode auto-play interval."""
    if value == "auto":
        return value
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected seconds or 'auto', got {value!r}")


def resolve_delay(delay, mode):
    return AUTOPLAY_INTERVAL[mode] if delay == "auto" else delay


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Step value iteration, TD(0), Q-learning or SARSA on the 3x4 grid world.")
    parser.add_argument("--mode", choices=MODES, default=VALUE_ITERATION)
    parser.add_argument("--steps", type=int, default=100)
    parser.add_argument("--gamma", type=float, default=DEFAULTS.gamma)
    parser.add_argument("--alpha", type=float, default=DEFAULTS.alpha)
    parser.add_argument("--epsilon", type=float, default=DEFAULTS.epsilon)
    parser.add_argument("--step-reward", type=float, default=DEFAULTS.reward_step)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--deterministic", action="store_true", help="Disable 0.8/0.1/0.1 action slip.")
    parser.add_argument("--delay", type=delay_arg, default=0.0,
                        help="Seconds between steps, or 'auto' for the per-mode auto-play pace.")
    parser.add_argument("--verbose", action="store_true", help="Print every step.")
    parser.add_argument("--plot", type=str, default=None, help="Save a utility heatmap to this path.")
    parser.add_argument("--curve", type=str, default=None, help="Save the episode-return curve to this path.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    params = AlgorithmParams(gamma=args.gamma, alpha=args.alpha,
                             epsilon=args.epsilon, reward_step=args.step_reward)
    sim = Simulation(mode=args.mode, params=params, seed=args.seed,
                     stochastic=not args.deterministic)
    delay = resolve_delay(args.delay, args.mode)

    for _ in range(args.steps):
        res = sim.step()
        if args.verbose:
            if res is None:
                print(f"[{sim.iteration:5d}] {sim.mode}: sweep, U(start)={sim.grid.cell(*sim.grid.start).utility:.4f}")
            else:
                print(f"[{sim.iteration:5d}] {sim.mode}: a={res.action:<5} r={res.reward:+.2f} "
                      f"-> ({res.next_row},{res.next_col}){'  terminal' if res.terminal else ''}")
        if delay > 0:
            time.sleep(delay)

    print(f"Mode: {sim.mode}, steps: {sim.iteration}, gamma={params.gamma}, "
          f"alpha={params.alpha}, epsilon={params.epsilon}, step reward={params.reward_step}")
    if sim.agent is not None:
        print(f"Episodes finished: {sim.episodes}")
        if sim.episode_returns:
            avg = sum(sim.episode_returns) / len(sim.episode_returns)
            print(f"Average return: {avg:.3f}")
    print("\nPolicy:")
    print(show_policy(sim.grid, sim.agent))
    print("\nUtilities:")
    print(show_values(sim.grid, prec=3))

    if args.plot:
        fig = plot_grid(sim.grid, sim.agent, path=args.plot, title=f"{sim.mode} after {sim.iteration} steps")
        plt.close(fig)
        print(f"\nSaved heatmap to '{args.plot}'")
    if args.curve:
        if sim.episode_returns:
            fig = plot_returns(sim.episode_returns, path=args.curve, title=f"{sim.mode}: return per episode")
            plt.close(fig)
            print(f"Saved learning curve to '{args.curve}'")
        else:
            print("No finished episodes, learning curve not saved")


if __name__ == "__main__":
    main()
