from __future__ import annotations
import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from typing import Optional

from src.grid_world.grid_world import ARROWS, AgentState, GridWorld

# ---------- Pretty printers ----------
def show_policy(grid: GridWorld, agent: Optional[AgentState] = None) -> str:
    rows = []
    for r in range(grid.n_rows):
        row = []
        for c in range(grid.n_cols):
            cell = grid.cells[r][c]
            if agent is not None and agent.position == (r, c):
                row.append('A')
            elif cell.is_wall:
                row.append('#')
            elif cell.is_terminal:
                row.append('T')
            else:
                row.append(ARROWS[cell.policy] if cell.policy else '.')
        rows.append(' '.join(row))
    return '\n'.join(rows)


def show_values(grid: GridWorld, prec: int = 2) -> str:
    width = prec + 4
    out = []
    for row in grid.cells:
        out.append(' '.join('#'.center(width) if c.is_wall else f"{c.utility: {width}.{prec}f}"
                            for c in row))
    return '\n'.join(out)


# ---------- Figures ----------
def plot_grid(grid: GridWorld,
              agent: Optional[AgentState] = None,
              path: Optional[str] = None,
              title: str = "Utilities"):
    """Utility heatmap with policy arrows. Walls are masked out."""
    U = grid.utilities()
    walls = np.array([[c.is_wall for c in row] for row in grid.cells])
    masked = np.ma.masked_array(U, mask=walls)

    fig, ax = plt.subplots(figsize=(1.6 * grid.n_cols + 1, 1.6 * grid.n_rows))
    cmap = matplotlib.colormaps['RdYlGn'].with_extremes(bad='dimgray')
    im = ax.imshow(masked, cmap=cmap, vmin=-1.0, vmax=1.0)

    for cell in grid:
        r, c = cell.row, cell.col
        if cell.is_wall:
            continue
        if cell.is_terminal:
            ax.text(c, r, f"{cell.reward:+g}", ha='center', va='center', fontsize=16, fontweight='bold')
            continue
        ax.text(c + 0.4, r - 0.35, f"{cell.utility:.2f}", ha='right', va='top', fontsize=8)
        if cell.policy:
            ax.text(c, r, ARROWS[cell.policy], ha='center', va='center', fontsize=22, alpha=0.4)
        if (r, c) == grid.start:
            ax.text(c - 0.4, r - 0.35, "START", ha='left', va='top', fontsize=7)

    if agent is not None:
        ax.plot(agent.col, agent.row, 'o', color='black', markersize=18)

    ax.set_xticks(range(grid.n_cols))
    ax.set_yticks(range(grid.n_rows))
    ax.set_title(title)
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=150)
    return fig


def moving_average(xs, k=20):
    xs = np.asarray(xs, dtype=float)
    if len(xs) == 0:
        return xs
    k = max(1, min(k, len(xs)))
    csum = np.cumsum(np.insert(xs, 0, 0.0))
    out = np.empty(len(xs))
    for i in range(len(xs)):
        lo = max(0, i + 1 - k)
        out[i] = (csum[i + 1] - csum[lo]) / (i + 1 - lo)
    return out


def plot_returns(returns, path=None, window=20, title="Return per episode"):
    fig, ax = plt.subplots()
    ax.plot(returns, alpha=0.3, label='return')
    ax.plot(moving_average(returns, window), label=f'{window}-episode moving avg')
    ax.set_xlabel('Episode')
    ax.set_ylabel('Return')
    ax.set_title(title)
    ax.legend()
    ax.grid(True)
    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=150)
    return fig
