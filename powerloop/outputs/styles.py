"""
Оформление графиков: общий стиль и цвета фаз / осей.
"""

from __future__ import annotations

import matplotlib.pyplot as plt

# фазы a, b, c и оси d, q
PHASE_COLORS = ("#1f77b4", "#d62728", "#2ca02c")
DQ_COLORS = ("#9467bd", "#ff7f0e")


def apply_style() -> None:
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update(
        {
            "figure.figsize": (10, 5),
            "axes.spines.top": False,
            "axes.spines.right": False,
            "grid.alpha": 0.5,
            "lines.linewidth": 1.2,
            "legend.loc": "upper right",
        }
    )


def phase_colors() -> dict[str, str]:
    return dict(zip("abc", PHASE_COLORS))


def dq_colors() -> dict[str, str]:
    return dict(zip("dq", DQ_COLORS))


__all__ = ["apply_style", "phase_colors", "dq_colors"]
