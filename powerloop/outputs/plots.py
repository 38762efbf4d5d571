"""
Построение графиков по результатам симуляции, сохранённым в NPZ.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from powerloop.outputs.styles import apply_style, dq_colors, phase_colors  # noqa: E402

# (ключ в NPZ, подпись, цвет, стиль линии)
Trace = Tuple[str, str, str, str]


def _figure_path(prefix: str, directory: Path, run_idx: int | None) -> Path:
    """<prefix>_<n>.png; номер прогона используется, если файл ещё свободен."""
    if run_idx is not None and not (directory / f"{prefix}_{run_idx}.png").exists():
        return directory / f"{prefix}_{run_idx}.png"
    n = 1
    while (directory / f"{prefix}_{n}.png").exists():
        n += 1
    return directory / f"{prefix}_{n}.png"


def _read_meta(data: Dict[str, np.ndarray]) -> dict:
    if "meta" not in data:
        return {}
    raw = data["meta"].item()
    text = raw.decode("utf-8", errors="ignore") if isinstance(raw, bytes) else str(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {}


def _meta_caption(meta: dict) -> str:
    if not meta:
        return ""
    loop = meta.get("loop", {})
    pll = meta.get("pll", {})
    plant = meta.get("plant", {})
    notch = meta.get("notch", {})
    return "\n".join(
        [
            f"compensator: {loop.get('compensator', '?')}, dt: {loop.get('dt', '?')} s",
            f"PLL f_nom: {pll.get('f_nominal', '?')} Hz, notch: {'on' if notch.get('enabled') else 'off'}",
            f"grid: {plant.get('grid_f', '?')} Hz, Vdc: {plant.get('vdc', '?')} V",
        ]
    )


def _run_index(result_path: Path) -> int | None:
    m = re.search(r"_(\d+)$", result_path.stem)
    return int(m.group(1)) if m else None


def _plot_traces(
    t: np.ndarray,
    data: Dict[str, np.ndarray],
    traces: Sequence[Trace],
    ylabel: str,
    caption: str,
) -> plt.Figure:
    fig, ax = plt.subplots()
    for key, label, color, style in traces:
        ax.plot(t, data[key], label=label, color=color, linestyle=style)
    ax.set_xlabel("t, s")
    ax.set_ylabel(ylabel)
    ax.legend()
    if caption:
        ax.text(
            0.02,
            0.98,
            caption,
            transform=ax.transAxes,
            ha="left",
            va="top",
            fontsize=8,
            bbox={"facecolor": "white", "alpha": 0.8, "edgecolor": "none"},
        )
    fig.tight_layout()
    return fig


def plot_run(result_path: str | Path, save_dir: str | Path = "outputs/figures") -> List[Path]:
    """Сохранить графики dq-токов, частоты PLL, скважностей и фазных токов."""
    apply_style()
    result_path = Path(result_path)
    with np.load(result_path) as npz:
        data = {key: npz[key] for key in npz.files}
    caption = _meta_caption(_read_meta(data))
    run_idx = _run_index(result_path)

    out_dir = Path(save_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    pc = phase_colors()
    dc = dq_colors()

    figures = {
        "currents_dq": (
            [
                ("i_d", "i_d", dc["d"], "-"),
                ("i_q", "i_q", dc["q"], "-"),
                ("i_d_ref", "i_d_ref", dc["d"], "--"),
                ("i_q_ref", "i_q_ref", dc["q"], "--"),
            ],
            "Current, A",
        ),
        "pll_frequency": ([("freq", "f_pll", "black", "-")], "Frequency, Hz"),
        "duties": ([(f"duty_{ph}", f"duty_{ph}", pc[ph], "-") for ph in "abc"], "Duty"),
        "currents_abc": ([(f"i_{ph}", f"i_{ph}", pc[ph], "-") for ph in "abc"], "Current, A"),
    }

    saved: List[Path] = []
    for prefix, (traces, ylabel) in figures.items():
        fig = _plot_traces(data["t"], data, traces, ylabel, caption)
        path = _figure_path(prefix, out_dir, run_idx)
        fig.savefig(path)
        plt.close(fig)
        saved.append(path)
    return saved


__all__ = ["plot_run"]
