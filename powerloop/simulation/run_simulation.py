"""
Reference closed-loop run: current loop + RL grid filter, results saved as NPZ.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Dict

import numpy as np
from tqdm import tqdm

from powerloop.config.env import LoopConfig, create_default_config
from powerloop.control.current_loop import VectorCurrentLoop
from powerloop.models.grid_filter import GridRlFilter

logger = logging.getLogger(__name__)

RESULT_KEYS = (
    "t",
    "v_grid",
    "i_a",
    "i_b",
    "i_c",
    "i_d",
    "i_q",
    "i_d_ref",
    "i_q_ref",
    "v_d",
    "v_q",
    "duty_a",
    "duty_b",
    "duty_c",
    "sector",
    "theta",
    "freq",
)


def simulate(config: LoopConfig | None = None, progress: bool = False) -> Dict[str, np.ndarray]:
    """Run the closed loop for ``config.sim.t_end`` seconds and return the traces."""
    if config is None:
        config = create_default_config()
    dt = config.loop.dt
    n_steps = int(round(config.sim.t_end / dt))
    loop = VectorCurrentLoop(config)
    plant = GridRlFilter(config.plant, dt)
    i_dq_ref = (config.sim.id_ref, config.sim.iq_ref)

    results = {key: np.zeros(n_steps) for key in RESULT_KEYS}
    results["sector"] = np.zeros(n_steps, dtype=np.int64)

    i_abc = plant.currents()
    logger.info("Simulating %d ticks (dt=%g s)", n_steps, dt)
    for k in tqdm(range(n_steps), desc="Simulating", leave=False, disable=not progress):
        v_grid = plant.grid_voltage().a
        out = loop.step(k, i_abc, v_grid, i_dq_ref, config.plant.vdc)

        results["t"][k] = plant.t
        results["v_grid"][k] = v_grid
        results["i_a"][k], results["i_b"][k], results["i_c"][k] = i_abc
        results["i_d"][k] = out.i_d
        results["i_q"][k] = out.i_q
        results["i_d_ref"][k] = i_dq_ref[0]
        results["i_q_ref"][k] = i_dq_ref[1]
        results["v_d"][k] = out.v_d
        results["v_q"][k] = out.v_q
        results["duty_a"][k] = out.duty_a
        results["duty_b"][k] = out.duty_b
        results["duty_c"][k] = out.duty_c
        results["sector"][k] = out.sector
        results["theta"][k] = out.theta
        results["freq"][k] = out.frequency

        i_abc = plant.step((out.duty_a, out.duty_b, out.duty_c))
    return results


def _next_data_path(results_dir: Path, prefix: str) -> Path:
    """
    Generate sequential data file path: <prefix>_1.npz, <prefix>_2.npz, ...
    """
    idx = 1
    while True:
        candidate = results_dir / f"{prefix}_{idx}.npz"
        if not candidate.exists():
            return candidate
        idx += 1


def run_simulation(
    config: LoopConfig | None = None,
    out_dir: str | Path | None = None,
    progress: bool = True,
) -> Path:
    if config is None:
        config = create_default_config()
    results = simulate(config, progress=progress)

    save_dir = Path(out_dir) if out_dir is not None else Path("outputs") / "results"
    os.makedirs(save_dir, exist_ok=True)
    save_path = _next_data_path(save_dir, config.sim.save_prefix)
    meta = json.dumps(asdict(config))
    meta_bytes = np.array(meta.encode("utf-8"), dtype=np.bytes_)
    np.savez(save_path, **results, meta=meta_bytes)
    logger.info("Saved results to %s", save_path)
    return save_path


__all__ = ["simulate", "run_simulation", "RESULT_KEYS"]
