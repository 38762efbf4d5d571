import json
import os
from dataclasses import replace
from pathlib import Path

import numpy as np

from powerloop.config.env import CONFIG, LoopConfig
from powerloop.outputs.plots import plot_run
from powerloop.simulation.run_simulation import RESULT_KEYS, run_simulation, simulate


def short_config() -> LoopConfig:
    return replace(CONFIG, sim=replace(CONFIG.sim, t_end=0.01, save_prefix="pytest_run"))


def test_simulate_returns_all_traces():
    res = simulate(short_config())
    n = int(round(0.01 / CONFIG.loop.dt))
    for key in RESULT_KEYS:
        assert key in res
        assert len(res[key]) == n
    assert np.all((res["sector"] >= 1) & (res["sector"] <= 6))
    assert np.all(np.diff(res["t"]) > 0.0)


def test_run_simulation_saves_results(tmp_path: Path):
    path = run_simulation(short_config(), out_dir=tmp_path / "results", progress=False)
    assert path.exists()
    assert path.name == "pytest_run_1.npz"
    data = np.load(path)
    for key in ["t", "i_d", "i_q", "freq", "duty_a", "sector"]:
        assert key in data
        assert len(data[key]) > 0
    meta = json.loads(data["meta"].item().decode("utf-8"))
    assert meta["loop"]["compensator"] == CONFIG.loop.compensator

    second = run_simulation(short_config(), out_dir=tmp_path / "results", progress=False)
    assert second.name == "pytest_run_2.npz"


def test_plot_run_writes_figures(tmp_path: Path):
    path = run_simulation(short_config(), out_dir=tmp_path / "results", progress=False)
    figures = plot_run(path, save_dir=tmp_path / "figures")
    assert len(figures) == 4
    assert all(fig.exists() for fig in figures)


def test_main_cli_runs_without_plot(tmp_path: Path):
    from main import main

    orig_cwd = Path.cwd()
    try:
        os.chdir(tmp_path)
        result_path = main(
            [
                "--t-end",
                "0.01",
                "--dt",
                "0.0001",
                "--compensator",
                "2p2z",
                "--notch",
                "--out-dir",
                "results",
                "--no-plot",
            ]
        )
        assert result_path.exists()
        data = np.load(result_path)
        meta = json.loads(data["meta"].item().decode("utf-8"))
        assert meta["loop"]["compensator"] == "2p2z"
        assert meta["notch"]["enabled"] is True
    finally:
        os.chdir(orig_cwd)


def test_cli_keeps_json_overrides_unless_flag_given(tmp_path: Path):
    from main import build_config_from_args, parse_args

    path = tmp_path / "cfg.json"
    path.write_text(
        json.dumps(
            {
                "loop": {"dt": 5e-5, "compensator": "2p2z"},
                "plant": {"grid_f": 49.0},
                "sim": {"t_end": 0.05, "id_ref": 3.0},
                "notch": {"enabled": True},
            }
        ),
        encoding="utf-8",
    )

    cfg = build_config_from_args(parse_args(["--config", str(path)]))
    assert cfg.loop.dt == 5e-5
    assert cfg.loop.compensator == "2p2z"
    assert cfg.plant.grid_f == 49.0
    assert cfg.sim.t_end == 0.05
    assert cfg.sim.id_ref == 3.0
    assert cfg.notch.enabled is True
    assert cfg.sim.iq_ref == CONFIG.sim.iq_ref

    cfg = build_config_from_args(
        parse_args(["--config", str(path), "--compensator", "pi", "--no-notch", "--t-end", "0.1"])
    )
    assert cfg.loop.compensator == "pi"
    assert cfg.notch.enabled is False
    assert cfg.sim.t_end == 0.1
    assert cfg.loop.dt == 5e-5

    assert build_config_from_args(parse_args([])) == CONFIG
