"""
Утилита командной строки для запуска эталонной симуляции токового контура и построения графиков.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# ensure project root importable when run as a script
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from powerloop.config.env import LoopConfig, create_default_config, load_config  # noqa: E402
from powerloop.simulation.run_simulation import run_simulation  # noqa: E402


def _changes(args: argparse.Namespace, mapping: dict[str, str]) -> dict:
    return {field: getattr(args, arg) for arg, field in mapping.items() if getattr(args, arg) is not None}


def build_config_from_args(args: argparse.Namespace) -> LoopConfig:
    """JSON overrides first, then only the flags given on the command line."""
    base = load_config(args.config) if args.config else create_default_config()
    loop = replace(base.loop, **_changes(args, {"dt": "dt", "compensator": "compensator"}))
    notch = replace(base.notch, **_changes(args, {"notch": "enabled"}))
    plant = replace(base.plant, **_changes(args, {"grid_freq": "grid_f"}))
    sim = replace(base.sim, **_changes(args, {"t_end": "t_end", "id_ref": "id_ref", "iq_ref": "iq_ref"}))
    return replace(base, loop=loop, notch=notch, plant=plant, sim=sim)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the grid-tied current loop reference simulation")
    parser.add_argument("--config", default=None, help="JSON file with config overrides")
    parser.add_argument("--t-end", type=float, default=None, help="simulation time (s)")
    parser.add_argument("--dt", type=float, default=None, help="control tick period (s)")
    parser.add_argument("--grid-freq", type=float, default=None, help="actual grid frequency (Hz)")
    parser.add_argument("--id-ref", type=float, default=None, help="d-axis current reference (A)")
    parser.add_argument("--iq-ref", type=float, default=None, help="q-axis current reference (A)")
    parser.add_argument(
        "--compensator", choices=["pi", "2p2z"], default=None, help="current compensator"
    )
    parser.add_argument("--notch", dest="notch", action="store_true", help="enable PLL notch stage")
    parser.add_argument("--no-notch", dest="notch", action="store_false", help="disable PLL notch stage")
    parser.add_argument("--out-dir", default=None, help="directory for NPZ results")
    parser.add_argument("--plot", dest="plot", action="store_true", help="generate plots after run")
    parser.add_argument("--no-plot", dest="plot", action="store_false", help="skip plotting")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    parser.set_defaults(plot=True, notch=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> Path:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    config = build_config_from_args(args)
    result_path = run_simulation(config, out_dir=args.out_dir)
    print(f"Saved results to {result_path}")
    if args.plot:
        from powerloop.outputs.plots import plot_run

        figures = plot_run(result_path, save_dir=result_path.parent.parent / "figures")
        print(f"Saved {len(figures)} figures to {figures[0].parent}")
    return result_path


if __name__ == "__main__":
    main()
