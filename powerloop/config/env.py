"""
Конфигурация проекта powerloop.

All tunable defaults sit at the top, grouped by block. The dataclasses below are
the immutable parameter records handed to the per-tick components.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

# -------- Контур тактов ----------
LOOP_DT = 1e-4              # период такта управления, с (10 кГц)
LOOP_KP = 9.4               # пропорциональный коэффициент токового ПИ, В/А
LOOP_KI = 3000.0            # интегральный коэффициент токового ПИ, В/(А*с)
LOOP_COMPENSATOR = "pi"     # "pi" или "2p2z"
LOOP_ANGLE_OFFSET = -0.5 * math.pi  # d-ось по вектору напряжения сети
LOOP_FEEDFORWARD = True     # прямая связь по амплитуде сети
LOOP_V_LIMIT = 700.0 / math.sqrt(3.0)  # предел модуля вектора напряжения, В
# ---------------------------------

# -------- SOGI-PLL ----------
PLL_F_NOMINAL = 50.0        # номинальная частота сети, Гц
PLL_K_SOGI = math.sqrt(2.0) # коэффициент SOGI (критическое демпфирование)
PLL_KP = 178.0              # ПИ фильтра петли, рад/с на рад
PLL_KI = 15800.0            # ПИ фильтра петли, рад/с^2 на рад
PLL_BAND_HZ = 5.0           # допустимое отклонение частоты, Гц
# ----------------------------

# -------- Режекторный фильтр ----------
NOTCH_ENABLED = False
NOTCH_HARMONIC = 2.0        # гармоника номинальной частоты
NOTCH_RADIUS = 0.99         # радиус полюсов (ширина полосы)
# --------------------------------------

# -------- Силовая часть (для симуляции) ----------
PLANT_R = 0.1               # сопротивление фильтра, Ом
PLANT_L = 5e-3              # индуктивность фильтра, Гн
PLANT_VDC = 700.0           # звено постоянного тока, В
GRID_V_PEAK = 325.0         # амплитуда фазного напряжения сети, В
GRID_F = 50.0               # фактическая частота сети, Гц
GRID_PHASE = 0.0            # начальная фаза сети, рад
# -------------------------------------------------

# -------- Параметры симуляции ----------
SIM_T_END = 0.4             # время моделирования, с
SIM_ID_REF = 10.0           # задание активного тока, А
SIM_IQ_REF = 0.0            # задание реактивного тока, А
SIM_SAVE_PREFIX = "run"     # префикс файла результатов
# ---------------------------------------


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be float-like, got {value!r}") from exc


def _require_finite(name: str, value: float) -> float:
    value = _as_float(value, name)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return value


def _require_positive(name: str, value: float) -> float:
    value = _require_finite(name, value)
    if value <= 0.0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return value


# --------- Структуры данных ------------
@dataclass(frozen=True)
class PllParams:
    f_nominal: float = PLL_F_NOMINAL
    k_sogi: float = PLL_K_SOGI
    kp: float = PLL_KP
    ki: float = PLL_KI
    band_hz: float = PLL_BAND_HZ

    def __post_init__(self) -> None:
        _require_positive("f_nominal", self.f_nominal)
        _require_positive("k_sogi", self.k_sogi)
        _require_finite("kp", self.kp)
        _require_finite("ki", self.ki)
        _require_positive("band_hz", self.band_hz)
        if self.band_hz >= self.f_nominal:
            raise ValueError("band_hz must be smaller than f_nominal")


@dataclass(frozen=True)
class NotchParams:
    enabled: bool = NOTCH_ENABLED
    harmonic: float = NOTCH_HARMONIC
    radius: float = NOTCH_RADIUS

    def __post_init__(self) -> None:
        _require_positive("harmonic", self.harmonic)
        radius = _require_finite("radius", self.radius)
        if not 0.0 < radius < 1.0:
            raise ValueError(f"radius must lie in (0, 1), got {radius!r}")


@dataclass(frozen=True)
class CurrentLoopParams:
    dt: float = LOOP_DT
    kp: float = LOOP_KP
    ki: float = LOOP_KI
    compensator: str = LOOP_COMPENSATOR
    angle_offset: float = LOOP_ANGLE_OFFSET
    feedforward: bool = LOOP_FEEDFORWARD
    v_limit: float | None = LOOP_V_LIMIT

    def __post_init__(self) -> None:
        _require_positive("dt", self.dt)
        _require_finite("kp", self.kp)
        _require_finite("ki", self.ki)
        _require_finite("angle_offset", self.angle_offset)
        if self.compensator not in ("pi", "2p2z"):
            raise ValueError(f"Unknown compensator '{self.compensator}'")
        if self.v_limit is not None:
            _require_positive("v_limit", self.v_limit)


@dataclass(frozen=True)
class PlantParams:
    R: float = PLANT_R
    L: float = PLANT_L
    vdc: float = PLANT_VDC
    grid_v_peak: float = GRID_V_PEAK
    grid_f: float = GRID_F
    grid_phase: float = GRID_PHASE

    def __post_init__(self) -> None:
        _require_positive("R", self.R)
        _require_positive("L", self.L)
        _require_positive("vdc", self.vdc)
        _require_finite("grid_v_peak", self.grid_v_peak)
        _require_positive("grid_f", self.grid_f)
        _require_finite("grid_phase", self.grid_phase)


@dataclass(frozen=True)
class SimulationParams:
    t_end: float = SIM_T_END
    id_ref: float = SIM_ID_REF
    iq_ref: float = SIM_IQ_REF
    save_prefix: str = SIM_SAVE_PREFIX

    def __post_init__(self) -> None:
        _require_positive("t_end", self.t_end)
        _require_finite("id_ref", self.id_ref)
        _require_finite("iq_ref", self.iq_ref)


@dataclass(frozen=True)
class LoopConfig:
    pll: PllParams
    notch: NotchParams
    loop: CurrentLoopParams
    plant: PlantParams
    sim: SimulationParams
# ---------------------------------------


def create_default_config() -> LoopConfig:
    return LoopConfig(
        pll=PllParams(),
        notch=NotchParams(),
        loop=CurrentLoopParams(),
        plant=PlantParams(),
        sim=SimulationParams(),
    )


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower().replace(" ", "").replace("-", "_")


def _merge_section(section: Any, updates: Dict[str, Any], section_name: str) -> Any:
    known = {_normalize_key(f.name): f.name for f in fields(section)}
    changes: Dict[str, Any] = {}
    for key, value in updates.items():
        name = known.get(_normalize_key(key))
        if name is None:
            raise ValueError(f"Unknown key '{key}' in section '{section_name}'")
        changes[name] = value
    return replace(section, **changes)


def merge_config(base: LoopConfig, overrides: Dict[str, Any]) -> LoopConfig:
    """Apply a nested ``{section: {key: value}}`` mapping on top of ``base``."""
    if not isinstance(overrides, dict):
        raise TypeError("overrides must be a dict of sections")
    sections = {f.name: getattr(base, f.name) for f in fields(base)}
    for section_name, updates in overrides.items():
        norm = _normalize_key(section_name)
        if norm not in sections:
            raise ValueError(f"Unknown config section '{section_name}'")
        if not isinstance(updates, dict):
            raise TypeError(f"Section '{section_name}' must be a JSON object")
        sections[norm] = _merge_section(sections[norm], updates, norm)
    return LoopConfig(**sections)


def load_config(path: str | Path, base: LoopConfig | None = None) -> LoopConfig:
    """
    Загрузить JSON с переопределениями поверх конфигурации по умолчанию.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    overrides = json.loads(path.read_text(encoding="utf-8"))
    return merge_config(base if base is not None else create_default_config(), overrides)


# --------- Готовая конфигурация ------------
CONFIG = create_default_config()
# -------------------------------------------


__all__ = [
    "PllParams",
    "NotchParams",
    "CurrentLoopParams",
    "PlantParams",
    "SimulationParams",
    "LoopConfig",
    "CONFIG",
    "create_default_config",
    "merge_config",
    "load_config",
    "LOOP_DT",
    "PLL_F_NOMINAL",
    "PLANT_VDC",
]
