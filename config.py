# config.py
from __future__ import annotations
from datetime import time
from typing import Any, Mapping

from domain import (
    ActivityType,
    ConfigurationError,
    SubActivityType,
    TimeSlot,
    WorkerConfig,
)

# On-site ("garde CS") hours when the worker has not configured any
DEFAULT_TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot(time(8, 0), time(12, 0)),
    TimeSlot(time(14, 0), time(18, 0)),
)

DEFAULT_COEFFICIENTS: dict[SubActivityType, float] = {
    SubActivityType.GARDE_CS: 0.65,
    SubActivityType.ASTREINTE_CS: 0.35,
    SubActivityType.ASTREINTE_DOMICILE: 0.08,
    SubActivityType.INTERVENTION: 1.0,
    SubActivityType.FORMATION: 1.0,
    SubActivityType.INTERVENTION_NUIT: 2.0,
    SubActivityType.INTERVENTION_DIMANCHE_FERIE: 1.5,
}

MIN_COEFFICIENT = 0.0
MAX_COEFFICIENT = 5.0

# Entry form defaults: start hour snapped per type, fixed duration when the type has one
DEFAULT_START_HOURS: dict[ActivityType, int] = {
    ActivityType.G24: 8,
    ActivityType.J12: 8,
    ActivityType.N12: 20,
    ActivityType.ASTJ: 8,
    ActivityType.ASTN: 20,
}

ACTIVITY_DURATIONS_H: dict[ActivityType, int] = {
    ActivityType.G24: 24,
    ActivityType.J12: 12,
    ActivityType.N12: 12,
    ActivityType.AST24: 24,
    ActivityType.ASTJ: 12,
    ActivityType.ASTN: 12,
}


def parse_hhmm(s: str) -> time | None:
    try:
        hh, mm = s.strip().split(":")
        return time(int(hh), int(mm))
    except Exception:
        return None


def default_worker_config() -> WorkerConfig:
    return WorkerConfig(time_slots=DEFAULT_TIME_SLOTS, coefficients=DEFAULT_COEFFICIENTS)


def _parse_slot(raw: Mapping[str, Any]) -> TimeSlot:
    start = parse_hhmm(str(raw.get("start", "")))
    end = parse_hhmm(str(raw.get("end", "")))
    if start is None or end is None:
        raise ConfigurationError(f"Invalid time slot: {dict(raw)!r}")
    return TimeSlot(start, end)


def _parse_coefficient(key: str, value: Any) -> tuple[SubActivityType, float]:
    try:
        sub_type = SubActivityType(key)
    except ValueError:
        raise ConfigurationError(f"Unknown sub-activity type in coefficients: {key!r}") from None
    try:
        coefficient = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Coefficient for {key!r} is not a number: {value!r}") from None
    if not MIN_COEFFICIENT <= coefficient <= MAX_COEFFICIENT:
        raise ConfigurationError(
            f"Coefficient for {key!r} out of range [{MIN_COEFFICIENT}, {MAX_COEFFICIENT}]: {coefficient}"
        )
    return sub_type, coefficient


def merge_worker_config(stored: Mapping[str, Any] | None) -> WorkerConfig:
    """
    Builds a worker's configuration from stored settings layered over the defaults.
    Coefficients are merged key by key so new default keys never drop a user's
    existing customizations. Stored time slots replace the default slots as a whole.
    """
    stored = stored or {}

    slots = DEFAULT_TIME_SLOTS
    if stored.get("time_slots"):
        slots = tuple(_parse_slot(raw) for raw in stored["time_slots"])

    coefficients = dict(DEFAULT_COEFFICIENTS)
    for key, value in (stored.get("coefficients") or {}).items():
        key = key.value if isinstance(key, SubActivityType) else key
        sub_type, coefficient = _parse_coefficient(key, value)
        coefficients[sub_type] = coefficient

    return WorkerConfig(time_slots=slots, coefficients=coefficients)


def worker_config_to_dict(config: WorkerConfig) -> dict[str, Any]:
    """Stored (JSON friendly) form of a configuration, inverse of merge_worker_config."""
    return {
        "time_slots": [
            {"start": s.start.strftime("%H:%M"), "end": s.end.strftime("%H:%M")}
            for s in config.time_slots
        ],
        "coefficients": {t.value: config.coefficients[t] for t in SubActivityType},
    }
