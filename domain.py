# domain.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping


class PayEngineError(Exception):
    """Base class for pay computation failures."""


class PreconditionError(PayEngineError, ValueError):
    """Input breaks the caller's contract (unknown grade, end before start)."""


class ConfigurationError(PayEngineError, ValueError):
    """Worker configuration is incomplete or out of range."""


class Grade(Enum):
    SAPEUR = "Sapeur"
    CAPORAL = "Caporal / Caporal-chef"
    SERGENT = "Sergent / Sergent-chef / Adjudant / Adjudant-chef"
    LIEUTENANT = "Lieutenant / Capitaine / Commandant / Colonel"


class ActivityType(Enum):
    G24 = "Garde 24h (G24)"
    J12 = "Garde 12h Jour (12J)"
    N12 = "Garde 12h Nuit (12N)"
    GARDE_LIBRE = "Garde libre"
    FORMATION = "Formation"
    AST24 = "Astreinte 24h (AST24)"
    ASTJ = "Astreinte Jour (ASTJ)"
    ASTN = "Astreinte Nuit (ASTN)"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_standby(self) -> bool:
        return self in (ActivityType.AST24, ActivityType.ASTJ, ActivityType.ASTN)

    @property
    def is_training(self) -> bool:
        return self is ActivityType.FORMATION


class ActivityStatus(Enum):
    SAISIE = "Saisie"
    VALIDEE = "Validée"
    FACTUREE = "Facturée"


class SubActivityType(Enum):
    GARDE_CS = "GardeCS"
    ASTREINTE_CS = "AstreinteCS"
    ASTREINTE_DOMICILE = "Astreinte Domicile"
    INTERVENTION = "Intervention"
    INTERVENTION_NUIT = "InterventionNuit"
    INTERVENTION_DIMANCHE_FERIE = "InterventionDimancheFerie"
    FORMATION = "Formation"

    @property
    def label(self) -> str:
        return _SUB_ACTIVITY_LABELS[self]

    @property
    def is_intervention(self) -> bool:
        return self in INTERVENTION_TYPES


_SUB_ACTIVITY_LABELS = {
    SubActivityType.GARDE_CS: "Garde CS",
    SubActivityType.ASTREINTE_CS: "Astreinte CS",
    SubActivityType.ASTREINTE_DOMICILE: "Astreinte domicile",
    SubActivityType.INTERVENTION: "Intervention",
    SubActivityType.INTERVENTION_NUIT: "Intervention de nuit",
    SubActivityType.INTERVENTION_DIMANCHE_FERIE: "Intervention dimanche / férié",
    SubActivityType.FORMATION: "Formation",
}

INTERVENTION_TYPES = frozenset({
    SubActivityType.INTERVENTION,
    SubActivityType.INTERVENTION_NUIT,
    SubActivityType.INTERVENTION_DIMANCHE_FERIE,
})


class InterventionMotif(Enum):
    AVP = "AVP"
    SAP = "SAP"
    INC = "INC"
    DIV = "DIV"


@dataclass(frozen=True)
class TimeSlot:
    """Recurring daily window [start, end) within one day."""
    start: time
    end: time

    def __post_init__(self):
        if not self.start < self.end:
            raise ConfigurationError(
                f"Time slot must start before it ends: {self.start:%H:%M}-{self.end:%H:%M}"
            )

    @property
    def start_minutes(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minutes(self) -> int:
        return self.end.hour * 60 + self.end.minute

    def contains(self, minutes_since_midnight: int) -> bool:
        return self.start_minutes <= minutes_since_midnight < self.end_minutes


@dataclass(frozen=True)
class WorkerConfig:
    """
    On-site hours and per-sub-activity coefficients for one worker.
    The coefficient table must cover every SubActivityType.
    """
    time_slots: tuple[TimeSlot, ...]
    coefficients: Mapping[SubActivityType, float]

    def __post_init__(self):
        missing = [t.value for t in SubActivityType if t not in self.coefficients]
        if missing:
            raise ConfigurationError(f"Missing coefficients for: {missing}")
        object.__setattr__(self, "time_slots", tuple(self.time_slots))
        object.__setattr__(self, "coefficients", MappingProxyType(dict(self.coefficients)))

    def coefficient(self, sub_type: SubActivityType) -> float:
        return self.coefficients[sub_type]


@dataclass(frozen=True)
class Worker:
    id: str
    grade: Grade
    config: WorkerConfig
    first_name: str = ""
    last_name: str = ""
    station: str | None = None


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Hours between two instants. Aware values are compared in UTC so DST changes count."""
    if start.tzinfo is not None and end.tzinfo is not None:
        start, end = start.astimezone(timezone.utc), end.astimezone(timezone.utc)
    return (end - start).total_seconds() / 3600.0


def first_overlap(interventions: Iterable[Intervention]) -> tuple[Intervention, Intervention] | None:
    """A pair of interventions sharing some time, or None."""
    latest: Intervention | None = None
    for intervention in sorted(interventions, key=lambda i: i.start):
        if latest is not None and latest.overlaps(intervention):
            return latest, intervention
        if latest is None or intervention.end > latest.end:
            latest = intervention
    return None


@dataclass
class Intervention:
    """Call-out nested inside an activity; overrides the shift's pay class."""
    id: str
    start: datetime
    end: datetime
    motif: str

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def overlaps(self, other: Intervention) -> bool:
        return self.start < other.end and other.start < self.end

    @property
    def duration_hours(self) -> float:
        return elapsed_hours(self.start, self.end)


@dataclass
class Activity:
    """A logged shift with its interventions."""
    id: str
    type: ActivityType
    start: datetime
    end: datetime
    status: ActivityStatus = ActivityStatus.SAISIE
    interventions: list[Intervention] = field(default_factory=list)
    notes: str | None = None

    @property
    def duration_hours(self) -> float:
        return elapsed_hours(self.start, self.end)


@dataclass
class CalculationLine:
    description: str
    sub_activity_type: SubActivityType
    duration_hours: float
    rate: float
    coefficient: float
    bonus: float
    total: float
    start: datetime
    end: datetime
    intervention_id: str | None = None


@dataclass
class CalculationResult:
    lines: list[CalculationLine]
    total_amount: float

    @property
    def total_hours(self) -> float:
        return sum(line.duration_hours for line in self.lines)


@dataclass
class InterventionRevenue:
    intervention: Intervention
    activity_id: str
    activity_type: ActivityType
    revenue: float


@dataclass
class PeriodSummary:
    year: int
    month: int
    revenue: float = 0.0
    hours: float = 0.0
    guards: int = 0
    intervention_count: int = 0
    interventions: list[InterventionRevenue] = field(default_factory=list)
