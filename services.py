# services.py
from __future__ import annotations
import logging
from datetime import datetime, time, timedelta
from typing import Iterable, Sequence

from config import ACTIVITY_DURATIONS_H, DEFAULT_START_HOURS
from domain import (
    Activity,
    ActivityType,
    CalculationLine,
    CalculationResult,
    Intervention,
    InterventionRevenue,
    PeriodSummary,
    PreconditionError,
    SubActivityType,
    TimeSlot,
    Worker,
    WorkerConfig,
    elapsed_hours,
    first_overlap,
)
from rates import base_rate

logger = logging.getLogger(__name__)

NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 7
SUNDAY = 6
# Night and Sunday bonuses live in the intervention coefficients
BONUS = 1.0


def is_night(instant: datetime) -> bool:
    return instant.hour >= NIGHT_START_HOUR or instant.hour < NIGHT_END_HOUR


def is_sunday_or_holiday(instant: datetime) -> bool:
    # Sundays only, no public holiday calendar
    return instant.weekday() == SUNDAY


def find_intervention(instant: datetime, interventions: Iterable[Intervention]) -> Intervention | None:
    """First intervention whose [start, end) holds the instant."""
    for intervention in interventions:
        if intervention.contains(instant):
            return intervention
    return None


def classify_intervention(instant: datetime) -> SubActivityType:
    """Night wins over Sunday when both apply."""
    if is_night(instant):
        return SubActivityType.INTERVENTION_NUIT
    if is_sunday_or_holiday(instant):
        return SubActivityType.INTERVENTION_DIMANCHE_FERIE
    return SubActivityType.INTERVENTION


def classify(
    instant: datetime,
    activity: Activity,
    interventions: Sequence[Intervention],
    config: WorkerConfig,
) -> SubActivityType:
    """
    Sub-activity an instant of the activity is paid as. First match wins:
    intervention, standby activity, training, then on-site slots vs. standby on site.
    """
    if find_intervention(instant, interventions) is not None:
        return classify_intervention(instant)
    if activity.type.is_standby:
        return SubActivityType.ASTREINTE_DOMICILE
    if activity.type.is_training:
        return SubActivityType.FORMATION

    minutes = instant.hour * 60 + instant.minute
    if any(slot.contains(minutes) for slot in config.time_slots):
        return SubActivityType.GARDE_CS
    return SubActivityType.ASTREINTE_CS


def breakpoints(
    start: datetime,
    end: datetime,
    interventions: Iterable[Intervention] = (),
    time_slots: Iterable[TimeSlot] = (),
) -> list[datetime]:
    """
    Sorted instants of [start, end] where the classification can change: the bounds,
    intervention bounds, and for every day touched midnight, 07:00, 22:00 and the
    slot bounds. Classification is constant between two consecutive points.
    """
    points = {start, end}
    for intervention in interventions:
        for p in (intervention.start, intervention.end):
            if start < p < end:
                points.add(p)

    marks = {time(0, 0), time(NIGHT_END_HOUR, 0), time(NIGHT_START_HOUR, 0)}
    for slot in time_slots:
        marks.update((slot.start, slot.end))

    day = start.date()
    while day <= end.date():
        for mark in marks:
            p = datetime.combine(day, mark, tzinfo=start.tzinfo)
            if start < p < end:
                points.add(p)
        day += timedelta(days=1)
    return sorted(points)


def aggregate(lines: list[CalculationLine]) -> CalculationResult:
    """Total of the priced lines, summed in line order."""
    return CalculationResult(lines=lines, total_amount=sum((line.total for line in lines), 0.0))


def _check_interval(start: datetime, end: datetime, what: str) -> None:
    if end < start:
        raise PreconditionError(f"{what} ends before it starts: {start.isoformat()} > {end.isoformat()}")


class PayCalculator:
    """Prices activities and single interventions for one worker."""

    def __init__(self, worker: Worker):
        self.worker = worker
        self.config = worker.config
        self.rate = base_rate(worker.grade)

    def accumulate(self, activity: Activity) -> CalculationResult:
        """Billing lines covering [activity.start, activity.end) and their total."""
        _check_interval(activity.start, activity.end, f"Activity {activity.id}")
        interventions = activity.interventions
        if first_overlap(interventions) is not None:
            logger.warning(
                f"Activity {activity.id} has overlapping interventions, first listed wins",
                extra={"activity_id": activity.id, "action": "overlapping_interventions"},
            )

        lines: list[CalculationLine] = []
        points = breakpoints(activity.start, activity.end, interventions, self.config.time_slots)
        for seg_start, seg_end in zip(points, points[1:]):
            sub_type = classify(seg_start, activity, interventions, self.config)
            intervention = find_intervention(seg_start, interventions) if sub_type.is_intervention else None
            self._extend(lines, seg_start, seg_end, sub_type, intervention)

        for line in lines:
            self._price(line)
        result = aggregate(lines)

        logger.debug(
            f"Activity {activity.id} priced",
            extra={
                "activity_id": activity.id,
                "activity_type": activity.type.value,
                "worker_id": self.worker.id,
                "lines": len(result.lines),
                "total_amount": result.total_amount,
                "action": "activity_priced",
            },
        )
        return result

    def price_intervention(self, intervention: Intervention) -> float:
        """Amount for one intervention, identical to its share of any activity holding it."""
        _check_interval(intervention.start, intervention.end, f"Intervention {intervention.id}")
        lines: list[CalculationLine] = []
        points = breakpoints(intervention.start, intervention.end)
        for seg_start, seg_end in zip(points, points[1:]):
            self._extend(lines, seg_start, seg_end, classify_intervention(seg_start), intervention)
        for line in lines:
            self._price(line)
        return aggregate(lines).total_amount

    def _extend(
        self,
        lines: list[CalculationLine],
        start: datetime,
        end: datetime,
        sub_type: SubActivityType,
        intervention: Intervention | None,
    ) -> None:
        # Same intervention is decided by id, never by motif text
        coefficient = self.config.coefficient(sub_type)
        intervention_id = intervention.id if intervention is not None else None
        if lines:
            last = lines[-1]
            if (
                last.sub_activity_type == sub_type
                and last.coefficient == coefficient
                and last.bonus == BONUS
                and last.intervention_id == intervention_id
            ):
                last.end = end
                return

        description = sub_type.label
        if intervention is not None:
            description = f"{sub_type.label} ({intervention.motif})"
        lines.append(CalculationLine(
            description=description,
            sub_activity_type=sub_type,
            duration_hours=0.0,
            rate=self.rate,
            coefficient=coefficient,
            bonus=BONUS,
            total=0.0,
            start=start,
            end=end,
            intervention_id=intervention_id,
        ))

    def _price(self, line: CalculationLine) -> None:
        line.duration_hours = elapsed_hours(line.start, line.end)
        line.total = line.duration_hours * line.rate * line.coefficient * line.bonus


def accumulate(activity: Activity, worker: Worker) -> CalculationResult:
    return PayCalculator(worker).accumulate(activity)


def price_intervention(intervention: Intervention, worker: Worker) -> float:
    return PayCalculator(worker).price_intervention(intervention)


def summarize_month(activities: Iterable[Activity], worker: Worker, year: int, month: int) -> PeriodSummary:
    """
    Dashboard figures for the activities starting in the given month.
    Interventions are listed most recent first with their standalone price.
    """
    calculator = PayCalculator(worker)
    summary = PeriodSummary(year=year, month=month)
    for activity in activities:
        if (activity.start.year, activity.start.month) != (year, month):
            continue
        summary.revenue += calculator.accumulate(activity).total_amount
        summary.hours += activity.duration_hours
        summary.guards += 1
        summary.intervention_count += len(activity.interventions)
        for intervention in activity.interventions:
            summary.interventions.append(InterventionRevenue(
                intervention=intervention,
                activity_id=activity.id,
                activity_type=activity.type,
                revenue=calculator.price_intervention(intervention),
            ))
    summary.interventions.sort(key=lambda r: r.intervention.start, reverse=True)
    return summary


def upcoming_activity(activities: Iterable[Activity], now: datetime) -> Activity | None:
    future = [a for a in activities if a.start > now]
    return min(future, key=lambda a: a.start) if future else None


def default_schedule(activity_type: ActivityType, start: datetime) -> tuple[datetime, datetime | None]:
    """Start snapped to the type's usual hour, and the end when the type has a fixed length."""
    hour = DEFAULT_START_HOURS.get(activity_type)
    if hour is not None:
        start = start.replace(hour=hour, minute=0, second=0, microsecond=0)
    duration = ACTIVITY_DURATIONS_H.get(activity_type)
    end = start + timedelta(hours=duration) if duration else None
    return start, end
