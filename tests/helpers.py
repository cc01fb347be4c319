"""
Shared builders for pay engine tests.

Dates used throughout: 2023-10-26 is a Thursday, 2023-10-28 a Saturday,
2023-10-29 and 2023-11-05 Sundays.
"""

from datetime import datetime

from domain import Activity, ActivityStatus, ActivityType, Intervention

SERGENT_RATE = 10.43


def dt(day: str, hhmm: str) -> datetime:
    return datetime.fromisoformat(f"{day}T{hhmm}")


def make_intervention(id, day, start, end, motif="SAP", end_day=None) -> Intervention:
    return Intervention(id=id, start=dt(day, start), end=dt(end_day or day, end), motif=motif)


def make_activity(type_, start, end, interventions=(), id="activity-1", status=ActivityStatus.SAISIE) -> Activity:
    return Activity(
        id=id,
        type=type_,
        start=start,
        end=end,
        status=status,
        interventions=list(interventions),
    )


def day_guard_with_morning_call() -> Activity:
    """12J on a Thursday with one daytime intervention."""
    return make_activity(
        ActivityType.J12,
        dt("2023-10-26", "08:00"),
        dt("2023-10-26", "20:00"),
        [make_intervention("inter-1", "2023-10-26", "09:30", "10:30", motif="Feu de poubelle")],
        id="activity-1",
    )


def saturday_g24_with_night_call() -> Activity:
    """G24 from Saturday to Sunday with a night intervention crossing midnight."""
    return make_activity(
        ActivityType.G24,
        dt("2023-10-28", "08:00"),
        dt("2023-10-29", "08:00"),
        [make_intervention("inter-2", "2023-10-28", "23:00", "00:30", motif="Accident de la route", end_day="2023-10-29")],
        id="activity-2",
        status=ActivityStatus.VALIDEE,
    )


def quiet_night_standby() -> Activity:
    return make_activity(
        ActivityType.ASTN,
        dt("2023-11-01", "20:00"),
        dt("2023-11-02", "08:00"),
        id="activity-3",
        status=ActivityStatus.FACTUREE,
    )


def sunday_training() -> Activity:
    return make_activity(
        ActivityType.FORMATION,
        dt("2023-11-05", "09:00"),
        dt("2023-11-05", "17:00"),
        id="activity-4",
        status=ActivityStatus.VALIDEE,
    )
