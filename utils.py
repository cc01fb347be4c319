# utils.py
import pandas as pd
from typing import Iterable

from domain import Activity, CalculationResult, PeriodSummary, Worker
from services import PayCalculator


def format_minutes(minutes: int) -> str:
    minutes = max(0, int(minutes))
    h, m = divmod(minutes, 60)
    if h == 0:
        return f"{m} min"
    if m == 0:
        return f"{h} h"
    return f"{h} h {m} min"


def format_hours(hours: float) -> str:
    return format_minutes(int(round(float(hours) * 60)))


def eur(x: float) -> str:
    return f"{x:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def result_to_dataframe(result: CalculationResult) -> pd.DataFrame:
    rows = []
    for line in result.lines:
        rows.append({
            "Début": line.start.strftime("%d/%m %H:%M"),
            "Fin": line.end.strftime("%d/%m %H:%M"),
            "Description": line.description,
            "Type": line.sub_activity_type.value,
            "Durée (h)": round(line.duration_hours, 2),
            "Taux": line.rate,
            "Coeff.": f"{line.coefficient * 100:.0f}%",
            "Montant": round(line.total, 2),
        })
    return pd.DataFrame(rows)


def activities_to_dataframe(activities: Iterable[Activity], worker: Worker) -> pd.DataFrame:
    calculator = PayCalculator(worker)
    rows = []
    for a in activities:
        rows.append({
            "ID": a.id,
            "Date": a.start.date().isoformat(),
            "Début": a.start.strftime("%H:%M"),
            "Type": a.type.label,
            "Statut": a.status.value,
            "Heures": round(a.duration_hours, 2),
            "Interventions": len(a.interventions),
            "Montant": round(calculator.accumulate(a).total_amount, 2),
            "Notes": a.notes or "",
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Date", "Début"], ascending=False).reset_index(drop=True)
    return df


def interventions_to_dataframe(summary: PeriodSummary) -> pd.DataFrame:
    rows = []
    for item in summary.interventions:
        i = item.intervention
        rows.append({
            "Date": i.start.date().isoformat(),
            "Début": i.start.strftime("%H:%M"),
            "Fin": i.end.strftime("%H:%M"),
            "Motif": i.motif,
            "Activité": item.activity_type.label,
            "Durée": format_hours(i.duration_hours),
            "Montant": round(item.revenue, 2),
        })
    return pd.DataFrame(rows)
