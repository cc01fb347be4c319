# reports.py
from __future__ import annotations
import io
from typing import Iterable

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain import Activity, CalculationResult, PeriodSummary, Worker
from utils import activities_to_dataframe, eur, format_hours, result_to_dataframe

MONTHS_FR = ["Janvier", "Février", "Mars", "Avril", "Mai", "Juin", "Juillet",
             "Août", "Septembre", "Octobre", "Novembre", "Décembre"]


def month_label(year: int, month: int) -> str:
    return f"{MONTHS_FR[month - 1]} {year}"


def dataframe_to_pdf(df: pd.DataFrame, title: str, summary_lines: Iterable[str] = ()) -> bytes:
    """Landscape A4 table with an optional centered summary box under it."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), topMargin=24, bottomMargin=24, leftMargin=24, rightMargin=24)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(name="TitleCentered", parent=styles["Title"], alignment=TA_CENTER)
    summary_style = ParagraphStyle(
        name="Summary", parent=styles["Normal"], alignment=TA_CENTER,
        textColor=colors.black, fontSize=11, leading=13, spaceBefore=4, spaceAfter=2
    )
    story = [Paragraph(title, title_style), Spacer(1, 8)]
    if df.empty:
        story.append(Paragraph("Aucune donnée à afficher.", styles["Normal"]))
    else:
        data = [list(df.columns)] + [[str(v) for v in row] for row in df.values.tolist()]
        table = Table(data, repeatRows=1, hAlign="CENTER")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F5F5F7")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#E0E0E0")),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        story.append(table)

    cells = [[Paragraph(line, summary_style)] for line in summary_lines]
    if cells:
        story.append(Spacer(1, 12))
        box = Table(cells, colWidths=[min(520, 0.65 * doc.width)], hAlign="CENTER")
        box.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("BACKGROUND", (0, 0), (-1, -1), colors.white),
            ("BOX", (0, 0), (-1, -1), 0.6, colors.HexColor("#C7CCD6")),
            ("TOPPADDING", (0, 0), (-1, -1), 8),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))
        story.append(box)

    def draw_page_border(canvas, doc_obj):
        canvas.saveState()
        w, h = doc_obj.pagesize
        canvas.setStrokeColor(colors.HexColor("#C7CCD6"))
        canvas.setLineWidth(0.8)
        margin = 12
        canvas.rect(margin, margin, w - 2*margin, h - 2*margin)
        canvas.restoreState()

    doc.build(story, onFirstPage=draw_page_border, onLaterPages=draw_page_border)
    return buf.getvalue()


def activity_statement_pdf(activity: Activity, result: CalculationResult) -> bytes:
    title = f"{activity.type.label} du {activity.start:%d/%m/%Y %H:%M}"
    lines = [
        f"Durée : {format_hours(activity.duration_hours)} · Interventions : {len(activity.interventions)}",
        f"Total : {eur(result.total_amount)} €",
    ]
    return dataframe_to_pdf(result_to_dataframe(result), title=title, summary_lines=lines)


def monthly_statement_pdf(activities: Iterable[Activity], worker: Worker, summary: PeriodSummary) -> bytes:
    in_month = [a for a in activities if (a.start.year, a.start.month) == (summary.year, summary.month)]
    df = activities_to_dataframe(in_month, worker)
    if not df.empty:
        df = df.drop(columns=["ID"])
    name = " ".join(p for p in (worker.first_name, worker.last_name) if p)
    title = f"Relevé {month_label(summary.year, summary.month)}" + (f" · {name}" if name else "")
    lines = [
        f"Gardes : {summary.guards} · Interventions : {summary.intervention_count} · Heures : {format_hours(summary.hours)}",
        f"Revenu du mois : {eur(summary.revenue)} €",
    ]
    return dataframe_to_pdf(df, title=title, summary_lines=lines)
