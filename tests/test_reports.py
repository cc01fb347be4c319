"""
Tests for the PDF statements.
"""

import pandas as pd

from reports import activity_statement_pdf, dataframe_to_pdf, month_label, monthly_statement_pdf
from services import accumulate, summarize_month

from helpers import day_guard_with_morning_call, saturday_g24_with_night_call


def test_month_label():
    assert month_label(2023, 10) == "Octobre 2023"
    assert month_label(2024, 2) == "Février 2024"


def test_activity_statement_is_a_pdf(sergent):
    activity = saturday_g24_with_night_call()
    pdf = activity_statement_pdf(activity, accumulate(activity, sergent))

    assert pdf.startswith(b"%PDF")


def test_monthly_statement_is_a_pdf(sergent):
    activities = [day_guard_with_morning_call(), saturday_g24_with_night_call()]
    summary = summarize_month(activities, sergent, 2023, 10)

    assert monthly_statement_pdf(activities, sergent, summary).startswith(b"%PDF")


def test_empty_month_still_renders(sergent):
    summary = summarize_month([], sergent, 2023, 12)

    assert monthly_statement_pdf([], sergent, summary).startswith(b"%PDF")
    assert dataframe_to_pdf(pd.DataFrame(), "Vide").startswith(b"%PDF")
