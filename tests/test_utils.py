"""
Tests for the DataFrame and formatting helpers.
"""

import pytest

from domain import ActivityType
from services import accumulate, summarize_month
from utils import (
    activities_to_dataframe,
    eur,
    format_hours,
    interventions_to_dataframe,
    result_to_dataframe,
)

from helpers import day_guard_with_morning_call, dt, make_activity, saturday_g24_with_night_call


class TestFormatting:
    @pytest.mark.parametrize("hours,expected", [
        (0, "0 min"),
        (0.75, "45 min"),
        (2, "2 h"),
        (1.5, "1 h 30 min"),
        (-1, "0 min"),
    ])
    def test_format_hours(self, hours, expected):
        assert format_hours(hours) == expected

    def test_eur_uses_french_separators(self):
        assert eur(1234.5) == "1.234,50"
        assert eur(68.838) == "68,84"


class TestResultToDataframe:
    def test_one_row_per_line(self, sergent):
        activity = make_activity(ActivityType.J12, dt("2023-10-26", "08:00"), dt("2023-10-26", "20:00"))
        df = result_to_dataframe(accumulate(activity, sergent))

        assert list(df.columns) == [
            "Début", "Fin", "Description", "Type", "Durée (h)", "Taux", "Coeff.", "Montant",
        ]
        assert len(df) == 4
        assert list(df["Description"]) == ["Garde CS", "Astreinte CS", "Garde CS", "Astreinte CS"]
        assert list(df["Coeff."]) == ["65%", "35%", "65%", "35%"]
        assert df["Montant"].sum() == pytest.approx(68.84)

    def test_empty_result(self, sergent):
        start = dt("2023-10-26", "08:00")
        df = result_to_dataframe(accumulate(make_activity(ActivityType.J12, start, start), sergent))
        assert df.empty


class TestActivitiesToDataframe:
    def test_most_recent_first(self, sergent):
        df = activities_to_dataframe([day_guard_with_morning_call(), saturday_g24_with_night_call()], sergent)

        assert list(df["ID"]) == ["activity-2", "activity-1"]
        assert list(df["Heures"]) == [24.0, 12.0]
        assert list(df["Interventions"]) == [1, 1]
        assert df.loc[0, "Statut"] == "Validée"
        assert df.loc[1, "Montant"] == pytest.approx(72.49, abs=0.01)

    def test_no_activities(self, sergent):
        assert activities_to_dataframe([], sergent).empty


def test_interventions_to_dataframe(sergent):
    summary = summarize_month([day_guard_with_morning_call(), saturday_g24_with_night_call()], sergent, 2023, 10)
    df = interventions_to_dataframe(summary)

    assert list(df["Motif"]) == ["Accident de la route", "Feu de poubelle"]
    assert list(df["Durée"]) == ["1 h 30 min", "1 h"]
    assert df.loc[0, "Activité"] == ActivityType.G24.label
