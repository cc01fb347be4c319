"""
Tests for classifying single instants of an activity.
"""

import pytest

from config import merge_worker_config
from domain import ActivityType, SubActivityType
from services import classify, classify_intervention, is_night, is_sunday_or_holiday

from helpers import dt, make_activity, make_intervention


class TestTimeOfDayRules:
    @pytest.mark.parametrize("hhmm,expected", [
        ("21:59", False),
        ("22:00", True),
        ("23:59", True),
        ("00:00", True),
        ("06:59", True),
        ("07:00", False),
        ("12:00", False),
    ])
    def test_night_window(self, hhmm, expected):
        assert is_night(dt("2023-10-26", hhmm)) is expected

    def test_only_sunday_counts_as_holiday(self):
        assert is_sunday_or_holiday(dt("2023-10-29", "10:00"))
        assert not is_sunday_or_holiday(dt("2023-10-28", "10:00"))
        # Public holidays are not known: 1 November 2023 is a Wednesday
        assert not is_sunday_or_holiday(dt("2023-11-01", "10:00"))

    def test_night_beats_sunday(self):
        """Test the fixed tie-break: a Sunday night instant is a night intervention"""
        assert classify_intervention(dt("2023-10-29", "01:00")) is SubActivityType.INTERVENTION_NUIT
        assert classify_intervention(dt("2023-10-29", "22:30")) is SubActivityType.INTERVENTION_NUIT

    def test_sunday_daytime_intervention(self):
        assert classify_intervention(dt("2023-10-29", "10:00")) is SubActivityType.INTERVENTION_DIMANCHE_FERIE

    def test_weekday_daytime_intervention(self):
        assert classify_intervention(dt("2023-10-26", "10:00")) is SubActivityType.INTERVENTION


class TestClassify:
    def setup_method(self):
        self.config = merge_worker_config(None)

    def _classify(self, activity, day, hhmm):
        return classify(dt(day, hhmm), activity, activity.interventions, self.config)

    @pytest.mark.parametrize("hhmm,expected", [
        ("08:00", SubActivityType.GARDE_CS),
        ("11:59", SubActivityType.GARDE_CS),
        ("12:00", SubActivityType.ASTREINTE_CS),
        ("13:59", SubActivityType.ASTREINTE_CS),
        ("14:00", SubActivityType.GARDE_CS),
        ("18:00", SubActivityType.ASTREINTE_CS),
        ("19:59", SubActivityType.ASTREINTE_CS),
    ])
    def test_guard_uses_on_site_slots(self, hhmm, expected):
        activity = make_activity(ActivityType.J12, dt("2023-10-26", "08:00"), dt("2023-10-26", "20:00"))
        assert self._classify(activity, "2023-10-26", hhmm) is expected

    @pytest.mark.parametrize("type_", [ActivityType.AST24, ActivityType.ASTJ, ActivityType.ASTN])
    def test_standby_is_paid_at_home_rate_even_inside_slots(self, type_):
        activity = make_activity(type_, dt("2023-10-26", "08:00"), dt("2023-10-26", "20:00"))
        assert self._classify(activity, "2023-10-26", "10:00") is SubActivityType.ASTREINTE_DOMICILE

    def test_training(self):
        activity = make_activity(ActivityType.FORMATION, dt("2023-10-26", "08:00"), dt("2023-10-26", "20:00"))
        assert self._classify(activity, "2023-10-26", "19:00") is SubActivityType.FORMATION

    @pytest.mark.parametrize("type_", list(ActivityType))
    def test_intervention_overrides_every_activity_type(self, type_):
        activity = make_activity(
            type_,
            dt("2023-10-26", "08:00"),
            dt("2023-10-26", "20:00"),
            [make_intervention("i1", "2023-10-26", "10:00", "11:00")],
        )
        assert self._classify(activity, "2023-10-26", "10:00") is SubActivityType.INTERVENTION
        assert self._classify(activity, "2023-10-26", "10:59") is SubActivityType.INTERVENTION

    def test_intervention_end_is_exclusive(self):
        activity = make_activity(
            ActivityType.J12,
            dt("2023-10-26", "08:00"),
            dt("2023-10-26", "20:00"),
            [make_intervention("i1", "2023-10-26", "10:00", "11:00")],
        )
        assert self._classify(activity, "2023-10-26", "11:00") is SubActivityType.GARDE_CS

    def test_worker_slots_are_used(self):
        config = merge_worker_config({"time_slots": [{"start": "09:00", "end": "17:00"}]})
        activity = make_activity(ActivityType.J12, dt("2023-10-26", "08:00"), dt("2023-10-26", "20:00"))

        assert classify(dt("2023-10-26", "08:30"), activity, [], config) is SubActivityType.ASTREINTE_CS
        assert classify(dt("2023-10-26", "13:00"), activity, [], config) is SubActivityType.GARDE_CS
