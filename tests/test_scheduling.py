from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from core.scheduling import find_conflict, is_slot_available, overlaps, to_clinic_time
from model.doctor_schema import AvailabilityWindow

MONDAY = datetime(2030, 1, 7)  # a Monday
MONDAY_9_TO_5 = [{"day_of_week": "monday", "start_time": "09:00", "end_time": "17:00", "is_available": True}]


def appointment(start, duration=30, status="scheduled", uid="appt_1"):
    return SimpleNamespace(uid=uid, appointment_date=start, duration=duration, status=status)


class TestAvailability:
    def test_slot_at_window_start_is_available(self):
        assert is_slot_available(MONDAY_9_TO_5, MONDAY.replace(hour=9), 30)

    def test_slot_running_past_window_end_is_rejected(self):
        assert not is_slot_available(MONDAY_9_TO_5, MONDAY.replace(hour=16, minute=45), 30)

    def test_slot_ending_exactly_at_window_end_is_available(self):
        assert is_slot_available(MONDAY_9_TO_5, MONDAY.replace(hour=16, minute=30), 30)

    def test_slot_starting_at_window_end_is_rejected(self):
        assert not is_slot_available(MONDAY_9_TO_5, MONDAY.replace(hour=17), 15)

    def test_slot_before_window_is_rejected(self):
        assert not is_slot_available(MONDAY_9_TO_5, MONDAY.replace(hour=8, minute=45), 30)

    def test_wrong_day_is_rejected(self):
        assert not is_slot_available(MONDAY_9_TO_5, (MONDAY + timedelta(days=1)).replace(hour=10), 30)

    def test_inactive_window_is_ignored(self):
        windows = [dict(MONDAY_9_TO_5[0], is_available=False)]
        assert not is_slot_available(windows, MONDAY.replace(hour=10), 30)

    def test_any_matching_window_is_enough(self):
        windows = [
            {"day_of_week": "monday", "start_time": "08:00", "end_time": "09:00", "is_available": True},
            {"day_of_week": "monday", "start_time": "13:00", "end_time": "15:00", "is_available": True},
        ]
        assert is_slot_available(windows, MONDAY.replace(hour=13, minute=30), 60)
        assert not is_slot_available(windows, MONDAY.replace(hour=8, minute=30), 60)

    def test_slot_crossing_midnight_is_never_available(self):
        windows = [{"day_of_week": "monday", "start_time": "20:00", "end_time": "23:59", "is_available": True}]
        assert not is_slot_available(windows, MONDAY.replace(hour=23, minute=45), 30)

    def test_no_availability_means_unavailable(self):
        assert not is_slot_available([], MONDAY.replace(hour=10), 30)
        assert not is_slot_available(None, MONDAY.replace(hour=10), 30)

    def test_accepts_window_models(self):
        windows = [AvailabilityWindow(day_of_week="Monday", start_time="9:00", end_time="17:00")]
        assert windows[0].start_time == "09:00"
        assert is_slot_available(windows, MONDAY.replace(hour=9, minute=30), 30)


class TestTimezone:
    def test_naive_values_are_taken_as_clinic_local(self):
        value = datetime(2030, 1, 7, 9, 0)
        assert to_clinic_time(value, "Asia/Kolkata") == value

    def test_aware_values_are_converted_to_clinic_local(self):
        from zoneinfo import ZoneInfo
        utc = datetime(2030, 1, 7, 3, 30, tzinfo=ZoneInfo("UTC"))
        assert to_clinic_time(utc, "Asia/Kolkata") == datetime(2030, 1, 7, 9, 0)


class TestConflicts:
    def test_overlap_is_half_open(self):
        start = MONDAY.replace(hour=10)
        end = start + timedelta(minutes=30)
        assert overlaps(start, end, start + timedelta(minutes=15), end + timedelta(minutes=15))
        assert not overlaps(start, end, end, end + timedelta(minutes=30))
        assert not overlaps(start, end, start - timedelta(minutes=30), start)

    def test_overlapping_active_appointment_conflicts(self):
        existing = [appointment(MONDAY.replace(hour=10))]
        start = MONDAY.replace(hour=10, minute=15)
        assert find_conflict(existing, start, start + timedelta(minutes=30)) is existing[0]

    def test_abutting_appointment_does_not_conflict(self):
        existing = [appointment(MONDAY.replace(hour=10))]
        start = MONDAY.replace(hour=10, minute=30)
        assert find_conflict(existing, start, start + timedelta(minutes=30)) is None

    @pytest.mark.parametrize("status", ["cancelled", "no_show", "completed"])
    def test_inactive_statuses_never_conflict(self, status):
        existing = [appointment(MONDAY.replace(hour=10), status=status)]
        start = MONDAY.replace(hour=10)
        assert find_conflict(existing, start, start + timedelta(minutes=30)) is None

    @pytest.mark.parametrize("status", ["scheduled", "confirmed", "in_progress"])
    def test_active_statuses_conflict(self, status):
        existing = [appointment(MONDAY.replace(hour=10), status=status)]
        start = MONDAY.replace(hour=10)
        assert find_conflict(existing, start, start + timedelta(minutes=30)) is not None

    def test_excluded_appointment_is_skipped(self):
        existing = [appointment(MONDAY.replace(hour=10), uid="appt_self")]
        start = MONDAY.replace(hour=10, minute=15)
        assert find_conflict(existing, start, start + timedelta(minutes=30), exclude_uid="appt_self") is None

    def test_long_appointment_covering_the_slot_conflicts(self):
        existing = [appointment(MONDAY.replace(hour=9), duration=240)]
        start = MONDAY.replace(hour=11)
        assert find_conflict(existing, start, start + timedelta(minutes=15)) is not None
