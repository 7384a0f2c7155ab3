"""Tests for the day slot computation."""

import math
from datetime import date, datetime, time

import pytest

from schedule_app.services.slot_service import compute_day_slots, has_working_window

DAY = date(2024, 6, 10)
WORK_START = time(8, 0)
WORK_END = time(22, 0)
INTERVAL = 30


def slots_for(appointments, now, day=DAY, unavailable=(), start=WORK_START, end=WORK_END, interval=INTERVAL):
    return compute_day_slots(day, appointments, set(unavailable), start, end, interval, now)


def by_time(slots):
    return {s.start_time.strftime("%H:%M"): s for s in slots}


class TestSlotGrid:
    def test_full_window_slot_count(self):
        """08:00-22:00 at 30 minutes gives 28 slots in order."""
        slots = slots_for([], now=datetime(2024, 6, 1, 9, 0))
        assert len(slots) == 28
        assert slots[0].start_time == time(8, 0)
        assert slots[-1].start_time == time(21, 30)
        assert [s.start_time for s in slots] == sorted(s.start_time for s in slots)

    def test_trailing_partial_slot_start_before_end_is_kept(self):
        """The loop stops only once a start reaches the end of the window."""
        slots = slots_for([], now=datetime(2024, 6, 1), start=time(8, 0), end=time(9, 45))
        assert [s.start_time for s in slots] == [time(8, 0), time(8, 30), time(9, 0), time(9, 30)]

    def test_unavailable_day_has_no_slots(self, make_appointment):
        """Unavailable days return nothing even with appointments present."""
        appointments = [make_appointment(start=time(9, 0))]
        assert slots_for(appointments, now=datetime(2024, 6, 1), unavailable=[DAY]) == []

    def test_inverted_window_has_no_slots(self):
        assert slots_for([], now=datetime(2024, 6, 1), start=time(22, 0), end=time(8, 0)) == []
        assert slots_for([], now=datetime(2024, 6, 1), start=time(8, 0), end=time(8, 0)) == []
        assert not has_working_window(time(8, 0), time(8, 0))
        assert has_working_window(time(8, 0), time(8, 30))

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            slots_for([], now=datetime(2024, 6, 1), interval=0)

    def test_identical_inputs_identical_output(self, make_appointment):
        """Pure function: two calls with the same now agree."""
        appointments = [make_appointment(start=time(13, 0), duration=90)]
        now = datetime(2024, 6, 10, 10, 15)
        assert slots_for(appointments, now) == slots_for(appointments, now)


class TestPastSlots:
    def test_slot_starting_now_is_not_past(self):
        """now == 10:00:00: the 10:00 slot is bookable, 09:30 is past."""
        slots = by_time(slots_for([], now=datetime(2024, 6, 10, 10, 0, 0)))
        assert slots["10:00"].status == "available"
        assert slots["09:30"].status == "past"

    def test_seconds_into_the_current_minute_keep_slot_bookable(self):
        slots = by_time(slots_for([], now=datetime(2024, 6, 10, 10, 0, 45, 500)))
        assert slots["10:00"].status == "available"

    def test_slot_started_earlier_is_past(self):
        """At 10:15 the 10:00 slot has started and is past."""
        slots = by_time(slots_for([], now=datetime(2024, 6, 10, 10, 15)))
        assert slots["10:00"].status == "past"
        assert slots["10:30"].status == "available"

    def test_past_slots_hide_appointments(self, make_appointment):
        appointments = [make_appointment(start=time(8, 0), duration=60)]
        slots = by_time(slots_for(appointments, now=datetime(2024, 6, 10, 12, 0)))
        assert slots["08:00"].status == "past"
        assert slots["08:00"].appointment is None
        assert slots["08:00"].activation() is None

    def test_only_today_has_past_slots(self):
        """Days other than today are never marked past."""
        earlier_day = slots_for([], now=datetime(2024, 6, 11, 12, 0))
        later_day = slots_for([], now=datetime(2024, 6, 9, 23, 59))
        assert all(s.status == "available" for s in earlier_day)
        assert all(s.status == "available" for s in later_day)


class TestBookedSlots:
    def test_example_day(self, make_appointment):
        """13:00 for 90 minutes with now at 10:15 on the same day."""
        appointment = make_appointment(start=time(13, 0), duration=90)
        slots = slots_for([appointment], now=datetime(2024, 6, 10, 10, 15))
        table = by_time(slots)

        assert [s.status for s in slots[:5]] == ["past"] * 5  # 08:00 .. 10:00
        for t in ["10:30", "11:00", "11:30", "12:00", "12:30"]:
            assert table[t].status == "available"
        assert [table[t].status for t in ["13:00", "13:30", "14:00"]] == ["booked"] * 3
        assert [table[t].is_continuation for t in ["13:00", "13:30", "14:00"]] == [False, True, True]
        assert all(table[t].appointment is appointment for t in ["13:00", "13:30", "14:00"])
        assert all(s.status == "available" for s in slots if s.start_time >= time(14, 30))
        assert slots[-1].start_time == time(21, 30)

    def test_appointment_end_is_exclusive(self, make_appointment):
        slots = by_time(slots_for([make_appointment(start=time(9, 0), duration=30)], now=datetime(2024, 6, 1)))
        assert slots["09:00"].status == "booked"
        assert slots["09:30"].status == "available"

    def test_off_grid_start(self, make_appointment):
        """13:15 for 30 minutes leaves 13:00 free and books 13:30 as a continuation."""
        slots = by_time(slots_for([make_appointment(start=time(13, 15), duration=30)], now=datetime(2024, 6, 1)))
        assert slots["13:00"].status == "available"
        assert slots["13:30"].status == "booked"
        assert slots["13:30"].is_continuation is True

    def test_appointment_starting_before_window(self, make_appointment):
        slots = by_time(slots_for([make_appointment(start=time(7, 30), duration=60)], now=datetime(2024, 6, 1)))
        assert slots["08:00"].status == "booked"
        assert slots["08:00"].is_continuation is True
        assert slots["08:30"].status == "available"

    def test_appointment_running_past_window_end(self, make_appointment):
        slots = slots_for([make_appointment(start=time(21, 0), duration=180)], now=datetime(2024, 6, 1))
        assert [s.status for s in slots[-2:]] == ["booked", "booked"]
        assert len(slots) == 28

    def test_other_days_ignored(self, make_appointment):
        other = make_appointment(day=date(2024, 6, 11), start=time(9, 0))
        assert all(s.status == "available" for s in slots_for([other], now=datetime(2024, 6, 1)))

    def test_overlap_first_match_wins(self, make_appointment):
        first = make_appointment(start=time(9, 0), duration=120, name="First")
        second = make_appointment(start=time(10, 0), duration=60, name="Second")
        slots = by_time(slots_for([first, second], now=datetime(2024, 6, 1)))
        assert slots["10:00"].appointment is first
        assert slots["10:00"].is_continuation is True
        assert slots["11:00"].status == "available"

    def test_activation_targets(self, make_appointment):
        appointment = make_appointment(start=time(13, 0), duration=60)
        slots = by_time(slots_for([appointment], now=datetime(2024, 6, 1)))

        create = slots["12:30"].activation()
        assert create.action == "create"
        assert (create.date, create.time) == (DAY, time(12, 30))

        for t in ["13:00", "13:30"]:
            edit = slots[t].activation()
            assert edit.action == "edit"
            assert edit.appointment_id == appointment.id
            assert edit.time == time(13, 0)


class TestSlotProperties:
    @pytest.mark.parametrize(
        "starts_and_durations",
        [
            [],
            [((9, 0), 30)],
            [((8, 0), 60), ((10, 0), 90), ((15, 30), 45)],
            [((9, 0), 120), ((11, 0), 30), ((11, 30), 30), ((20, 0), 120)],
        ],
    )
    def test_booked_count_matches_durations(self, make_appointment, starts_and_durations):
        """Non-overlapping appointments occupy ceil(duration / interval) slots each."""
        appointments = [
            make_appointment(start=time(*start), duration=duration) for start, duration in starts_and_durations
        ]
        slots = slots_for(appointments, now=datetime(2024, 6, 1))
        booked = [s for s in slots if s.status == "booked"]

        assert len(slots) == 28
        assert len(booked) == sum(math.ceil(d / INTERVAL) for _, d in starts_and_durations)
        assert all(s.status in ("available", "booked") for s in slots)

    def test_every_continuation_has_a_head(self, make_appointment):
        appointments = [
            make_appointment(start=time(7, 0), duration=120),
            make_appointment(start=time(12, 0), duration=150),
            make_appointment(start=time(12, 30), duration=30),
            make_appointment(start=time(18, 15), duration=60),
        ]
        slots = slots_for(appointments, now=datetime(2024, 6, 1))
        for i, slot in enumerate(slots):
            if slot.status == "booked" and slot.is_continuation:
                # Appointments that start before the window or off-grid have no head slot
                if slot.appointment.time < WORK_START or slot.appointment.time.minute % INTERVAL:
                    continue
                assert any(
                    s.appointment is slot.appointment and not s.is_continuation for s in slots[:i]
                )
