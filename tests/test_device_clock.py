"""
Unit tests for the device clock: 100 ms quantization and second/minute interrupts.
"""
import pandas as pd

from watchsim.device_clock import DeviceClock
from watchsim.events import NEW_MINUTE, NEW_SECOND


def _recording_clock(start):
    clock = DeviceClock(start)
    events = []
    clock.add_event_listener(NEW_SECOND, events.append)
    clock.add_event_listener(NEW_MINUTE, events.append)
    return clock, events


def test_second_boundary_after_ten_quanta():
    """
    Nine 100 ms ticks stay inside the first second; the tenth crosses it.
    """
    clock, events = _recording_clock("2024-01-01T00:00:00")
    for _ in range(9):
        clock.advance(100)
    assert events == [], "No interrupt expected before one full second"

    clock.advance(100)
    assert len(events) == 1, "Exactly one NEW_SECOND expected"
    assert events[0].type == NEW_SECOND
    assert events[0].data["second"] == 1, "Second counter mismatch"
    assert events[0].simulated_time == pd.Timestamp("2024-01-01T00:00:01")


def test_partial_quanta_accumulate():
    """
    Deltas below 100 ms are held back until a full quantum is available.
    """
    clock, _ = _recording_clock("2024-01-01T00:00:00")
    clock.advance(250)
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T00:00:00.200"), "Only two quanta should apply"
    assert clock.accumulated_ms == 50
    clock.advance(50)
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T00:00:00.300")
    assert clock.accumulated_ms == 0


def test_large_delta_raises_every_spanned_interrupt():
    """
    One 5 s delta from 00:00:59.950 crosses a minute: second interrupts for
    :00 through :04 and one minute interrupt, second before minute.
    """
    clock, events = _recording_clock("2024-01-01T00:00:59.950")
    clock.advance(5000)

    seconds = [e.data["second"] for e in events if e.type == NEW_SECOND]
    minutes = [e.data["minute"] for e in events if e.type == NEW_MINUTE]
    assert seconds == [0, 1, 2, 3, 4], f"Unexpected seconds: {seconds}"
    assert minutes == [1], f"Unexpected minutes: {minutes}"
    assert events[0].type == NEW_SECOND and events[1].type == NEW_MINUTE, "Second check must precede minute check"
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T00:01:04.950")


def test_one_hour_in_one_call():
    clock, events = _recording_clock("2024-01-01T10:00:00")
    clock.advance(3_600_000)
    assert sum(e.type == NEW_SECOND for e in events) == 3600
    assert sum(e.type == NEW_MINUTE for e in events) == 60
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T11:00:00")


def test_negative_delta_is_ignored():
    clock, events = _recording_clock("2024-01-01T00:00:00")
    clock.advance(-500)
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T00:00:00"), "Time must not move backwards"
    assert events == []


def test_rtc_fields():
    """
    RTC view splits the timestamp; day_of_week counts from Sunday = 0.
    """
    clock = DeviceClock("2024-01-01T13:45:30")
    clock.advance(300)
    rtc = clock.get_rtc()
    assert (rtc.year, rtc.month, rtc.day) == (2024, 1, 1)
    assert (rtc.hour, rtc.minute, rtc.second, rtc.millisecond) == (13, 45, 30, 300)
    assert rtc.day_of_week == 1, "2024-01-01 is a Monday"
    assert DeviceClock("2024-01-07").get_rtc().day_of_week == 0, "2024-01-07 is a Sunday"


def test_reset_and_iso():
    clock, events = _recording_clock("2024-01-01T00:00:00")
    clock.advance(1250)
    clock.reset("2024-06-01T08:00:00")
    assert clock.get_current_time_iso() == "2024-06-01T08:00:00"
    assert clock.accumulated_ms == 0, "Reset should drop the sub-quantum remainder"

    clock.destroy()
    clock.advance(2000)
    assert len(events) == 1, "Destroyed clock should not notify listeners"


def test_tz_aware_start_keeps_local_wall_time():
    """
    An offset in the start timestamp is dropped, not converted to UTC, so
    the device keeps the wearer's local time of day.
    """
    clock = DeviceClock("2024-01-01T08:00:00+05:00")
    assert clock.get_rtc().hour == 8, "Local hour must survive"
    assert clock.get_current_time() == pd.Timestamp("2024-01-01T08:00:00")
