from datetime import date, datetime, time

import pytest

from barbershop.domain.scheduling.time_calculator import (
    BusyInterval,
    DayOfWeek,
    clamp_to_day,
    format_time,
    generate_grid,
    intervals_overlap,
    overlaps_any,
    parse_date,
    parse_time,
    to_interval,
)

DAY = date(2025, 6, 9)


class TestParsing:
    def test_parse_date_accepts_iso_dates(self):
        assert parse_date("2025-06-09") == DAY

    @pytest.mark.parametrize("value", ["09/06/2025", "2025-6-9", "2025-02-30", "", "tomorrow"])
    def test_parse_date_rejects_other_formats(self, value):
        with pytest.raises(ValueError):
            parse_date(value)

    def test_parse_time_accepts_24h_clock(self):
        assert parse_time("08:05") == time(8, 5)
        assert parse_time("23:59") == time(23, 59)

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "10h30", "10:00:00"])
    def test_parse_time_rejects_other_formats(self, value):
        with pytest.raises(ValueError):
            parse_time(value)

    def test_format_time(self):
        assert format_time(time(7, 0)) == "07:00"


class TestOverlap:
    def test_touching_intervals_do_not_overlap(self):
        a_start, a_end = to_interval(DAY, time(10, 0), 30)
        b_start, b_end = to_interval(DAY, time(10, 30), 30)
        assert not intervals_overlap(a_start, a_end, b_start, b_end)
        assert not intervals_overlap(b_start, b_end, a_start, a_end)

    def test_partial_overlap(self):
        a_start, a_end = to_interval(DAY, time(10, 0), 30)
        b_start, b_end = to_interval(DAY, time(10, 15), 30)
        assert intervals_overlap(a_start, a_end, b_start, b_end)

    def test_contained_interval_overlaps(self):
        outer_start, outer_end = to_interval(DAY, time(10, 0), 75)
        inner_start, inner_end = to_interval(DAY, time(10, 30), 15)
        assert intervals_overlap(inner_start, inner_end, outer_start, outer_end)

    def test_overlaps_any(self):
        busy = [BusyInterval(*to_interval(DAY, time(9, 0), 60))]
        assert overlaps_any(*to_interval(DAY, time(9, 30), 30), busy)
        assert not overlaps_any(*to_interval(DAY, time(10, 0), 30), busy)


class TestGrid:
    def test_thirty_minute_grid_over_ten_hours(self):
        slots = generate_grid(DAY, time(8, 0), time(18, 0), 30, 30)
        assert len(slots) == 20
        assert slots[0] == time(8, 0)
        assert slots[-1] == time(17, 30)

    def test_long_service_stops_before_closing(self):
        slots = generate_grid(DAY, time(8, 0), time(20, 0), 75, 30)
        assert slots[-1] == time(18, 30)

    def test_service_longer_than_the_day_has_no_slots(self):
        assert generate_grid(DAY, time(8, 0), time(9, 0), 90, 30) == []

    def test_non_positive_duration_has_no_slots(self):
        assert generate_grid(DAY, time(8, 0), time(18, 0), 0, 30) == []


class TestClamp:
    def test_interval_spanning_midnight_is_clipped(self):
        start = datetime(2025, 6, 8, 22, 0)
        end = datetime(2025, 6, 9, 2, 0)
        assert clamp_to_day(DAY, start, end) == (datetime(2025, 6, 9, 0, 0), datetime(2025, 6, 9, 2, 0))

    def test_interval_on_another_day_is_dropped(self):
        assert clamp_to_day(DAY, datetime(2025, 6, 10, 9, 0), datetime(2025, 6, 10, 10, 0)) is None


def test_day_of_week_for_date():
    assert DayOfWeek.for_date(DAY) is DayOfWeek.MONDAY
    assert DayOfWeek.for_date(date(2025, 6, 8)) is DayOfWeek.SUNDAY
    assert DayOfWeek.SUNDAY.order == 6
