# tests/test_grid.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from bini_calendar.calendar.grid import (
    GRID_SIZE,
    build_grid,
    days_in_month,
    first_weekday,
    grid_weeks,
    is_leap_year,
    next_month,
    previous_month,
)


def _month_range():
    for year in (1900, 1999, 2000, 2015, 2023, 2024, 2025, 2100):
        for month in range(12):
            yield year, month


@pytest.mark.parametrize("year,month", list(_month_range()))
def test_grid_shape_holds_for_every_month(year: int, month: int) -> None:
    cells = build_grid(year, month)
    assert len(cells) == GRID_SIZE

    # Contiguous calendar days.
    days = [date.fromisoformat(c.date_iso) for c in cells]
    for a, b in zip(days, days[1:]):
        assert b - a == timedelta(days=1)

    # Sunday first.
    assert (days[0].weekday() + 1) % 7 == 0

    lead_in = first_weekday(year, month)
    assert cells[lead_in].day_of_month == 1
    assert cells[lead_in].in_focused_month

    focused = [c for c in cells if c.in_focused_month]
    assert len(focused) == days_in_month(year, month)
    assert [c.day_of_month for c in focused] == list(range(1, len(focused) + 1))


def test_january_2024_layout() -> None:
    cells = build_grid(2024, 0)

    # 2024-01-01 is a Monday.
    assert first_weekday(2024, 0) == 1
    assert cells[0].date_iso == "2023-12-31"
    assert not cells[0].in_focused_month
    assert cells[1].date_iso == "2024-01-01"
    assert cells[31].date_iso == "2024-01-31"
    assert cells[-1].date_iso == "2024-02-10"
    assert not cells[-1].in_focused_month


def test_december_rolls_into_next_year() -> None:
    cells = build_grid(2024, 11)

    # 2024-12-01 is a Sunday: no lead-in.
    assert cells[0].date_iso == "2024-12-01"
    assert cells[31].date_iso == "2025-01-01"
    assert cells[31].day_of_month == 1


def test_february_starting_on_sunday_still_fills_six_weeks() -> None:
    cells = build_grid(2015, 1)

    assert cells[0].date_iso == "2015-02-01"
    assert sum(1 for c in cells if not c.in_focused_month) == 14
    assert cells[-1].date_iso == "2015-03-14"


def test_leap_years() -> None:
    assert is_leap_year(2024)
    assert not is_leap_year(2023)
    assert not is_leap_year(1900)
    assert is_leap_year(2000)

    assert days_in_month(2024, 1) == 29
    assert days_in_month(2023, 1) == 28

    leap = {c.date_iso for c in build_grid(2024, 1) if c.in_focused_month}
    common = {c.date_iso for c in build_grid(2023, 1) if c.in_focused_month}
    assert "2024-02-29" in leap
    assert "2023-02-29" not in common
    assert len(common) == 28


def test_month_neighbours_wrap_years() -> None:
    assert previous_month(2024, 0) == (2023, 11)
    assert next_month(2024, 11) == (2025, 0)
    assert next_month(2024, 5) == (2024, 6)


@pytest.mark.parametrize("bad", [-1, 12, 1.5, "3", True])
def test_out_of_range_month_is_rejected(bad) -> None:
    with pytest.raises(ValueError):
        build_grid(2024, bad)


def test_today_flag_is_set_on_one_cell_only() -> None:
    cells = build_grid(2024, 0, today=date(2024, 1, 15))
    flagged = [c.date_iso for c in cells if c.is_today]
    assert flagged == ["2024-01-15"]

    # Today outside the displayed span: nothing flagged.
    assert not any(c.is_today for c in build_grid(2024, 5, today=date(2024, 1, 15)))


def test_cells_are_built_without_tasks() -> None:
    assert all(c.tasks == () for c in build_grid(2024, 3))


def test_grid_weeks_splits_into_six_rows() -> None:
    rows = grid_weeks(build_grid(2024, 0))
    assert len(rows) == 6
    assert all(len(r) == 7 for r in rows)


def test_first_weekday_agrees_with_datetime() -> None:
    for year in range(1, 10000, 37):
        for month in range(12):
            assert first_weekday(year, month) == (date(year, month + 1, 1).weekday() + 1) % 7


@pytest.mark.parametrize("year", [-401, -1, 0, 1, 9999, 10000, 123456])
def test_grid_works_outside_the_datetime_year_range(year: int) -> None:
    for month in range(12):
        cells = build_grid(year, month)
        assert len(cells) == GRID_SIZE

        lead_in = first_weekday(year, month)
        assert cells[lead_in].day_of_month == 1
        assert sum(1 for c in cells if c.in_focused_month) == days_in_month(year, month)

        # Day numbers run on consecutively or restart at 1 at a month boundary.
        for a, b in zip(cells, cells[1:]):
            assert b.day_of_month in (a.day_of_month + 1, 1)

        # Consecutive months chain their weekdays.
        ny, nm = next_month(year, month)
        assert first_weekday(ny, nm) == (lead_in + days_in_month(year, month)) % 7


def test_weekdays_repeat_every_400_years() -> None:
    for year in (-800, 0, 2024, 10000):
        for month in range(12):
            assert first_weekday(year, month) == first_weekday(year + 400, month)


def test_year_zero_and_beyond_9999() -> None:
    # Proleptic Gregorian: 0001-01-01 is a Monday, year 0 is leap.
    assert first_weekday(1, 0) == 1
    assert first_weekday(0, 0) == 6
    assert days_in_month(0, 1) == 29

    cells = build_grid(10000, 0)
    assert cells[first_weekday(10000, 0)].date_iso == "10000-01-01"
    assert cells[0].date_iso.startswith("9999-12-")
