from datetime import date, datetime

import pytest

from shared.constants import Semester
from shared.periods import current_period, day_bounds, resolve_semester, semester_date_range


@pytest.mark.parametrize(
    "value, semester",
    [
        (date(2024, 1, 1), Semester.SECOND),
        (date(2024, 6, 30), Semester.SECOND),
        (date(2024, 7, 1), Semester.FIRST),
        (date(2024, 12, 31), Semester.FIRST),
    ],
)
def test_semester_boundaries(value, semester):
    period = resolve_semester(value)
    assert period.semester == semester
    assert period.academic_year == "2024"


def test_academic_year_is_the_calendar_year_of_the_date():
    assert resolve_semester(date(2023, 9, 15)).academic_year == "2023"
    assert resolve_semester(date(2024, 2, 1)).academic_year == "2024"


def test_second_semester_range():
    semester_range = semester_date_range(date(2024, 3, 11))
    assert semester_range.start == datetime(2024, 1, 1)
    assert semester_range.end == datetime(2024, 6, 30, 23, 59, 59, 999000)


def test_first_semester_range():
    semester_range = semester_date_range(datetime(2024, 10, 5, 14, 30))
    assert semester_range.start == datetime(2024, 7, 1)
    assert semester_range.end == datetime(2024, 12, 31, 23, 59, 59, 999000)


@pytest.mark.parametrize("reference", [date(2024, 1, 1), date(2024, 4, 20), date(2024, 8, 3), date(2024, 12, 31)])
def test_dates_inside_a_range_resolve_to_the_same_semester(reference):
    semester_range = semester_date_range(reference)
    expected = resolve_semester(reference)
    assert resolve_semester(semester_range.start) == expected
    assert resolve_semester(semester_range.end) == expected
    assert reference in semester_range


def test_range_excludes_the_other_semester():
    assert date(2024, 7, 1) not in semester_date_range(date(2024, 3, 11))
    assert date(2023, 12, 31) not in semester_date_range(date(2024, 3, 11))


def test_day_bounds_cover_the_whole_local_day():
    bounds = day_bounds(datetime(2024, 3, 10, 15, 45))
    assert bounds.start == datetime(2024, 3, 10)
    assert bounds.end == datetime(2024, 3, 10, 23, 59, 59, 999000)
    assert datetime(2024, 3, 10, 23, 59, 59) in bounds
    assert datetime(2024, 3, 11, 0, 0, 0, 1000) not in bounds


def test_current_period_uses_given_date():
    period = current_period(date(2025, 8, 1))
    assert period.semester == Semester.FIRST
    assert period.academic_year == "2025"
