# shared/periods.py
"""Academic period helpers.

The school year has two semesters: July-December is the FIRST semester and
January-June the SECOND, both keyed by the calendar year of the date.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union

from shared.constants import Semester

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class Period:
    semester: Semester
    academic_year: str


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def __contains__(self, value: Union[date, datetime]) -> bool:
        if not isinstance(value, datetime):
            value = datetime.combine(value, time.min)
        return self.start <= value <= self.end


def resolve_semester(value: Union[date, datetime]) -> Period:
    semester = Semester.FIRST if 7 <= value.month <= 12 else Semester.SECOND
    return Period(semester=semester, academic_year=f"{value.year:04d}")


def semester_date_range(reference: Union[date, datetime]) -> DateRange:
    year = reference.year
    if resolve_semester(reference).semester == Semester.SECOND:
        return DateRange(
            start=datetime(year, 1, 1),
            end=datetime.combine(date(year, 6, 30), END_OF_DAY),
        )
    return DateRange(
        start=datetime(year, 7, 1),
        end=datetime.combine(date(year, 12, 31), END_OF_DAY),
    )


def day_bounds(value: Union[date, datetime]) -> DateRange:
    """Local midnight to 23:59:59.999 of the day ``value`` falls on."""
    day = value.date() if isinstance(value, datetime) else value
    return DateRange(start=datetime.combine(day, time.min), end=datetime.combine(day, END_OF_DAY))


def today() -> date:
    return datetime.now().date()


def current_period(now: Optional[Union[date, datetime]] = None) -> Period:
    return resolve_semester(now or today())
