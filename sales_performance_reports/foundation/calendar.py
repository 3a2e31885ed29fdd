"""Whole-month and whole-year date differences.

Two month conventions are used by the reports:

- :func:`calendar_months_between` counts month boundaries crossed, so
  Jan 15 → Mar 3 is 2 months. Lifespan uses this convention.
- :func:`elapsed_months_between` counts completed months, so Jun 20 →
  Jul 1 is 0 months and Jun 20 → Jul 20 is 1. Recency uses this one.

Both return 0 when ``end`` precedes ``start``.
"""

from __future__ import annotations

from datetime import date


def calendar_months_between(start: date, end: date) -> int:
    """Return the number of calendar-month boundaries between two dates.

    >>> calendar_months_between(date(2023, 1, 15), date(2023, 3, 3))
    2
    >>> calendar_months_between(date(2023, 1, 10), date(2024, 6, 20))
    17
    """

    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(months, 0)


def elapsed_months_between(start: date, end: date) -> int:
    """Return the number of completed months from ``start`` to ``end``.

    A month is complete once the day of month of ``start`` is reached again.
    Month-end starts are clamped, so Jan 31 → Feb 28 counts as one month.

    >>> elapsed_months_between(date(2024, 6, 20), date(2024, 7, 1))
    0
    >>> elapsed_months_between(date(2024, 1, 31), date(2024, 2, 29))
    1
    """

    months = calendar_months_between(start, end)
    if months and end.day < start.day and not _is_month_end(end):
        months -= 1
    return max(months, 0)


def whole_years_between(start: date, end: date) -> int:
    """Return completed years from ``start`` to ``end`` (an age in years).

    >>> whole_years_between(date(1990, 7, 2), date(2024, 7, 1))
    33
    """

    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(years, 0)


def _is_month_end(value: date) -> bool:
    if value.month == 12:
        return value.day == 31
    return date(value.year, value.month + 1, 1).toordinal() - value.toordinal() == 1
