"""GEDCOM date normalization: sort keys and display formatting."""

import calendar
import re
from typing import NamedTuple


# Sort key for dates without a recognizable year (sorts after every real date)
UNDATED_SORT_KEY = 9999.0

MONTH_ABBR = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
              "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]

# Approximation / range markers that carry no chronological information
_QUALIFIER_RE = re.compile(
    r"\b(?:ABT|ABOUT|EST|ESTIMATED|CAL|CALCULATED|BEF|BEFORE|AFT|AFTER|"
    r"CIR|CIRCA|CA|BET|BETWEEN|AND|FROM|TO|INT)\b\.?",
    re.IGNORECASE,
)
# Leading qualifier only, for display text
_LEADING_QUALIFIER_RE = re.compile(
    r"^(?:ABT|ABOUT|EST|ESTIMATED|CAL|CALCULATED|BEF|BEFORE|AFT|AFTER|CIR|CIRCA|CA)\b\.?\s*",
    re.IGNORECASE,
)
_YEAR_RE = re.compile(r"\b(\d{4})\b")
_MONTH_RE = re.compile(r"\b(" + "|".join(MONTH_ABBR) + r")\b")


class DateParts(NamedTuple):
    """Year, month and day pulled out of a free-text GEDCOM date."""
    year: int | None = None
    month: int | None = None
    day: int | None = None


def strip_qualifiers(date_str: str) -> str:
    """Remove approximation markers (ABT, BEF, BET ... AND, etc.) and collapse whitespace."""
    return " ".join(_QUALIFIER_RE.sub(" ", date_str).split())


def parse_month_day_year(date_str: str | None) -> DateParts:
    """
    Split a GEDCOM date into its components.

    Handles formats like:
    - "12 JUN 1925"
    - "JUN 1925"
    - "ABT 1850"
    - "BET 1850 AND 1860"  (first year wins)

    The day is only accepted when it is the token right before the month
    and falls in 1..31.
    """
    if not date_str:
        return DateParts()

    cleaned = strip_qualifiers(date_str.upper())

    year_match = _YEAR_RE.search(cleaned)
    year = int(year_match.group(1)) if year_match else None

    month_match = _MONTH_RE.search(cleaned)
    if not month_match:
        return DateParts(year=year)
    month = MONTH_ABBR.index(month_match.group(1)) + 1

    day = None
    parts = cleaned.split()
    if month_match.group(1) in parts:
        idx = parts.index(month_match.group(1))
        token = parts[idx - 1] if idx > 0 else ""
        # ASCII only: isdigit() also accepts superscripts, which int() rejects
        if token.isascii() and token.isdecimal():
            candidate = int(token)
            if 1 <= candidate <= 31:
                day = candidate

    return DateParts(year=year, month=month, day=day)


def date_sort_key(date_str: str | None) -> float:
    """
    Turn a free-text GEDCOM date into a number that orders chronologically.

    The key is ``year + month / 12 + day / 365`` with month and day counted
    as 0 when absent. A bare year therefore sorts before any month of that
    year, and a month without a day sorts before every dated day in it.
    Dates without a 4-digit year get UNDATED_SORT_KEY.
    """
    year, month, day = parse_month_day_year(date_str)
    if year is None:
        return UNDATED_SORT_KEY
    return year + (month or 0) / 12 + (day or 0) / 365


def format_full_date(date_str: str | None) -> str:
    """Human readable date, e.g. 'June 12, 1925', 'June 1925', '1925' or 'Undated'."""
    if not date_str:
        return "Undated"

    clean = _LEADING_QUALIFIER_RE.sub("", date_str.strip()).strip()
    year, month, day = parse_month_day_year(date_str)

    if year is not None and month is not None and day is not None:
        days_in_month = calendar.mdays[month] + (month == 2 and calendar.isleap(year))
        # e.g. 31 FEB falls back to month and year
        if day <= days_in_month:
            return f"{calendar.month_name[month]} {day}, {year}"
    if year is not None and month is not None:
        return f"{calendar.month_name[month]} {year}"
    if year is not None:
        return str(year)
    return clean or "Undated"
