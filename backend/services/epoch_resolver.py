"""
TLE epoch resolution.

Line 1 columns 19-20 hold a two-digit year and 21-32 a fractional day of
year (day 1.0 is 00:00 UTC on January 1st).
"""
from datetime import datetime, timedelta, timezone

# The format cannot represent years before 1957
YEAR_PIVOT = 57


def expand_two_digit_year(year_2digit: int) -> int:
    """Map a TLE two-digit year onto 1957-2056."""
    if year_2digit < YEAR_PIVOT:
        return 2000 + year_2digit
    return 1900 + year_2digit


def resolve_epoch(line1: str) -> datetime:
    """
    Convert the epoch fields of TLE line 1 to a timezone-aware UTC datetime.

    Raises:
        ValueError: if the year or day-of-year field is missing or malformed
    """
    if not line1:
        raise ValueError("TLE line 1 is empty")

    year_text = line1[18:20].strip()
    day_text = line1[20:32].strip()
    if not (year_text.isascii() and year_text.isdigit()) or not day_text:
        raise ValueError(f"Malformed TLE epoch field: {line1[18:32]!r}")

    day_of_year = float(day_text)
    if not 1.0 <= day_of_year < 367.0:
        raise ValueError(f"Day of year out of range: {day_of_year}")

    year = expand_two_digit_year(int(year_text))
    whole_days = int(day_of_year)
    fraction = day_of_year - whole_days

    start_of_year = datetime(year, 1, 1, tzinfo=timezone.utc)
    return start_of_year + timedelta(days=whole_days - 1, seconds=fraction * 86400)
