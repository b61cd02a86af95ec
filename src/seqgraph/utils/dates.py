"""Journal date titles and filenames.

Journal pages are titled with a calendar date in one of several accepted
formats and stored as ``YYYY_MM_DD.md``.
"""

import re
from datetime import date, datetime
from typing import Optional

DATE_FORMATS = [
    "%Y-%m-%d",   # 2025-01-15
    "%b %d, %Y",  # Jan 15, 2025
    "%B %d, %Y",  # January 15, 2025
    "%Y/%m/%d",   # 2025/01/15
    "%d-%m-%Y",   # 15-01-2025
    "%d/%m/%Y",   # 15/01/2025
]

ORDINAL_PATTERN = re.compile(r"(\d+)(st|nd|rd|th)\b")
DATE_REFERENCE_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")


def parse_date_title(title: str) -> date:
    """Parse a page title as a calendar date.

    Ordinal suffixes (``Jan 15th, 2025``) are accepted.

    Raises:
        ValueError: If the title is not a date in any accepted format
    """
    candidate = title.strip()
    parsed = _try_parse(candidate)
    if parsed is None:
        cleaned = ORDINAL_PATTERN.sub(r"\1", candidate)
        if cleaned != candidate:
            parsed = _try_parse(cleaned)

    if parsed is None:
        raise ValueError(f"not a valid date: {title}")
    return parsed


def is_date_page(title: str) -> bool:
    """True if the title parses as a journal date."""
    try:
        parse_date_title(title)
    except ValueError:
        return False
    return True


def format_date_for_page(value: date) -> str:
    """Format a date as a journal page title, e.g. ``Jan 15th, 2025``."""
    return f"{value.strftime('%b')} {value.day}{ordinal_suffix(value.day)}, {value.year}"


def ordinal_suffix(day: int) -> str:
    """English ordinal suffix for a day of month."""
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def journal_filename(value: date) -> str:
    """Filename of the journal for a date, e.g. ``2025_01_15.md``."""
    return f"{value.strftime('%Y_%m_%d')}.md"


def parse_date_from_filename(filename: str) -> date:
    """Parse a journal filename (``2025_01_15.md`` or ``2025-01-15.md``).

    Raises:
        ValueError: If the filename is not a journal date
    """
    stem = filename[:-3] if filename.endswith(".md") else filename
    return datetime.strptime(stem.replace("_", "-"), "%Y-%m-%d").date()


def relative_date_string(value: date, today: Optional[date] = None) -> str:
    """Describe a date relative to today (``Today``, ``In 3 days``...)."""
    today = today or date.today()
    days = (value - today).days

    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days == -1:
        return "Yesterday"
    if 0 < days <= 7:
        return f"In {days} days"
    if -7 <= days < 0:
        return f"{-days} days ago"
    return format_date_for_page(value)


def extract_date_references(text: str) -> list[date]:
    """Dates of the ``[[...]]`` references in text that name a journal day."""
    dates = []
    for title in DATE_REFERENCE_PATTERN.findall(text):
        try:
            dates.append(parse_date_title(title))
        except ValueError:
            continue
    return dates


def today_page_title(today: Optional[date] = None) -> str:
    """Journal title of today's page."""
    return format_date_for_page(today or date.today())


def is_within_date_range(value: date, start: date, end: date) -> bool:
    """True if ``start <= value <= end``."""
    return start <= value <= end


def week_number(value: date) -> int:
    """ISO week number of a date."""
    return value.isocalendar()[1]


def _try_parse(value: str) -> Optional[date]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None
