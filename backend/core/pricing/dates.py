"""
core/pricing/dates.py

Date normalizer - canonicalizes heterogeneous date values into ``YYYY-MM-DD``.

Every lookup key used by the rule index goes through ``normalize_date``.
An empty string means "not a date"; callers never retry with fuzzy matching.
"""
import logging
import math
import numbers
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

COMPACT_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
DELIMITED_DATE_RE = re.compile(r"(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")
EPOCH_RE = re.compile(r"^[+-]?\d{10,}$")
TIME_SEPARATOR = "T"

# Two distinct defaults let the generic parser reveal missing date parts.
_PROBE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _format(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def _from_date(value: date) -> str:
    # Local calendar components, no UTC shift
    return _format(value.year, value.month, value.day)


def _from_epoch(value: float) -> str:
    if not math.isfinite(value):
        return ""
    magnitude = len(str(abs(int(value))))
    millis = value * 1000 if magnitude == 10 else value
    try:
        return _from_date(datetime.fromtimestamp(millis / 1000))
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Epoch value out of range: {value!r}")
        return ""


def _from_match(match: "re.Match[str]") -> str:
    year, month, day = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def _from_generic_parser(text: str) -> str:
    parsed = []
    for default in _PROBE_DEFAULTS:
        try:
            parsed.append(date_parser.parse(text, default=default))
        except (ValueError, OverflowError):
            return ""
    first, second = parsed
    if first.date() != second.date():
        # Year, month or day came from the default, not from the text
        return ""
    return _from_date(first)


def normalize_date(value: Any) -> str:
    """
    Normalize a date-like value to ``YYYY-MM-DD``.

    Precedence (first match wins):
        1. ``date``/``datetime`` objects use their own year/month/day.
        2. Numbers are epoch timestamps; 10 digits means seconds.
        3. ``None`` or blank strings yield ``''``.
        4. Compact ``YYYYMMDD`` strings are split positionally.
        5. Strings containing ``T`` are cut to the date portion.
        6. ``YYYY[-/.]M[-/.]D`` at the start of the cut string.
        7. The same pattern anywhere in the original string.
        8. Strings of 10+ digits (optionally signed) are epoch values.
        9. A generic date parser, when it yields a full date.
        10. Otherwise ``''``.

    Args:
        value: String, number, date object, or None.

    Returns:
        Canonical date string, or an empty string when unparseable.
    """
    if isinstance(value, date):
        return _from_date(value)

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return _from_epoch(float(value))

    if value is None:
        return ""

    text = str(value).strip()
    if not text:
        return ""

    match = COMPACT_DATE_RE.match(text)
    if match:
        return _from_match(match)

    date_part = text.split(TIME_SEPARATOR, 1)[0] if TIME_SEPARATOR in text else text

    match = DELIMITED_DATE_RE.match(date_part)
    if match:
        return _from_match(match)

    match = DELIMITED_DATE_RE.search(text)
    if match:
        return _from_match(match)

    if EPOCH_RE.match(text):
        try:
            return _from_epoch(float(int(text)))
        except OverflowError:
            return ""

    return _from_generic_parser(text)
