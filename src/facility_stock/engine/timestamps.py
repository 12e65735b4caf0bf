"""
Delivery timestamp normalization.

Dispatch requests carry ``delivered_at`` as free text written by different
clients over time. Three shapes are accepted:

    SlashLocale     "31/12/2025, 00:29:07"   (DD/MM/YYYY, HH:MM:SS)
    IsoWithTime     "2025-12-31T00:29:07"    (ISO-8601, ``T`` separator)
    SpaceSeparated  "2025-12-31 00:29:07"    (date, space, time)

The date component is taken literally; no timezone conversion is applied,
so a trailing ``Z`` or offset on the ISO form is tolerated and ignored.
Anything else parses to ``Unrecognized``, which callers treat exactly like
"excluded from totals". Parsing never raises.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import ClassVar, Union

from facility_stock.shared.exceptions import InvalidQueryDateError

_TIME = r"(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?"

SLASH_LOCALE_RE = re.compile(
    r"^\s*(\d{1,2})/(\d{1,2})/(\d{4}),\s*" + _TIME + r"(?:\s*[AaPp]\.?[Mm]\.?)?\s*$"
)
ISO_WITH_TIME_RE = re.compile(
    r"^\s*(\d{4})-(\d{2})-(\d{2})T" + _TIME + r"(?:Z|[+-]\d{2}:?\d{2})?\s*$"
)
SPACE_SEPARATED_RE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2}) +" + _TIME + r"\s*$")


@dataclass(frozen=True, slots=True)
class _Recognized:
    raw: str
    date: dt.date

    recognized: ClassVar[bool] = True

    @property
    def date_key(self) -> str:
        """Canonical ``YYYY-MM-DD`` calendar date key."""
        return self.date.isoformat()


@dataclass(frozen=True, slots=True)
class SlashLocale(_Recognized):
    """``DD/MM/YYYY, HH:MM:SS`` as produced by locale date formatting."""

    kind: ClassVar[str] = "slash_locale"


@dataclass(frozen=True, slots=True)
class IsoWithTime(_Recognized):
    """``YYYY-MM-DDTHH:MM:SS``."""

    kind: ClassVar[str] = "iso_with_time"


@dataclass(frozen=True, slots=True)
class SpaceSeparated(_Recognized):
    """``YYYY-MM-DD HH:MM:SS``."""

    kind: ClassVar[str] = "space_separated"


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """Input that matches none of the accepted shapes."""

    raw: str | None
    reason: str = "no accepted shape matched"

    kind: ClassVar[str] = "unrecognized"
    recognized: ClassVar[bool] = False
    date: ClassVar[None] = None
    date_key: ClassVar[None] = None


ParsedTimestamp = Union[SlashLocale, IsoWithTime, SpaceSeparated, Unrecognized]


def _valid_time(hour: str, minute: str, second: str | None) -> bool:
    try:
        dt.time(int(hour), int(minute), int(second or 0))
    except ValueError:
        return False
    return True


def _match_slash_locale(text: str) -> SlashLocale | None:
    match = SLASH_LOCALE_RE.match(text)
    if match is None:
        return None
    day, month, year, hour, minute, second = match.groups()
    if not _valid_time(hour, minute, second):
        return None
    return SlashLocale(raw=text, date=dt.date(int(year), int(month), int(day)))


def _match_iso_with_time(text: str) -> IsoWithTime | None:
    match = ISO_WITH_TIME_RE.match(text)
    if match is None:
        return None
    year, month, day, hour, minute, second = match.groups()
    if not _valid_time(hour, minute, second):
        return None
    return IsoWithTime(raw=text, date=dt.date(int(year), int(month), int(day)))


def _match_space_separated(text: str) -> SpaceSeparated | None:
    match = SPACE_SEPARATED_RE.match(text)
    if match is None:
        return None
    year, month, day, hour, minute, second = match.groups()
    if not _valid_time(hour, minute, second):
        return None
    return SpaceSeparated(raw=text, date=dt.date(int(year), int(month), int(day)))


_MATCHERS = (_match_slash_locale, _match_iso_with_time, _match_space_separated)


def parse_delivery_timestamp(text: str | None) -> ParsedTimestamp:
    """
    Classify a delivery timestamp into one of the accepted shapes.

    Args:
        text: Raw ``delivered_at`` value, possibly ``None``

    Returns:
        The matching variant, or ``Unrecognized`` (never raises)
    """
    if text is None:
        return Unrecognized(raw=None, reason="missing timestamp")
    if not isinstance(text, str):
        return Unrecognized(raw=repr(text), reason="not text")

    for matcher in _MATCHERS:
        try:
            parsed = matcher(text)
        except ValueError:
            # Shape matched but the date does not exist (e.g. 31/02/2025)
            return Unrecognized(raw=text, reason="invalid calendar date")
        if parsed is not None:
            return parsed

    return Unrecognized(raw=text)


def normalize_delivery_date(text: str | None) -> str | None:
    """Return the ``YYYY-MM-DD`` key of a delivery timestamp, or None if unrecognized."""
    return parse_delivery_timestamp(text).date_key


def parse_query_date(value: dt.date | str) -> dt.date:
    """
    Coerce a caller-supplied query date.

    Accepts a ``date``, a ``datetime`` (its date component) or a
    ``YYYY-MM-DD`` string.

    Raises:
        InvalidQueryDateError: If the value is not a calendar date
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidQueryDateError(value) from None
    raise InvalidQueryDateError(value)
