from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, NamedTuple, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_serializer, model_validator

from utc_instant.domain.errors import ConstructionMisuseError, InstantRangeError, ParseError

logger = logging.getLogger(__name__)

ONE_SECOND = 1000
ONE_MINUTE = ONE_SECOND * 60
ONE_HOUR = ONE_MINUTE * 60
ONE_DAY = ONE_HOUR * 24

# 100 million days either side of the epoch, the same limit as an ECMAScript Date.
MAX_EPOCH_MILLIS = 100_000_000 * ONE_DAY
MIN_EPOCH_MILLIS = -MAX_EPOCH_MILLIS

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_FULL_TIMESTAMP = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:\.(?P<fraction>\d{3}))?Z",
    re.ASCII,
)
_DATE_ONLY = re.compile(r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})", re.ASCII)

_WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Only the factory classmethods hold this, so Instant(...) from outside fails.
_FACTORY_KEY = object()


class _CalendarFields(NamedTuple):
    year: int
    month_index: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int


def _truncate_division(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def _truncate_to_second(value: Union[int, float]) -> int:
    """Drop sub-second precision, rounding toward zero. NaN maps to the epoch."""
    if not isinstance(value, int):
        if math.isnan(value):
            return 0
        if math.isinf(value):
            raise InstantRangeError(f"{value} milliseconds is outside the supported range")
        value = int(value)
    return _truncate_division(value, ONE_SECOND) * ONE_SECOND


def _check_range(millis: int) -> int:
    if not MIN_EPOCH_MILLIS <= millis <= MAX_EPOCH_MILLIS:
        raise InstantRangeError(
            f"{millis} milliseconds is outside the supported range "
            f"[{MIN_EPOCH_MILLIS}, {MAX_EPOCH_MILLIS}]"
        )
    return millis


def _days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 for a proleptic Gregorian date (month 1..12).

    Years are counted in 400-year eras of 146097 days, with each year starting
    on 1 March so the leap day falls at the end.
    """
    if month <= 2:
        year -= 1
    era = year // 400
    year_of_era = year - era * 400
    shifted_month = month - 3 if month > 2 else month + 9
    day_of_year = (153 * shifted_month + 2) // 5 + day - 1
    day_of_era = year_of_era * 365 + year_of_era // 4 - year_of_era // 100 + day_of_year
    return era * 146097 + day_of_era - 719468


def _civil_from_days(days: int) -> "tuple[int, int, int]":
    """Inverse of :func:`_days_from_civil`; returns (year, month 1..12, day)."""
    days += 719468
    era = days // 146097
    day_of_era = days - era * 146097
    year_of_era = (day_of_era - day_of_era // 1460 + day_of_era // 36524 - day_of_era // 146096) // 365
    day_of_year = day_of_era - (365 * year_of_era + year_of_era // 4 - year_of_era // 100)
    shifted_month = (5 * day_of_year + 2) // 153
    day = day_of_year - (153 * shifted_month + 2) // 5 + 1
    month = shifted_month + 3 if shifted_month < 10 else shifted_month - 9
    year = year_of_era + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def _format_year(year: int) -> str:
    # ISO-8601 expanded years outside 0000-9999
    if 0 <= year <= 9999:
        return f"{year:04d}"
    return f"{'+' if year > 0 else '-'}{abs(year):06d}"


class Instant(BaseModel):
    """A point in time truncated to the whole second and normalized to UTC.

    Instances are immutable. Build them through the factory classmethods
    (``now``, ``from_epoch_millis``, ``from_parts``, ``from_iso_string``, ...);
    calling ``Instant(...)`` directly, ``Instant.model_construct`` or
    ``model_copy(update=...)`` with unknown fields raises
    :class:`ConstructionMisuseError`. Every arithmetic method returns a new
    instance.
    """

    epoch_millis: int
    model_config = ConfigDict(frozen=True)

    def __init__(self, _key: object = None, /, **data: Any) -> None:
        if _key is not _FACTORY_KEY:
            raise ConstructionMisuseError(
                "Don't construct Instant directly. Use a factory such as Instant.from_iso_string()."
            )
        super().__init__(**data)

    @classmethod
    def model_construct(cls, _fields_set: Optional[Set[str]] = None, **values: Any) -> "Instant":
        raise ConstructionMisuseError(
            "Instant.model_construct skips validation. Use a factory such as Instant.from_epoch_millis()."
        )

    def model_copy(self, *, update: Optional[Mapping[str, Any]] = None, deep: bool = False) -> "Instant":
        if not update:
            return super().model_copy(deep=deep)
        unknown = set(update) - {"epoch_millis"}
        if unknown:
            raise ConstructionMisuseError(f"Instant has no field(s) {', '.join(sorted(unknown))}")
        return self._from_millis(update["epoch_millis"])

    # Validation ----------------------------------------------------------------

    # Mapping input reaches __init__ and is refused there; strings, numbers and
    # datetimes are validated without it.
    @model_validator(mode="before")
    @classmethod
    def _coerce_input(cls, data: Any) -> Any:
        if isinstance(data, Instant):
            return {"epoch_millis": data.epoch_millis}
        if isinstance(data, str):
            return {"epoch_millis": cls.parse(data).epoch_millis}
        if isinstance(data, datetime):
            return {"epoch_millis": cls.from_datetime(data).epoch_millis}
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return {"epoch_millis": data}
        return data

    @field_validator("epoch_millis", mode="before")
    @classmethod
    def _truncate_float(cls, value: Any) -> Any:
        if isinstance(value, float):
            return _truncate_to_second(value)
        return value

    @field_validator("epoch_millis")
    @classmethod
    def _truncate_and_check(cls, value: int) -> int:
        return _check_range(_truncate_to_second(value))

    @model_serializer
    def _serialize(self) -> str:
        return self.to_json()

    # Factories -----------------------------------------------------------------

    @classmethod
    def _from_millis(cls, value: Union[int, float]) -> "Instant":
        millis = _check_range(_truncate_to_second(value))
        return cls(_FACTORY_KEY, epoch_millis=millis)

    @classmethod
    def now(cls) -> "Instant":
        return cls.from_datetime(datetime.now(timezone.utc))

    @classmethod
    def from_epoch_millis(cls, millis: Union[int, float]) -> "Instant":
        return cls._from_millis(millis)

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Instant":
        """Build from a datetime; naive values are taken to be in UTC."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        delta = moment - _EPOCH
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        return cls._from_millis(_truncate_division(micros, 1000))

    @classmethod
    def from_parts(
        cls,
        year: int,
        month_index: int,
        day: int,
        hour: int,
        minute: int,
        second: int,
    ) -> "Instant":
        """Build from UTC calendar fields with a zero-based month.

        Fields outside their usual range carry into the next larger unit, so
        ``from_parts(2015, 1, 31, 0, 0, 0)`` is 3 March 2015 and
        ``from_parts(2015, 12, 1, 0, 0, 0)`` is 1 January 2016. Years are
        proleptic Gregorian and may be zero or negative.
        """
        carry, month_index = divmod(month_index, 12)
        days = _days_from_civil(year + carry, month_index + 1, 1) + day - 1
        millis = days * ONE_DAY + hour * ONE_HOUR + minute * ONE_MINUTE + second * ONE_SECOND
        return cls._from_millis(millis)

    @classmethod
    def from_date_parts(cls, year: int, month_index: int, day: int) -> "Instant":
        return cls.from_parts(year, month_index, day, 0, 0, 0)

    @classmethod
    def from_iso_string(cls, text: str) -> "Instant":
        """Parse ``YYYY-MM-DDTHH:MM:SS[.mmm]Z`` at the start of ``text``.

        Milliseconds are accepted and dropped. A day up to 31 that does not
        exist in its month rolls into the next month; any other out-of-range
        field (month 13, hour 25, ...) yields the epoch.

        Raises:
            ParseError: If ``text`` does not start with that form.
        """
        match = _FULL_TIMESTAMP.match(text)
        if match is None:
            logger.debug("Rejected timestamp %r", text)
            raise ParseError(text)
        return cls._from_match(text, match)

    @classmethod
    def from_iso_date_string(cls, text: str) -> "Instant":
        """Parse ``YYYY-MM-DD`` at the start of ``text`` as midnight UTC."""
        match = _DATE_ONLY.match(text)
        if match is None:
            logger.debug("Rejected date %r", text)
            raise ParseError(text)
        return cls._from_match(text, match)

    @classmethod
    def parse(cls, text: str) -> "Instant":
        """Parse either a full timestamp or a bare ``YYYY-MM-DD`` date.

        A full timestamp only has to lead ``text``, as in ``from_iso_string``.
        A date must be the whole of ``text``: otherwise a timestamp missing its
        ``Z`` would silently read as midnight.
        """
        if _FULL_TIMESTAMP.match(text):
            return cls.from_iso_string(text)
        if _DATE_ONLY.fullmatch(text):
            return cls.from_iso_date_string(text)
        logger.debug("Rejected instant %r", text)
        raise ParseError(text)

    @classmethod
    def _from_match(cls, text: str, match: "re.Match[str]") -> "Instant":
        fields = {name: int(value) for name, value in match.groupdict(default="0").items()}
        month, day = fields["month"], fields["day"]
        hour, minute, second = fields.get("hour", 0), fields.get("minute", 0), fields.get("second", 0)
        end_of_day = hour == 24 and minute == 0 and second == 0 and fields.get("fraction", 0) == 0
        if not (1 <= month <= 12 and 1 <= day <= 31 and (hour < 24 or end_of_day) and minute < 60 and second < 60):
            logger.debug("Out-of-range field in %r, using the epoch", text)
            return cls._from_millis(0)
        return cls.from_parts(fields["year"], month - 1, day, hour, minute, second)

    # Formatting ----------------------------------------------------------------

    def to_datetime(self) -> datetime:
        """The instant as an aware datetime in UTC.

        Raises:
            InstantRangeError: If the year falls outside 1..9999.
        """
        try:
            return _EPOCH + timedelta(milliseconds=self.epoch_millis)
        except OverflowError as exc:
            raise InstantRangeError(f"{self.to_iso_string()} cannot be represented as a datetime") from exc

    def to_epoch_millis(self) -> int:
        return self.epoch_millis

    def to_iso_string(self) -> str:
        """2016-01-10T12:03:49Z"""
        fields = self._calendar()
        return f"{self.to_iso_date_string()}T{fields.hour:02d}:{fields.minute:02d}:{fields.second:02d}Z"

    def to_iso_date_string(self) -> str:
        """2016-01-10"""
        fields = self._calendar()
        return f"{_format_year(fields.year)}-{fields.month_index + 1:02d}-{fields.day:02d}"

    def to_json(self) -> str:
        """2016-01-10T12:03:49.000Z"""
        return f"{self.to_iso_string()[:-1]}.000Z"

    def to_utc_string(self) -> str:
        """Sun, 10 Jan 2016 12:03:49 GMT"""
        fields = self._calendar()
        year = f"{fields.year:04d}" if fields.year >= 0 else f"-{-fields.year:04d}"
        return (
            f"{_WEEKDAY_NAMES[fields.weekday]}, {fields.day:02d} {_MONTH_NAMES[fields.month_index]} {year} "
            f"{fields.hour:02d}:{fields.minute:02d}:{fields.second:02d} GMT"
        )

    def __str__(self) -> str:
        return self.to_iso_string()

    def __repr__(self) -> str:
        return f"<Instant {self.to_utc_string()}>"

    # Calendar fields -----------------------------------------------------------

    def _calendar(self) -> _CalendarFields:
        days, millis_of_day = divmod(self.epoch_millis, ONE_DAY)
        year, month, day = _civil_from_days(days)
        hour, millis_of_hour = divmod(millis_of_day, ONE_HOUR)
        minute, millis_of_minute = divmod(millis_of_hour, ONE_MINUTE)
        # 1970-01-01 was a Thursday.
        weekday = (days + 4) % 7
        return _CalendarFields(year, month - 1, day, hour, minute, millis_of_minute // ONE_SECOND, weekday)

    @property
    def day(self) -> int:
        return self._calendar().day

    @property
    def weekday(self) -> int:
        """Day of the week, 0 for Sunday through 6 for Saturday."""
        return self._calendar().weekday

    @property
    def month_index(self) -> int:
        """Zero-based month, 0 for January through 11 for December."""
        return self._calendar().month_index

    @property
    def year(self) -> int:
        return self._calendar().year

    @property
    def hour(self) -> int:
        return self._calendar().hour

    @property
    def minute(self) -> int:
        return self._calendar().minute

    @property
    def second(self) -> int:
        return self._calendar().second

    # Arithmetic ----------------------------------------------------------------

    def add_months(self, months: int) -> "Instant":
        """Shift by calendar months, clamping to the last day of a shorter month."""
        fields = self._calendar()
        year, month_index = divmod(fields.year * 12 + fields.month_index + months, 12)
        candidate = self.from_parts(year, month_index, fields.day, fields.hour, fields.minute, fields.second)
        # A day past the end of the target month spills into the next one.
        if candidate.month_index != month_index:
            logger.debug(
                "Clamping %s + %d months to the end of %s-%02d",
                self,
                months,
                _format_year(year),
                month_index + 1,
            )
        while candidate.month_index != month_index:
            candidate = candidate.add_days(-1)
        return candidate

    def add_days(self, days: int) -> "Instant":
        return self._shift(days * ONE_DAY)

    def add_hours(self, hours: int) -> "Instant":
        return self._shift(hours * ONE_HOUR)

    def add_minutes(self, minutes: int) -> "Instant":
        return self._shift(minutes * ONE_MINUTE)

    def add_seconds(self, seconds: int) -> "Instant":
        return self._shift(seconds * ONE_SECOND)

    def _shift(self, millis: Union[int, float]) -> "Instant":
        return self._from_millis(self.epoch_millis + millis)

    # Comparison ----------------------------------------------------------------

    def is_equal_to(self, other: "Instant") -> bool:
        return self.epoch_millis == other.epoch_millis

    def is_less_than(self, other: "Instant") -> bool:
        return self.epoch_millis < other.epoch_millis

    def is_greater_than(self, other: "Instant") -> bool:
        return self.epoch_millis > other.epoch_millis

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.is_equal_to(other)

    def __hash__(self) -> int:
        return hash(self.epoch_millis)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.is_less_than(other)

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return not self.is_greater_than(other)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.is_greater_than(other)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return not self.is_less_than(other)
