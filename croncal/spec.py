# MIT License
#
# Copyright (c) 2023-2024 Calvin Law
#
# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

from __future__ import annotations

from collections.abc import Generator
import calendar
import dataclasses as dc
import datetime as dt
import enum
import logging

from croncal import _bits

__all__ = ['CronError', 'Spec', 'Weekday', 'MAX_YEARS_BETWEEN_MATCHES']

logger = logging.getLogger(__name__)

class CronError(ValueError):
    pass

# the gregorian calendar repeats itself every 400 years
MAX_YEARS_BETWEEN_MATCHES = 400

class Weekday(enum.IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

# bits a constructed Spec may hold per attribute, weekday 7 already folded into 0
_WIDTHS = {
    'months': 12,
    'days': 31,
    'last_days': 31,
    'weekdays': 7,
    'weekdays_strict': 7,
    'hours': 24,
    'minutes': 60,
    'seconds': 60,
}

_MAX_DAYS_IN_MONTH = [31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

# calendar helpers
# --------------------

def _month_geometry(year: int, month: int) -> tuple[int, int]:
    # weekday of the 1st (Sun=0) and number of days
    first_weekday, length = calendar.monthrange(year, month)
    return (first_weekday + 1) % 7, length

def _realize(datetime: dt.datetime) -> dt.datetime:
    # maps a wall clock time inside a DST gap to the instant it denotes, e.g. 02:30 -> 03:30
    return dt.datetime.fromtimestamp(datetime.timestamp(), tz=datetime.tzinfo)

def _wallclock(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    tzinfo: dt.tzinfo | None = None,
    fold: int = 0,
) -> dt.datetime:
    # out of range month, day, hour, minute and second carry into the next unit
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    if year > dt.MAXYEAR:
        raise OverflowError('date value out of range')
    naive = dt.datetime(year, month, 1) + dt.timedelta(days=day - 1, hours=hour, minutes=minute, seconds=second)
    datetime = naive.replace(tzinfo=tzinfo, fold=fold)
    if fold and _delta_seconds_between_fold(datetime) >= 0:
        # fold only selects between the two instants of an ambiguous wall clock time
        datetime = datetime.replace(fold=0)
    return _realize(datetime)

def _shift(datetime: dt.datetime, seconds: int) -> dt.datetime:
    # elapsed time, unlike datetime + timedelta which moves the wall clock
    return dt.datetime.fromtimestamp(datetime.timestamp() + seconds, tz=datetime.tzinfo)

def _delta_seconds_between_fold(datetime: dt.datetime) -> int:
    return round(datetime.replace(fold=0).timestamp() - datetime.replace(fold=1).timestamp())

def _repeated_period_start(datetime: dt.datetime) -> dt.datetime | None:
    # second pass over the ambiguous wall clock period holding datetime, if datetime is in its first pass
    delta_seconds = _delta_seconds_between_fold(datetime)
    if datetime.fold or delta_seconds >= 0:
        return None
    # all countries' ambiguous times end on :00
    # https://en.wikipedia.org/wiki/Daylight_saving_time_by_country
    return (
        datetime.replace(minute=0, second=0) + dt.timedelta(hours=1, seconds=delta_seconds)
    ).replace(fold=1)

# public api
# ********************

@dc.dataclass(frozen=True)
class Spec:
    """Set of constraints on month, day, weekday, hour, minute and second.

    Each field is a bitset, bit i standing for the i'th value of the field
    (January, the 1st, Sunday, midnight, minute 0, second 0). Last days of the
    month are end-anchored: bit 30 is the last day, bit 29 the day before it.

    Days of the month, last days of the month and weekdays are alternatives:
    the nearest day that satisfies any of them is selected. Restricted weekdays
    filter the days of the month and last days of the month instead, keeping
    only the days that also fall on one of them. Without days of the month or
    last days of the month, restricted weekdays act as plain weekdays.

    A field left empty allows any value, except seconds: an empty seconds
    field means second 0 only.
    """
    months: int = 0
    days: int = 0
    last_days: int = 0
    weekdays: int = 0
    weekdays_strict: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    def __post_init__(self) -> None:
        for name, width in _WIDTHS.items():
            value = getattr(self, name)
            if value < 0 or value >> width:
                raise CronError(f"Bad {name} - bitset exceeds {width} bits")

        def assign(name: str, value: int) -> None:
            object.__setattr__(self, name, value)

        if not self.months:
            assign('months', _bits.mask(12))
        if not self.days and not self.last_days:
            if not self.weekdays:
                assign('days', _bits.mask(31))
            elif self.weekdays_strict:
                assign('weekdays', self.weekdays | self.weekdays_strict)
                assign('weekdays_strict', 0)
        if not self.hours:
            assign('hours', _bits.mask(24))
        if not self.minutes:
            assign('minutes', _bits.mask(60))

    def next(self, start: dt.datetime) -> dt.datetime | None:
        """Find the earliest instant after start that satisfies these constraints.

        Start is truncated to whole minutes, or to whole seconds when seconds
        are constrained. The result carries the time zone of start.

        Args:
            start (dt.datetime): Search starting point, excluded from the result.

        Returns:
            datetime | None: The next matching instant, or None when no instant
              can ever satisfy these constraints.
        """
        unit = 1 if self.seconds else 60
        start = _realize(start).replace(microsecond=0)
        if unit == 60:
            start = start.replace(second=0)
        try:
            result = self._resolve(start, start, unit)
            repeated = _repeated_period_start(start)
            if result is not None and repeated is not None and result.timestamp() > repeated.timestamp():
                # the wall clock search left the period the clock goes back over, whose second pass comes first
                again = self._resolve(repeated, start, unit)
                if again is not None and again.timestamp() < result.timestamp():
                    result = again
        except OverflowError:
            logger.debug('search for %r after %s ran past year %d', self, start, dt.MAXYEAR)
            return None
        if result is None:
            logger.debug('no instant satisfies %r after %s', self, start)
        return result

    def iter(self, start: dt.datetime | None = None) -> Generator[dt.datetime, None, None]:
        """Iterate over the instants that satisfy these constraints.

        Args:
            start (dt.datetime | None, optional): Iteration starting point. Matches exclude the starting point itself.
              Defaults to the current datetime in UTC.

        Yields:
            datetime: The next matching instant of the sequence.
        """
        current = start if start else dt.datetime.now(dt.timezone.utc)
        while True:
            result = self.next(current)
            if result is None:
                return
            yield result
            current = result

    def matches(self, datetime: dt.datetime) -> bool:
        # without constraint on seconds only second 0 matches
        if datetime.microsecond or not (self.seconds or 1) >> datetime.second & 1:
            return False
        if not self.minutes >> datetime.minute & 1 or not self.hours >> datetime.hour & 1:
            return False
        if not self.months >> (datetime.month - 1) & 1:
            return False
        first_weekday, length = _month_geometry(datetime.year, datetime.month)
        days = 0
        if self.days or self.weekdays:
            days |= self._month_days(first_weekday, length)
        if self.last_days:
            days |= self._last_days(first_weekday, length)
        return bool(days >> (datetime.day - 1) & 1)

    # resolver
    # --------------------

    def _resolve(self, origin: dt.datetime, start: dt.datetime, unit: int) -> dt.datetime | None:
        # searches from origin onwards for the first match strictly after start
        year_limit = origin.year + MAX_YEARS_BETWEEN_MATCHES
        probe = origin
        current = origin
        while True:
            if current.year > year_limit:
                return None

            # any carry restarts from the month, a rollover may land in a disallowed month
            current = self._resolve_month(current)
            resolved, carry = self._resolve_day(current)
            if resolved is None:
                return None
            current = resolved
            if carry:
                continue
            current, carry = self._resolve_hour(current)
            if carry:
                continue
            current, carry = self._resolve_minute(current)
            if carry:
                continue
            if self.seconds:
                current, carry = self._resolve_second(current)
                if carry:
                    continue

            if current.timestamp() > start.timestamp():
                return current
            probe = _shift(probe, unit)
            current = probe

    def _resolve_month(self, current: dt.datetime) -> dt.datetime:
        year = current.year
        month = current.month - 1
        rest = _bits.bits_from(self.months, month)
        if rest:
            next_month = _bits.lowest_bit(rest)
            if next_month == month:
                return current
        else:
            next_month = _bits.lowest_bit(self.months)
            year += 1
        return _wallclock(year, next_month + 1, 1, tzinfo=current.tzinfo)

    def _resolve_day(self, current: dt.datetime) -> tuple[dt.datetime | None, bool]:
        year, month, day = current.year, current.month, current.day
        first_weekday, length = _month_geometry(year, month)

        candidates = []
        if self.days or self.weekdays:
            candidates.append(self._month_days(first_weekday, length))
        if self.last_days:
            candidates.append(self._last_days(first_weekday, length))

        nearest = [_bits.lowest_bit(_bits.bits_from(days, day - 1)) for days in candidates]
        nearest = [index + 1 for index in nearest if index >= 0]
        if nearest:
            next_day = min(nearest)
            if next_day == day:
                return current, False
            return _wallclock(year, month, next_day, tzinfo=current.tzinfo), False

        if not self._day_possible():
            return None, False
        return _wallclock(year, month + 1, 1, tzinfo=current.tzinfo), True

    def _month_days(self, first_weekday: int, length: int) -> int:
        days = self.days
        if self.weekdays_strict:
            days &= _bits.weekdays_to_days(self.weekdays_strict, first_weekday)
        if self.weekdays:
            days |= _bits.weekdays_to_days(self.weekdays, first_weekday)
        return days & _bits.mask(length)

    def _last_days(self, first_weekday: int, length: int) -> int:
        # shifting by the days missing from a 31 day month moves the last day from bit 30 to bit length - 1
        days = (self.last_days >> (31 - length)) & _bits.mask(length)
        if self.weekdays_strict:
            days &= _bits.weekdays_to_days(self.weekdays_strict, first_weekday)
        return days

    def _day_possible(self) -> bool:
        # whether some allowed month is long enough for the nearest day of the month or last day
        longest = max(
            _MAX_DAYS_IN_MONTH[month] for month in range(12) if self.months >> month & 1
        )
        if self.weekdays:
            return True
        if self.days and _bits.lowest_bit(self.days) + 1 <= longest:
            return True
        if self.last_days and 31 - _bits.highest_bit(self.last_days) <= longest:
            return True
        return False

    def _resolve_hour(self, current: dt.datetime) -> tuple[dt.datetime, bool]:
        hour = current.hour
        rest = _bits.bits_from(self.hours, hour)
        if rest:
            next_hour = _bits.lowest_bit(rest)
            if next_hour == hour:
                return current, False
            result = _wallclock(
                current.year, current.month, current.day, next_hour, tzinfo=current.tzinfo, fold=current.fold
            )
            carry = False
        else:
            next_hour = _bits.lowest_bit(self.hours)
            result = _wallclock(current.year, current.month, current.day + 1, next_hour, tzinfo=current.tzinfo)
            carry = True
        # a forward clock change skipped the hour
        return result, carry or result.hour != next_hour

    def _resolve_minute(self, current: dt.datetime) -> tuple[dt.datetime, bool]:
        minute = current.minute
        rest = _bits.bits_from(self.minutes, minute)
        if rest:
            next_minute = _bits.lowest_bit(rest)
            if next_minute == minute:
                return current, False
            result = _wallclock(
                current.year, current.month, current.day, current.hour, next_minute,
                tzinfo=current.tzinfo,
                fold=current.fold,
            )
            return result, (result.hour, result.minute) != (current.hour, next_minute)
        next_minute = _bits.lowest_bit(self.minutes)
        result = _wallclock(
            current.year, current.month, current.day, current.hour + 1, next_minute,
            tzinfo=current.tzinfo,
            fold=current.fold,
        )
        return result, True

    def _resolve_second(self, current: dt.datetime) -> tuple[dt.datetime, bool]:
        second = current.second
        rest = _bits.bits_from(self.seconds, second)
        if rest:
            next_second = _bits.lowest_bit(rest)
            if next_second == second:
                return current, False
            result = _wallclock(
                current.year, current.month, current.day,
                current.hour, current.minute, next_second,
                tzinfo=current.tzinfo,
                fold=current.fold,
            )
            return result, (result.minute, result.second) != (current.minute, next_second)
        next_second = _bits.lowest_bit(self.seconds)
        result = _wallclock(
            current.year, current.month, current.day,
            current.hour, current.minute + 1, next_second,
            tzinfo=current.tzinfo,
            fold=current.fold,
        )
        return result, True
