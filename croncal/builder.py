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

from collections.abc import Iterable

from croncal._fields import DAY, HOUR, LAST_DAY, MINUTE, MONTH, SECOND, WEEKDAY, WEEKDAY_STRICT, CronField
from croncal.spec import CronError, Spec

__all__ = ['SpecBuilder']

class SpecBuilder:
    """Builds a Spec one constraint at a time.

    Every method adds values to the constraint of one field and returns the
    builder, so calls chain in any order. Methods named every_* add the values
    from low to high (inclusive, or the field maximum if high is negative) in
    increments of step (or only low if step is zero or negative). Defaults for
    fields left empty are applied once, by build().

    Example:
        >>> SpecBuilder().every_weekday(Weekday.MONDAY, Weekday.FRIDAY).hour(9).minute(0).build()
    """

    def __init__(self) -> None:
        self._values: dict[str, int] = {}

    def month(self, *months: int) -> SpecBuilder:
        return self._add(MONTH, months)

    def every_month(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(MONTH, low, high, step)

    def day(self, *days: int) -> SpecBuilder:
        return self._add(DAY, days)

    def every_day(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(DAY, low, high, step)

    def last_day(self, *last_days: int) -> SpecBuilder:
        """Add days counted from the end of the month, 1 being the last day."""
        return self._add(LAST_DAY, last_days)

    def every_last_day(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(LAST_DAY, low, high, step)

    def weekday(self, *weekdays: int) -> SpecBuilder:
        return self._add(WEEKDAY, weekdays)

    def every_weekday(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(WEEKDAY, low, high, step)

    def weekday_strict(self, *weekdays: int) -> SpecBuilder:
        """Add weekdays that the selected days of the month must fall on."""
        return self._add(WEEKDAY_STRICT, weekdays)

    def every_weekday_strict(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(WEEKDAY_STRICT, low, high, step)

    def hour(self, *hours: int) -> SpecBuilder:
        return self._add(HOUR, hours)

    def every_hour(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(HOUR, low, high, step)

    def minute(self, *minutes: int) -> SpecBuilder:
        return self._add(MINUTE, minutes)

    def every_minute(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(MINUTE, low, high, step)

    def second(self, *seconds: int) -> SpecBuilder:
        return self._add(SECOND, seconds)

    def every_second(self, low: int, high: int = -1, step: int = 1) -> SpecBuilder:
        return self._add_range(SECOND, low, high, step)

    def build(self) -> Spec:
        return Spec(**self._values)

    def _add(self, field: CronField, values: Iterable[int]) -> SpecBuilder:
        value = 0
        for item in values:
            _check(field, item)
            value |= field.to_set(item, item, 0)
        return self._union(field, value)

    def _add_range(self, field: CronField, low: int, high: int, step: int) -> SpecBuilder:
        if high < 0:
            high = field.maximum
        _check(field, low)
        _check(field, high)
        if low > high:
            raise CronError(f"Bad {field.name} - invalid range {low} > {high}")
        if step <= 0:
            high, step = low, 0
        return self._union(field, field.to_set(low, high, step))

    def _union(self, field: CronField, value: int) -> SpecBuilder:
        self._values[field.attr] = self._values.get(field.attr, 0) | value
        return self

def _check(field: CronField, value: int) -> None:
    try:
        field.check(value)
    except CronError as err:
        raise CronError(f"Bad {field.name} - {err}") from err
