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

import dataclasses as dc

from croncal import _bits
from croncal.spec import CronError

# bounds, names and storage of the fields of cron expressions and builder calls

@dc.dataclass(frozen=True)
class CronField:
    name: str
    attr: str
    bound: tuple[int, int]
    reverse: bool = False
    sunday_alias: bool = False

    def to_set(self, low: int, high: int, step: int) -> int:
        lower, upper = self.bound
        if self.reverse:
            value = _bits.range_to_set_reverse(low - lower, high - lower, step, upper - lower)
        else:
            value = _bits.range_to_set(low - lower, high - lower, step)
        if self.sunday_alias:
            value = _fold_sunday(value)
        return value

    @property
    def maximum(self) -> int:
        # 7 only exists as an alias of Sunday
        return 6 if self.sunday_alias else self.bound[1]

    def check(self, value: int) -> int:
        lower, upper = self.bound
        if value < lower:
            raise CronError(f"must not be lower than {lower}")
        if value > upper:
            raise CronError(f"must not be greater than {upper}")
        return value

def _fold_sunday(value: int) -> int:
    # weekday 7 is an alias for Sunday
    if value & (1 << 7):
        value = value & _bits.mask(7) | 1
    return value

SECOND = CronField('second', 'seconds', (0, 59))
MINUTE = CronField('minute', 'minutes', (0, 59))
HOUR = CronField('hour', 'hours', (0, 23))
DAY = CronField('day-of-month', 'days', (1, 31))
LAST_DAY = CronField('last-day-of-month', 'last_days', (1, 31), reverse=True)
MONTH = CronField('month', 'months', (1, 12))
WEEKDAY = CronField('day-of-week', 'weekdays', (0, 7), sunday_alias=True)
WEEKDAY_STRICT = CronField('day-of-week', 'weekdays_strict', (0, 7), sunday_alias=True)
