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
import logging
import re

from croncal._fields import DAY, HOUR, LAST_DAY, MINUTE, MONTH, SECOND, WEEKDAY, WEEKDAY_STRICT, CronField
from croncal.spec import CronError, Spec

__all__ = ['CronOptions', 'parse_cron', 'MAX_EXPRESSION_LENGTH']

logger = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 1000

MONTH_NAMES = {
    'jan': 1,
    'feb': 2,
    'mar': 3,
    'apr': 4,
    'may': 5,
    'jun': 6,
    'jul': 7,
    'aug': 8,
    'sep': 9,
    'oct': 10,
    'nov': 11,
    'dec': 12,
}

WEEKDAY_NAMES = {
    'sun': 0,
    'mon': 1,
    'tue': 2,
    'wed': 3,
    'thu': 4,
    'fri': 5,
    'sat': 6,
}

PRESETS = {
    '@hourly': Spec(minutes=1),
    '@daily': Spec(minutes=1, hours=1),
    '@midnight': Spec(minutes=1, hours=1),
    '@midnigth': Spec(minutes=1, hours=1), # misspelling kept for older expressions
    '@weekly': Spec(minutes=1, hours=1, weekdays=1),
    '@monthly': Spec(minutes=1, hours=1, days=1),
    '@yearly': Spec(minutes=1, hours=1, days=1, months=1),
    '@annually': Spec(minutes=1, hours=1, days=1, months=1),
}

# low[-high][/step], each part still unparsed
_VALUE_PATTERN = re.compile(r'(?P<low>[^-/]*)(?:-(?P<high>[^/]*))?(?:/(?P<step>.*))?')

@dc.dataclass(frozen=True)
class CronOptions:
    seconds: bool = False # must contain seconds field
    seconds_optional: bool = False # may contain seconds field
    weekday_optional: bool = False # day-of-week field may be omitted

    def field_counts(self) -> tuple[int, int]:
        min_fields = max_fields = 5
        if self.seconds or self.seconds_optional:
            max_fields += 1
        if self.seconds:
            min_fields += 1
        if self.weekday_optional:
            min_fields -= 1
        return min_fields, max_fields

def parse_cron(expression: str, options: CronOptions | None = None) -> Spec:
    """Parse a cron expression into a Spec.

    Besides the usual syntax, a day of the month preceded by '^' counts from
    the end of the month (^1 is the last day) and a day of the week preceded
    by '&' restricts the selected days of the month to that weekday.

    Args:
        expression (str): Whitespace separated fields, or a single @preset.
        options (CronOptions | None, optional): Which fields may or must be present.
          Defaults to the five standard fields.

    Raises:
        CronError: The expression is malformed.

    Returns:
        Spec: Constraints described by the expression.
    """
    options = options or CronOptions()
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise CronError(f"Bad expression - length exceeds {MAX_EXPRESSION_LENGTH} characters")

    fields = expression.split()
    min_fields, max_fields = options.field_counts()
    if len(fields) == 1 and fields[0].startswith('@'):
        return _parse_preset(fields[0])
    if len(fields) > max_fields:
        raise CronError(f"Bad expression - at most {max_fields} fields are allowed")
    if len(fields) < min_fields:
        raise CronError(f"Bad expression - at least {min_fields} fields are required")

    has_seconds = options.seconds or len(fields) == 6
    spec = _parse_fields(fields, has_seconds)
    logger.debug('parsed cron expression %r into %r', expression, spec)
    return spec

def _parse_preset(preset: str) -> Spec:
    spec = PRESETS.get(preset)
    if spec is None:
        raise CronError(f"Bad expression - unknown preset {preset}")
    logger.debug('expanded cron preset %s into %r', preset, spec)
    return spec

def _parse_fields(fields: list[str], has_seconds: bool) -> Spec:
    values: dict[str, int] = {}
    if has_seconds:
        values['seconds'], _ = _parse_field(fields[0], SECOND)
        fields = fields[1:]
    values['minutes'], _ = _parse_field(fields[0], MINUTE)
    values['hours'], _ = _parse_field(fields[1], HOUR)
    values['days'], values['last_days'] = _parse_field(fields[2], DAY, marked=('^', LAST_DAY))
    values['months'], _ = _parse_field(fields[3], MONTH, MONTH_NAMES)
    if len(fields) == 5:
        values['weekdays'], values['weekdays_strict'] = _parse_field(
            fields[4], WEEKDAY, WEEKDAY_NAMES, marked=('&', WEEKDAY_STRICT)
        )
    return Spec(**values)

def _parse_field(
    text: str,
    field: CronField,
    text_map: dict[str, int] | None = None,
    marked: tuple[str, CronField] | None = None,
) -> tuple[int, int]:
    # returns bits of plain values and bits of values preceded by the marker
    plain = 0
    special = 0
    items = text.split(',')
    for position, item in enumerate(items, 1):
        target = field
        is_marked = marked is not None and item.startswith(marked[0])
        if is_marked:
            item = item[1:]
            target = marked[1]
        try:
            value = _parse_value(item, target, text_map)
        except CronError as err:
            where = f"{_ordinal(position)} value in list - " if len(items) > 1 else ''
            raise CronError(f"Bad {field.name} - {where}{err}") from err
        if is_marked:
            special |= value
        else:
            plain |= value
    return plain, special

def _parse_value(item: str, field: CronField, text_map: dict[str, int] | None) -> int:
    if not item:
        raise CronError('missing value')
    match = _VALUE_PATTERN.fullmatch(item)
    low_text, high_text, step_text = match.group('low', 'high', 'step')
    lower, upper = field.bound

    if low_text in ('*', '?'):
        if high_text is not None:
            raise CronError(f"range is not allowed with '{low_text}'")
        if step_text is None:
            # wildcard leaves the field to its default
            return 0
        low, high = lower, upper
    elif high_text is not None:
        low = _parse_bound(low_text, field, text_map, 'low value of range')
        high = _parse_bound(high_text, field, text_map, 'high value of range')
        if low > high:
            raise CronError(f"invalid range {low} > {high}")
    elif step_text is not None:
        # N/S is shorthand for N-max/S
        low = _parse_bound(low_text, field, text_map, 'base of step value')
        high = upper
    else:
        low = high = _parse_basic_value(low_text, field, text_map)

    if step_text is None:
        step = 0 if high_text is None else 1
    else:
        try:
            step = _parse_number(step_text)
        except CronError as err:
            raise CronError(f"invalid step - {err}") from err
        if step < 1:
            raise CronError('invalid step - must be greater than 0')
        if step > high - low:
            raise CronError(f"step {step} is greater than range {low}-{high}")
    return field.to_set(low, high, step)

def _parse_bound(text: str, field: CronField, text_map: dict[str, int] | None, role: str) -> int:
    try:
        return _parse_basic_value(text, field, text_map)
    except CronError as err:
        raise CronError(f"invalid {role} - {err}") from err

def _parse_basic_value(text: str, field: CronField, text_map: dict[str, int] | None) -> int:
    if text_map:
        value = text_map.get(text.lower())
        if value is not None:
            return value
    return field.check(_parse_number(text))

def _parse_number(text: str) -> int:
    # digits only, int() would also take signs, whitespace and underscores
    if not (text.isascii() and text.isdigit()):
        raise CronError(f"'{text}' is not a number")
    return int(text)

def _ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(number % 10, 'th')
    return f"{number}{suffix}"
