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

# fixed-width bitsets are plain ints, bit i standing for the i'th value of a field

def mask(width: int) -> int:
    return (1 << width) - 1

def bits_from(value: int, index: int) -> int:
    # clears every bit below index
    return value & ~mask(index)

def lowest_bit(value: int) -> int:
    # index of the lowest set bit, -1 when no bit is set
    return (value & -value).bit_length() - 1

def highest_bit(value: int) -> int:
    return value.bit_length() - 1

def range_to_set(low: int, high: int, step: int) -> int:
    """Set of {low, low+step, ...} up to high inclusive, or {low} when step is 0."""
    if step == 0:
        return 1 << low
    if step == 1:
        return mask(high + 1) & ~mask(low)
    value = 0
    for i in range(low, high + 1, step):
        value |= 1 << i
    return value

def range_to_set_reverse(low: int, high: int, step: int, max_index: int) -> int:
    """Same as range_to_set but with value i stored at bit max_index - i."""
    if step == 0:
        return 1 << (max_index - low)
    if step == 1:
        return mask(max_index - low + 1) & ~mask(max_index - high)
    value = 0
    for i in range(low, high + 1, step):
        value |= 1 << (max_index - i)
    return value

def weekdays_to_days(weekdays: int, first_weekday: int) -> int:
    """Expand a weekday set (bit 0 = Sunday) into a 32-bit day-of-month set.

    Day d of a month falls on weekday (first_weekday + d - 1) % 7, so rotating
    the seven weekday bits right by first_weekday gives the pattern of the
    first week, which then repeats every seven days.
    """
    shift = first_weekday % 7
    week = weekdays & mask(7)
    week = ((week >> shift) | (week << (7 - shift))) & mask(7)
    return (week | week << 7 | week << 14 | week << 21 | week << 28) & mask(32)
