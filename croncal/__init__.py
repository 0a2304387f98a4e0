# CronCal v0.1.0

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

from croncal.builder import SpecBuilder
from croncal.cron import MAX_EXPRESSION_LENGTH, CronOptions, parse_cron
from croncal.spec import MAX_YEARS_BETWEEN_MATCHES, CronError, Spec, Weekday

__all__ = [
    'CronError',
    'CronOptions',
    'Spec',
    'SpecBuilder',
    'Weekday',
    'parse_cron',
    'MAX_EXPRESSION_LENGTH',
    'MAX_YEARS_BETWEEN_MATCHES',
]

__version__ = '0.1.0'
