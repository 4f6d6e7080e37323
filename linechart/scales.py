# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (C) 2024 Jonathan Lee
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License version 3
# as published by the Free Software Foundation.
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.
# See the GNU Affero General Public License for more details.
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see https://www.gnu.org/licenses/.

"""
Scale provider: linear and UTC time scales.

A scale maps a data domain onto a pixel range and knows how to pick and
format "nice" tick values for its axis guide. Raw values are always coerced
through the scale class first, so the axis builder can hand over whatever the
accessors returned (numbers, numeric strings, dates, ISO strings, epoch ms).
"""

import math
from bisect import bisect_right
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np
import pandas as pd

from .errors import ChartConfigError

MISSING_TOKENS = ['na', 'Na', 'NA', 'n/a', 'N/A', '', 'null', 'None']

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)

_EPOCH = pd.Timestamp(0, tz='UTC')
_MS = pd.Timedelta(milliseconds=1)

_SECOND = 1000
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY

# (pandas frequency, approximate duration in ms, fixed-width frequency)
_TIME_INTERVALS = [
    ('1s', _SECOND, True),
    ('5s', 5 * _SECOND, True),
    ('15s', 15 * _SECOND, True),
    ('30s', 30 * _SECOND, True),
    ('1min', _MINUTE, True),
    ('5min', 5 * _MINUTE, True),
    ('15min', 15 * _MINUTE, True),
    ('30min', 30 * _MINUTE, True),
    ('1h', _HOUR, True),
    ('3h', 3 * _HOUR, True),
    ('6h', 6 * _HOUR, True),
    ('12h', 12 * _HOUR, True),
    ('1D', _DAY, True),
    ('2D', 2 * _DAY, True),
    ('W-SUN', _WEEK, False),
    ('MS', _MONTH, False),
    ('QS', 3 * _MONTH, False),
    ('YS', _YEAR, False),
]
_DURATIONS = [interval[1] for interval in _TIME_INTERVALS]

# --- Helper Functions ---

def _clean_numeric_data(values: Sequence[Any]) -> pd.Series:
    """Convert values to float, turning missing-value markers and infinities into NaN."""
    series = pd.Series(list(values), dtype=object)
    if not series.empty:
        series = series.where(~series.isin(MISSING_TOKENS))
    numeric = pd.to_numeric(series, errors='coerce').astype(float)
    return numeric.replace([np.inf, -np.inf], np.nan)


def _clean_time_data(values: Sequence[Any]) -> pd.Series:
    """Convert values to UTC timestamps; numbers are epoch milliseconds."""
    series = pd.Series(list(values))
    if pd.api.types.is_datetime64_any_dtype(series):
        return pd.to_datetime(series, utc=True)
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return pd.to_datetime(series, unit='ms', utc=True, errors='coerce')
    series = series.astype(object)
    if not series.empty:
        series = series.where(~series.isin(MISSING_TOKENS))
    return pd.to_datetime(series, utc=True, errors='coerce', format='mixed')


def _tick_spec(start: float, stop: float, count: float) -> Tuple[int, int, float]:
    """Integer tick bounds and increment; a negative increment means divide by it."""
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        inc = 10 ** -power / factor
        i1 = round(start * inc)
        i2 = round(stop * inc)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = 10 ** power * factor
        i1 = round(start / inc)
        i2 = round(stop / inc)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1
    return i1, i2, inc


def tick_step(start: float, stop: float, count: float) -> float:
    """Size of the "nice" step (1, 2 or 5 times a power of ten) covering start..stop."""
    lo, hi = min(start, stop), max(start, stop)
    if count <= 0 or hi == lo:
        return 0.0
    _, _, inc = _tick_spec(lo, hi, count)
    return 1 / -inc if inc < 0 else inc


def linear_ticks(start: float, stop: float, count: float) -> List[float]:
    """Roughly count evenly spaced nice values inside [start, stop]."""
    if count <= 0 or not (math.isfinite(start) and math.isfinite(stop)):
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    i1, i2, inc = _tick_spec(lo, hi, count)
    if i2 < i1:
        return []
    if inc < 0:
        ticks = [i / -inc for i in range(i1, i2 + 1)]
    else:
        ticks = [i * inc for i in range(i1, i2 + 1)]
    return ticks[::-1] if reverse else ticks


def extent(values: pd.Series) -> Optional[Tuple[Any, Any]]:
    """(min, max) of the non-missing values, or None when nothing is left."""
    valid = values.dropna()
    if valid.empty:
        return None
    lo, hi = valid.min(), valid.max()
    if isinstance(lo, np.generic):
        lo, hi = lo.item(), hi.item()
    return lo, hi


def _number_format(specifier: str) -> Callable[[float], str]:
    try:
        format(0.0, specifier)
    except ValueError as e:
        raise ChartConfigError(f"Invalid number format '{specifier}': {e}")
    return lambda value: format(value, specifier)


def _time_label(ts: pd.Timestamp) -> str:
    """Multi-scale label: the coarsest unit the timestamp is not aligned to."""
    if ts.microsecond:
        return f".{ts.microsecond // 1000:03d}"
    if ts.second:
        return ts.strftime(':%S')
    if ts.minute:
        return ts.strftime('%I:%M')
    if ts.hour:
        return ts.strftime('%I %p')
    if ts.day != 1:
        return ts.strftime('%b %d') if ts.dayofweek == 6 else ts.strftime('%a %d')
    if ts.month != 1:
        return ts.strftime('%B')
    return ts.strftime('%Y')

# --- Scales ---

class Scale:
    """Maps domain values onto a pixel range."""

    kind = ''

    def __init__(self, domain: Sequence[Any], range_: Sequence[float]):
        if len(domain) != 2 or len(range_) != 2:
            raise ValueError("A scale needs a two-value domain and a two-value range.")
        self.domain = tuple(self.coerce(domain).tolist())
        self.range = (float(range_[0]), float(range_[1]))
        self._d0, self._d1 = self.numbers(self.domain)

    @classmethod
    def coerce(cls, values: Sequence[Any]) -> pd.Series:
        raise NotImplementedError

    @classmethod
    def _to_numbers(cls, values: pd.Series) -> np.ndarray:
        raise NotImplementedError

    def numbers(self, values: Sequence[Any]) -> np.ndarray:
        return self._to_numbers(self.coerce(values))

    def map(self, values: Sequence[Any]) -> np.ndarray:
        """Pixel positions for values; missing values map to NaN."""
        t = self.numbers(values)
        r0, r1 = self.range
        span = self._d1 - self._d0
        if span == 0 or not math.isfinite(span):
            # degenerate domain: everything sits in the middle of the range
            return np.where(np.isnan(t), np.nan, (r0 + r1) / 2)
        return r0 + (t - self._d0) / span * (r1 - r0)

    def __call__(self, value: Any) -> float:
        return float(self.map([value])[0])

    def ticks(self, count: float) -> List[Any]:
        raise NotImplementedError

    def tick_format(self, count: float, specifier: Optional[str] = None) -> Callable[[Any], str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(domain={self.domain!r}, range={self.range!r})"


class LinearScale(Scale):
    kind = 'linear'

    @classmethod
    def coerce(cls, values: Sequence[Any]) -> pd.Series:
        return _clean_numeric_data(values)

    @classmethod
    def _to_numbers(cls, values: pd.Series) -> np.ndarray:
        return values.to_numpy(dtype=float)

    def ticks(self, count: float) -> List[float]:
        return linear_ticks(self._d0, self._d1, count)

    def tick_format(self, count: float, specifier: Optional[str] = None) -> Callable[[Any], str]:
        if specifier:
            return _number_format(specifier)
        step = tick_step(self._d0, self._d1, count)
        if step <= 0:
            return lambda value: f"{value:,g}"
        precision = max(0, -math.floor(math.log10(step)))
        return lambda value: f"{value:,.{precision}f}"


class UtcScale(Scale):
    """Time scale over UTC timestamps; numbers are read as epoch milliseconds."""

    kind = 'utc'

    @classmethod
    def coerce(cls, values: Sequence[Any]) -> pd.Series:
        return _clean_time_data(values)

    @classmethod
    def _to_numbers(cls, values: pd.Series) -> np.ndarray:
        return ((values - _EPOCH) / _MS).to_numpy(dtype=float)

    def ticks(self, count: float) -> List[pd.Timestamp]:
        if count <= 0 or not (math.isfinite(self._d0) and math.isfinite(self._d1)):
            return []
        lo, hi = sorted(self.domain)
        start, stop = min(self._d0, self._d1), max(self._d0, self._d1)
        target = (stop - start) / count

        index = bisect_right(_DURATIONS, target)

        if index == 0:
            step = max(tick_step(start, stop, count), 1)
            first = math.ceil(start / step)
            last = math.floor(stop / step)
            return [pd.Timestamp(i * step, unit='ms', tz='UTC') for i in range(first, last + 1)]

        if index == len(_TIME_INTERVALS):
            step = max(1, round(tick_step(start / _YEAR, stop / _YEAR, count)))
            first = -(-lo.year // step) * step
            years = [pd.Timestamp(year=y, month=1, day=1, tz='UTC') for y in range(first, hi.year + 1, step)]
            return [ts for ts in years if lo <= ts <= hi]

        below, above = _TIME_INTERVALS[index - 1], _TIME_INTERVALS[index]
        freq, _, fixed = below if target / below[1] < above[1] / target else above

        if fixed:
            ticks = pd.date_range(start=lo.ceil(freq), end=hi, freq=freq)
        else:
            ticks = pd.date_range(start=lo, end=hi, freq=freq, normalize=True)
        return [ts for ts in ticks if lo <= ts <= hi]

    def tick_format(self, count: float, specifier: Optional[str] = None) -> Callable[[Any], str]:
        if specifier:
            return lambda value: pd.Timestamp(value).strftime(specifier)
        return lambda value: _time_label(pd.Timestamp(value))

# --- Registry ---

SCALES: Dict[str, Type[Scale]] = {
    'linear': LinearScale,
    'scaleLinear': LinearScale,
    'utc': UtcScale,
    'scaleUtc': UtcScale,
    'time': UtcScale,
    'scaleTime': UtcScale,
}


def scale_class(kind: Any) -> Type[Scale]:
    """Resolve a scale kind (registry name or Scale subclass) to its class."""
    if isinstance(kind, type) and issubclass(kind, Scale):
        return kind
    try:
        return SCALES[kind]
    except (KeyError, TypeError):
        raise ChartConfigError(f"Unknown scale type {kind!r}. Available: {sorted(SCALES)}")


def merge_domains(scale_cls: Type[Scale], *domains: Optional[Sequence[Any]]) -> Optional[Tuple[Any, Any]]:
    """Extent over the union of several domains; None entries are ignored."""
    values: List[Any] = []
    for domain in domains:
        if domain is not None:
            values.extend(domain)
    return extent(scale_cls.coerce(values))
