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
Axis builder.

The x axis comes either from a synthetic time-step sequence (``xStart``,
``xEnd`` and ``xStep`` fields read from column data) or from ``xFunc``
applied to every record. Accessors (``xFunc``, ``yFunc``) take the record
alone; only a series' ``defined(d, i)`` predicate also receives the index.

Y axes are keyed by label: every series sharing a label is scaled against
one merged domain. All y domains are merged before any scale is built, so no
shape is ever drawn against a domain that a later series would still widen.
"""

import logging
import numbers
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import pandas as pd

from .config import AxisPosition, ChartOptions, ResolvedSeries
from .errors import ChartConfigError, ChartDataError
from .scales import Scale, extent, merge_domains, scale_class
from .surface import Group, Line, Text

logger = logging.getLogger(__name__)

TICK_SIZE = 6
TICK_PADDING = 3
GRID_OPACITY = 0.1

# --- Data Access ---

class DataAccess:
    """Row- or column-oriented view of the chart data, decided once per load.

    Sequences of records are row data, mappings are column data, and a
    DataFrame is both (its records are positional tuples).
    """

    def __init__(self, data: Any):
        self.records: Optional[List[Any]] = None
        self.columns: Optional[Mapping] = None
        if isinstance(data, pd.DataFrame):
            self.columns = {name: data[name].tolist() for name in data.columns}
            self.records = list(data.itertuples(index=False, name=None))
        elif isinstance(data, Mapping):
            self.columns = data
        elif isinstance(data, Iterable) and not isinstance(data, (str, bytes)):
            self.records = list(data)
        else:
            raise ChartDataError(f"Chart data must be a sequence of records or a mapping of columns, "
                                 f"got {type(data).__name__}")

    def map(self, accessor: Callable[[Any], Any], name: str = 'accessor') -> List[Any]:
        """Apply a one-argument row accessor to every record, in record order."""
        if self.records is None:
            raise ChartDataError(f"{name} needs row-oriented data; got columns {list(self.columns)}")
        values = []
        for i, record in enumerate(self.records):
            try:
                values.append(accessor(record))
            except (IndexError, KeyError, TypeError) as e:
                raise ChartDataError(f"{name} failed on record {i} ({record!r}): {e}") from e
        return values

    def field(self, name: str) -> Any:
        if self.columns is None:
            raise ChartDataError(f"Field '{name}' needs column-oriented data; got a sequence of records")
        if name not in self.columns:
            raise ChartDataError(f"Column '{name}' not found. Available: {list(self.columns)}")
        return self.columns[name]

    def column(self, name: str) -> List[Any]:
        value = self.field(name)
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise ChartDataError(f"Column '{name}' must hold a sequence of values, got {value!r}")
        return list(value)

# --- Axis Types ---

@dataclass
class XAxis:
    values: pd.Series
    domain: Tuple[Any, Any]
    scale: Scale


@dataclass
class YAxis:
    """One y axis per label; ``values`` are those of the first series using it."""

    label: str
    values: pd.Series
    domain: Optional[Tuple[Any, Any]]
    scale: Optional[Scale] = None
    rendered: bool = False


@dataclass(frozen=True, eq=False)
class PlottedSeries:
    """A series bound to its axis label, with its own coerced values."""

    series: ResolvedSeries
    label: str
    values: pd.Series
    data: Tuple[Any, ...]

# --- Helper Functions ---

def _calendar_date(value: Any, name: str) -> pd.Timestamp:
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        ts = pd.to_datetime(value, unit='ms', utc=True, errors='coerce')
    else:
        ts = pd.to_datetime(value, utc=True, errors='coerce')
    if not isinstance(ts, pd.Timestamp):
        raise ChartDataError(f"Invalid date for {name}: {value!r}")
    return ts


def _step_value(access: DataAccess, name: str, option: str) -> Any:
    """A scalar step field; a DataFrame column repeating one value counts as that value."""
    value = access.field(name)
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return value
    values = list(value)
    if not values or any(v != values[0] for v in values[1:]):
        raise ChartDataError(f"{option} must be a single value, got {len(values)} entries in column '{name}'")
    return values[0]


def _domain(scale_cls: Type[Scale], explicit: Optional[Sequence[Any]], values: pd.Series,
            name: str) -> Optional[Tuple[Any, Any]]:
    if explicit is None:
        return extent(values)
    coerced = scale_cls.coerce(explicit)
    if coerced.isna().any():
        raise ChartConfigError(f"Invalid {name} domain {list(explicit)!r} for a {scale_cls.kind} scale")
    return tuple(coerced.tolist())

# --- X Axis ---

def step_sequence(start: Any, end: Any, step_minutes: Any) -> pd.Series:
    """Timestamps from start through the last instant of end's day, every step minutes."""
    start_ts = _calendar_date(start, 'xStart')
    end_ts = _calendar_date(end, 'xEnd')
    try:
        step = float(step_minutes)
    except (TypeError, ValueError):
        raise ChartDataError(f"Invalid step for xStep: {step_minutes!r}")
    if not step > 0:
        raise ChartDataError(f"xStep must be a positive number of minutes, got {step_minutes!r}")

    end_ts = end_ts.normalize() + pd.Timedelta(days=1) - pd.Timedelta(milliseconds=1)
    if end_ts < start_ts:
        return pd.Series(pd.DatetimeIndex([], tz='UTC'))
    index = pd.date_range(start=start_ts, end=end_ts, freq=pd.Timedelta(milliseconds=step * 60000))
    return pd.Series(index)


def compute_x_axis(access: DataAccess, options: ChartOptions) -> XAxis:
    scale_cls = scale_class(options.x_type)
    if options.uses_step_sequence:
        raw = step_sequence(
            _step_value(access, options.x_start, 'xStart'),
            _step_value(access, options.x_end, 'xEnd'),
            _step_value(access, options.x_step, 'xStep'),
        )
    else:
        raw = access.map(options.x_func, 'xFunc')

    values = scale_cls.coerce(raw).reset_index(drop=True)
    domain = _domain(scale_cls, options.x_domain, values, 'x')
    if domain is None:
        raise ChartDataError("No valid x values to compute the x domain from")
    scale = scale_cls(domain, options.x_range)
    logger.debug("x axis: %d values, domain=%s, range=%s", len(values), domain, scale.range)
    return XAxis(values=values, domain=domain, scale=scale)

# --- Y Axes ---

def compute_y_axes(access: DataAccess, options: ChartOptions) -> Tuple[Dict[str, YAxis], List[PlottedSeries]]:
    """Group series by label, merge their domains, then build one scale per label."""
    axes: Dict[str, YAxis] = {}
    plotted: List[PlottedSeries] = []
    last_series: Dict[str, ResolvedSeries] = {}

    for series in options.resolved_series():
        scale_cls = scale_class(series.y_type)
        if series.y_field:
            raw = access.column(series.y_field)
            data = tuple(raw)
        else:
            raw = access.map(series.y_func, 'yFunc')
            data = tuple(access.records)
        values = scale_cls.coerce(raw).reset_index(drop=True)
        domain = _domain(scale_cls, series.y_domain, values, f"y ({series.y_label!r})")

        axis = axes.get(series.y_label)
        if axis is None:
            axes[series.y_label] = YAxis(label=series.y_label, values=values, domain=domain)
        else:
            axis.domain = merge_domains(scale_cls, domain, axis.domain)
        last_series[series.y_label] = series
        plotted.append(PlottedSeries(series=series, label=series.y_label, values=values, data=data))

    for label, axis in axes.items():
        series = last_series[label]
        if axis.domain is None:
            raise ChartDataError(f"No valid values to compute the domain of y axis {label!r}")
        axis.scale = scale_class(series.y_type)(axis.domain, series.y_range)
        logger.debug("y axis %r: domain=%s, range=%s", label, axis.domain, axis.scale.range)

    return axes, plotted

# --- Axis Guides ---

def render_x_axis(axis: XAxis, options: ChartOptions) -> Group:
    """Bottom axis: domain line, ticks and labels, no outer ticks."""
    scale = axis.scale
    count = options.width / 80
    fmt = scale.tick_format(count)
    group = Group(role='x-axis', translate=(0, options.height - options.margin_bottom))

    r0, r1 = scale.range
    group.children.append(Line(r0, 0, r1, 0))
    for value in scale.ticks(count):
        x = scale(value)
        group.children.append(Line(x, 0, x, TICK_SIZE))
        group.children.append(Text(x, TICK_SIZE + TICK_PADDING, fmt(value), anchor='middle', baseline='hanging'))
    return group


def render_y_axis(axis: YAxis, series: ResolvedSeries, options: ChartOptions) -> Group:
    """Left or right axis with a faint gridline per tick and an optional label."""
    scale = axis.scale
    count = options.height / 40
    fmt = scale.tick_format(count, series.y_format)
    right = series.y_position is AxisPosition.RIGHT
    sign = 1 if right else -1
    plot_width = options.width - options.margin_left - options.margin_right
    mount = options.width - options.margin_right if right else options.margin_left
    group = Group(role='y-axis', translate=(mount, 0), label=axis.label)

    for value in scale.ticks(count):
        y = scale(value)
        group.children.append(Line(0, y, sign * TICK_SIZE, y))
        group.children.append(Line(0, y, -sign * plot_width, y, stroke_opacity=GRID_OPACITY))
        group.children.append(Text(sign * (TICK_SIZE + TICK_PADDING), y, fmt(value),
                                   anchor='start' if right else 'end', baseline='middle'))

    if axis.label:
        if right:
            group.children.append(Text(options.margin_right, 10, axis.label, anchor='end'))
        else:
            group.children.append(Text(-options.margin_left, 10, axis.label, anchor='start'))
    return group
