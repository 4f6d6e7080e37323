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
Chart options.

Options are layered: a per-series override (``SeriesOptions``) sits on top of
the chart-level defaults (``ChartOptions``), which sit on top of the literal
defaults below. ``None`` always means "not set here, ask the next layer", so
an explicit ``0`` stroke width is honoured. Rendering code only ever sees the
flattened ``ResolvedSeries``.

Keys may be given in the camelCase form used by the JSON options
(``marginTop``, ``yLabel``, ``ys``...) or as snake_case attribute names.
"""

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from .errors import ChartConfigError
from .scales import scale_class

EMPTY_LABEL = ''


class ShapeKind(str, Enum):
    LINE = 'line'
    AREA = 'area'


class Curve(str, Enum):
    LINEAR = 'linear'
    STEP = 'step'
    STEP_BEFORE = 'stepBefore'
    STEP_AFTER = 'stepAfter'


class AxisPosition(str, Enum):
    LEFT = 'left'
    RIGHT = 'right'


class LoadMode(str, Enum):
    APPEND = 'append'
    REPLACE = 'replace'


_CURVE_ALIASES = {
    'curveLinear': Curve.LINEAR,
    'curveStep': Curve.STEP,
    'curveStepBefore': Curve.STEP_BEFORE,
    'curveStepAfter': Curve.STEP_AFTER,
    'step_before': Curve.STEP_BEFORE,
    'step_after': Curve.STEP_AFTER,
}

# --- Helper Functions ---

def first_value(d):
    return d[0]


def second_value(d):
    return d[1]


def _snake(key: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()


def _enum(enum_cls: Type[Enum], value: Any, name: str, aliases: Optional[Dict[str, Enum]] = None):
    if value is None or isinstance(value, enum_cls):
        return value
    if aliases and value in aliases:
        return aliases[value]
    try:
        return enum_cls(value)
    except ValueError:
        available = [member.value for member in enum_cls]
        raise ChartConfigError(f"Invalid {name} {value!r}. Available: {available}")


def _pair(value: Any, name: str) -> Optional[Tuple[Any, Any]]:
    if value is None:
        return None
    pair = tuple(value)
    if len(pair) != 2:
        raise ChartConfigError(f"{name} must have exactly two values, got {list(pair)!r}")
    return pair


def _translate_keys(cls, opts: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase/snake_case option keys onto dataclass field names."""
    known = {f.name for f in fields(cls) if f.init}
    translated = {}
    for key, value in opts.items():
        name = _snake(key)
        if name not in known:
            raise ChartConfigError(f"Unknown option '{key}'. Available: {sorted(known)}")
        translated[name] = value
    return translated


def _pick(*layers: Any) -> Any:
    for value in layers:
        if value is not None:
            return value
    return None

# --- Option Layers ---

@dataclass(frozen=True)
class SeriesOptions:
    """One entry of ``ys``; unset fields inherit from the chart."""

    y_func: Optional[Callable[[Any], Any]] = None
    y_field: Optional[str] = None
    y_label: Optional[str] = None
    y_type: Any = None
    y_range: Optional[Tuple[float, float]] = None
    y_domain: Optional[Tuple[Any, Any]] = None
    y_format: Optional[str] = None
    y_position: Optional[AxisPosition] = None
    defined: Optional[Callable[[Any, int], bool]] = None
    type: Optional[ShapeKind] = None
    curve: Optional[Curve] = None
    color: Optional[str] = None
    fill: Optional[str] = None
    fill_opacity: Optional[float] = None
    stroke_linecap: Optional[str] = None
    stroke_linejoin: Optional[str] = None
    stroke_width: Optional[float] = None
    stroke_opacity: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'y_position', _enum(AxisPosition, self.y_position, 'yPosition'))
        object.__setattr__(self, 'type', _enum(ShapeKind, self.type, 'type'))
        object.__setattr__(self, 'curve', _enum(Curve, self.curve, 'curve', _CURVE_ALIASES))
        object.__setattr__(self, 'y_range', _pair(self.y_range, 'yRange'))
        object.__setattr__(self, 'y_domain', _pair(self.y_domain, 'yDomain'))
        if self.y_type is not None:
            scale_class(self.y_type)

    @classmethod
    def from_dict(cls, opts: Mapping[str, Any]) -> 'SeriesOptions':
        if isinstance(opts, SeriesOptions):
            return opts
        if not isinstance(opts, Mapping):
            raise ChartConfigError(f"Each ys entry must be a mapping, got {type(opts).__name__}")
        return cls(**_translate_keys(cls, opts))


@dataclass(frozen=True)
class ChartOptions:
    """Chart-level options; ranges default from the geometry."""

    margin_top: float = 20
    margin_right: float = 40
    margin_bottom: float = 20
    margin_left: float = 40
    width: float = 640
    height: float = 400
    x_func: Callable[[Any], Any] = first_value
    x_start: Optional[str] = None
    x_end: Optional[str] = None
    x_step: Optional[str] = None
    x_type: Any = 'utc'
    x_domain: Optional[Tuple[Any, Any]] = None
    x_range: Optional[Tuple[float, float]] = None
    y_type: Any = 'linear'
    y_domain: Optional[Tuple[Any, Any]] = None
    y_range: Optional[Tuple[float, float]] = None
    y_format: Optional[str] = None
    y_label: Optional[str] = None
    y_position: AxisPosition = AxisPosition.LEFT
    ys: Tuple[SeriesOptions, ...] = (SeriesOptions(y_func=second_value),)
    defined: Optional[Callable[[Any, int], bool]] = None
    curve: Curve = Curve.LINEAR
    color: str = 'currentColor'
    fill: Optional[str] = None
    fill_opacity: Optional[float] = None
    stroke_linecap: str = 'round'
    stroke_linejoin: str = 'round'
    stroke_width: float = 1.5
    stroke_opacity: float = 1
    load_mode: LoadMode = LoadMode.APPEND
    _derived_ranges: FrozenSet[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        step_fields = {'xStart': self.x_start, 'xEnd': self.x_end, 'xStep': self.x_step}
        missing = [name for name, value in step_fields.items() if not value]
        if 0 < len(missing) < len(step_fields):
            raise ChartConfigError(f"xStart, xEnd and xStep must be given together. Missing: {missing}")

        # ranges filled in from the geometry are re-derived by build_options
        derived = set()
        if self.x_range is None:
            derived.add('x_range')
            object.__setattr__(self, 'x_range', (self.margin_left, self.width - self.margin_right))
        if self.y_range is None:
            derived.add('y_range')
            object.__setattr__(self, 'y_range', (self.height - self.margin_bottom, self.margin_top))
        object.__setattr__(self, '_derived_ranges', frozenset(derived))
        object.__setattr__(self, 'x_range', _pair(self.x_range, 'xRange'))
        object.__setattr__(self, 'y_range', _pair(self.y_range, 'yRange'))
        object.__setattr__(self, 'x_domain', _pair(self.x_domain, 'xDomain'))
        object.__setattr__(self, 'y_domain', _pair(self.y_domain, 'yDomain'))
        object.__setattr__(self, 'y_position', _enum(AxisPosition, self.y_position, 'yPosition'))
        object.__setattr__(self, 'curve', _enum(Curve, self.curve, 'curve', _CURVE_ALIASES))
        object.__setattr__(self, 'load_mode', _enum(LoadMode, self.load_mode, 'loadMode'))
        object.__setattr__(self, 'ys', tuple(SeriesOptions.from_dict(y) for y in self.ys))
        scale_class(self.x_type)
        scale_class(self.y_type)

    @property
    def uses_step_sequence(self) -> bool:
        return bool(self.x_start and self.x_end and self.x_step)

    @classmethod
    def from_dict(cls, opts: Optional[Mapping[str, Any]] = None) -> 'ChartOptions':
        """Build options from user-supplied keys merged over the defaults."""
        return cls(**_translate_keys(cls, opts or {}))

    def resolved_series(self) -> Tuple['ResolvedSeries', ...]:
        return tuple(resolve_series(self, series) for series in self.ys)


def build_options(options: Any = None, **overrides: Any) -> ChartOptions:
    """Accept a ChartOptions, a mapping, or nothing, plus keyword overrides."""
    if isinstance(options, ChartOptions):
        if not overrides:
            return options
        values = {f.name: getattr(options, f.name) for f in fields(options)
                  if f.init and f.name not in options._derived_ranges}
        values.update(_translate_keys(ChartOptions, overrides))
        return ChartOptions(**values)
    if options is not None and not isinstance(options, Mapping):
        raise ChartConfigError(f"Options must be a mapping, got {type(options).__name__}")
    return ChartOptions.from_dict({**(options or {}), **overrides})

# --- Resolution ---

@dataclass(frozen=True)
class ResolvedSeries:
    """A series with every layer flattened; only fill stays open for the shape to decide."""

    y_func: Callable[[Any], Any]
    y_field: Optional[str]
    y_label: str
    y_type: Any
    y_range: Tuple[float, float]
    y_domain: Optional[Tuple[Any, Any]]
    y_format: Optional[str]
    y_position: AxisPosition
    defined: Optional[Callable[[Any, int], bool]]
    type: ShapeKind
    curve: Curve
    color: str
    fill: Optional[str]
    fill_opacity: Optional[float]
    stroke_linecap: str
    stroke_linejoin: str
    stroke_width: float
    stroke_opacity: float


_INHERITED = (
    'y_type', 'y_range', 'y_domain', 'y_format', 'y_position', 'defined', 'curve', 'color',
    'fill', 'fill_opacity', 'stroke_linecap', 'stroke_linejoin', 'stroke_width', 'stroke_opacity',
)


def resolve_series(chart: ChartOptions, series: SeriesOptions) -> ResolvedSeries:
    """Flatten series over chart over literal defaults, field by field."""
    values = {name: _pick(getattr(series, name), getattr(chart, name)) for name in _INHERITED}
    return ResolvedSeries(
        y_func=_pick(series.y_func, second_value),
        y_field=series.y_field,
        y_label=_pick(series.y_label, chart.y_label, EMPTY_LABEL),
        type=_pick(series.type, ShapeKind.LINE),
        **values,
    )
