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
Shape renderer: series values through their scales into line or area paths.

Points where ``defined`` is false break the shape; every run of defined
points becomes its own sub-path. A point whose scaled coordinates are not
finite is always treated as undefined.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .axes import PlottedSeries, XAxis, YAxis
from .config import Curve, ResolvedSeries, ShapeKind
from .surface import Path, fmt_num

Point = Tuple[float, float]

AREA_FILL_OPACITY = 0.3


@dataclass(frozen=True)
class Geometry:
    """Scaled vertices per defined run, plus the area baseline when there is one."""

    runs: Tuple[Tuple[Point, ...], ...]
    baselines: Tuple[Tuple[Point, ...], ...] = ()
    d: str = ''

# --- Helper Functions ---

def build_defined(x_axis: XAxis, plotted: PlottedSeries) -> Callable[[int], bool]:
    """defined(i): the series' own predicate, else "x and y are both present at i"."""
    n = len(x_axis.values)
    predicate = plotted.series.defined
    if predicate is not None:
        data = plotted.data
        flags = [i < len(data) and bool(predicate(data[i], i)) for i in range(n)]
    else:
        x_missing = x_axis.values.isna().to_numpy()
        y_missing = plotted.values.isna().to_numpy()
        flags = [not x_missing[i] and i < len(y_missing) and not y_missing[i] for i in range(n)]
    return lambda i: 0 <= i < n and flags[i]


def defined_runs(xs: Sequence[float], ys: Sequence[float], defined: Callable[[int], bool]) -> List[List[Point]]:
    runs: List[List[Point]] = []
    current: List[Point] = []
    for i, (x, y) in enumerate(zip(xs, ys)):
        if defined(i) and math.isfinite(x) and math.isfinite(y):
            current.append((float(x), float(y)))
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def curve_points(run: Sequence[Point], curve: Curve) -> List[Point]:
    """Vertices that draw the run with the given interpolation."""
    if curve is Curve.LINEAR or len(run) < 2:
        return list(run)
    out = [run[0]]
    for (x0, y0), (x1, y1) in zip(run, run[1:]):
        if curve is Curve.STEP:
            xm = (x0 + x1) / 2
            out.extend([(xm, y0), (xm, y1), (x1, y1)])
        elif curve is Curve.STEP_BEFORE:
            out.extend([(x0, y1), (x1, y1)])
        else:
            out.extend([(x1, y0), (x1, y1)])
    return out


def _path_data(points: Sequence[Point], close: bool) -> str:
    d = 'M' + 'L'.join(f"{fmt_num(x)},{fmt_num(y)}" for x, y in points)
    return d + 'Z' if close else d

# --- Shape Variants ---

class Shape:
    kind: ShapeKind

    def geometry(self, runs: List[List[Point]], curve: Curve, baseline: float) -> Geometry:
        raise NotImplementedError

    def paint(self, series: ResolvedSeries) -> Tuple[str, Optional[float]]:
        """(fill, fill opacity) for the path."""
        raise NotImplementedError


class LineShape(Shape):
    kind = ShapeKind.LINE

    def geometry(self, runs, curve, baseline):
        # a lone point closes on itself so round caps still draw a dot
        d = ''.join(_path_data(curve_points(run, curve), close=len(run) == 1) for run in runs)
        return Geometry(runs=tuple(tuple(run) for run in runs), d=d)

    def paint(self, series):
        return 'transparent', series.fill_opacity


class AreaShape(Shape):
    kind = ShapeKind.AREA

    def geometry(self, runs, curve, baseline):
        baselines = []
        parts = []
        for run in runs:
            bottom = [(x, baseline) for x, _ in reversed(run)]
            baselines.append(tuple(bottom))
            parts.append(_path_data(curve_points(run, curve) + bottom, close=True))
        return Geometry(runs=tuple(tuple(run) for run in runs), baselines=tuple(baselines), d=''.join(parts))

    def paint(self, series):
        fill = series.fill if series.fill is not None else series.color
        opacity = series.fill_opacity if series.fill_opacity is not None else AREA_FILL_OPACITY
        return fill, opacity


SHAPES: Dict[ShapeKind, Shape] = {
    ShapeKind.LINE: LineShape(),
    ShapeKind.AREA: AreaShape(),
}

# --- Public API ---

def shape_geometry(x_axis: XAxis, y_axis: YAxis, plotted: PlottedSeries) -> Geometry:
    """Scaled geometry of one series over the x axis index range."""
    series = plotted.series
    n = len(x_axis.values)
    xs = x_axis.scale.map(x_axis.values)
    ys = y_axis.scale.map(plotted.values.reindex(range(n)))
    runs = defined_runs(xs, ys, build_defined(x_axis, plotted))
    baseline = y_axis.scale(0)
    return SHAPES[series.type].geometry(runs, series.curve, baseline)


def render_shape(x_axis: XAxis, y_axis: YAxis, plotted: PlottedSeries) -> Path:
    series = plotted.series
    geometry = shape_geometry(x_axis, y_axis, plotted)
    fill, fill_opacity = SHAPES[series.type].paint(series)
    return Path(
        d=geometry.d,
        stroke=series.color,
        stroke_width=series.stroke_width,
        stroke_linecap=series.stroke_linecap,
        stroke_linejoin=series.stroke_linejoin,
        stroke_opacity=series.stroke_opacity,
        fill=fill,
        fill_opacity=fill_opacity,
        label=plotted.label,
    )
