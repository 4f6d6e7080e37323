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

"""Tests for option parsing and layered series resolution."""

import pytest

from linechart.config import (
    EMPTY_LABEL,
    AxisPosition,
    ChartOptions,
    Curve,
    LoadMode,
    SeriesOptions,
    ShapeKind,
    build_options,
)
from linechart.errors import ChartConfigError


def test_defaults_derive_ranges_from_geometry():
    opts = ChartOptions()
    assert opts.x_range == (40, 600)
    assert opts.y_range == (380, 20)
    assert opts.y_position is AxisPosition.LEFT
    assert opts.load_mode is LoadMode.APPEND
    assert len(opts.ys) == 1


def test_ranges_follow_user_margins():
    opts = ChartOptions.from_dict({'marginLeft': 60, 'width': 800, 'height': 300, 'marginTop': 10})
    assert opts.x_range == (60, 760)
    assert opts.y_range == (280, 10)


def test_explicit_ranges_win():
    opts = ChartOptions.from_dict({'xRange': [0, 100], 'yRange': [50, 0]})
    assert opts.x_range == (0, 100)
    assert opts.y_range == (50, 0)


def test_snake_case_keys_are_accepted():
    opts = ChartOptions.from_dict({'margin_left': 10, 'stroke_width': 3})
    assert opts.margin_left == 10
    assert opts.stroke_width == 3


def test_unknown_option_is_rejected():
    with pytest.raises(ChartConfigError, match="Unknown option 'xFoo'"):
        ChartOptions.from_dict({'xFoo': 1})
    with pytest.raises(ChartConfigError, match="Unknown option 'colour'"):
        ChartOptions.from_dict({'ys': [{'colour': 'red'}]})


@pytest.mark.parametrize("partial", [
    {'xStart': 'start'},
    {'xStart': 'start', 'xEnd': 'end'},
    {'xEnd': 'end', 'xStep': 'step'},
])
def test_partial_step_spec_is_rejected(partial):
    with pytest.raises(ChartConfigError, match="must be given together"):
        ChartOptions.from_dict(partial)


def test_complete_step_spec():
    opts = ChartOptions.from_dict({'xStart': 'start', 'xEnd': 'end', 'xStep': 'step'})
    assert opts.uses_step_sequence


def test_series_enums_are_parsed():
    opts = ChartOptions.from_dict({'ys': [
        {'type': 'area', 'curve': 'curveStep', 'yPosition': 'right'},
        {'curve': 'stepAfter'},
    ]})
    area, line = opts.ys
    assert area.type is ShapeKind.AREA
    assert area.curve is Curve.STEP
    assert area.y_position is AxisPosition.RIGHT
    assert line.type is None
    assert line.curve is Curve.STEP_AFTER


@pytest.mark.parametrize("opts", [
    {'ys': [{'type': 'bar'}]},
    {'curve': 'bezier'},
    {'yPosition': 'top'},
    {'loadMode': 'merge'},
    {'xType': 'log'},
    {'ys': ['temperature']},
    {'xDomain': [1, 2, 3]},
])
def test_invalid_values_are_rejected(opts):
    with pytest.raises(ChartConfigError):
        ChartOptions.from_dict(opts)


# (option key, attribute, chart-level value, series-level value)
OVERRIDABLE = [
    ('color', 'color', '#111111', '#222222'),
    ('fill', 'fill', 'red', 'blue'),
    ('fillOpacity', 'fill_opacity', 0.2, 0.6),
    ('strokeWidth', 'stroke_width', 2, 3),
    ('strokeLinecap', 'stroke_linecap', 'butt', 'square'),
    ('strokeLinejoin', 'stroke_linejoin', 'miter', 'bevel'),
    ('strokeOpacity', 'stroke_opacity', 0.5, 0.8),
    ('curve', 'curve', 'step', 'stepBefore'),
    ('yType', 'y_type', 'linear', 'utc'),
    ('yRange', 'y_range', (300, 10), (200, 50)),
    ('yDomain', 'y_domain', (0, 10), (5, 50)),
    ('yFormat', 'y_format', '.1f', '.2f'),
    ('yPosition', 'y_position', 'right', 'left'),
    ('yLabel', 'y_label', 'Chart', 'Series'),
]


@pytest.mark.parametrize("key, attr, chart_value, series_value", OVERRIDABLE)
def test_series_override_falls_back_to_chart_value(key, attr, chart_value, series_value):
    opts = ChartOptions.from_dict({key: chart_value, 'ys': [{}, {key: series_value}]})
    inherited, overridden = opts.resolved_series()
    assert getattr(inherited, attr) == chart_value
    assert getattr(overridden, attr) == series_value


def test_literal_defaults_apply_when_nothing_is_set():
    (series,) = ChartOptions.from_dict({'ys': [{}]}).resolved_series()
    assert series.stroke_width == 1.5
    assert series.color == 'currentColor'
    assert series.stroke_linecap == 'round'
    assert series.type is ShapeKind.LINE
    assert series.curve is Curve.LINEAR
    assert series.y_label == EMPTY_LABEL
    assert series.y_func([1, 2]) == 2


def test_explicit_zero_is_not_treated_as_unset():
    (series,) = ChartOptions.from_dict({'strokeWidth': 4, 'ys': [{'strokeWidth': 0}]}).resolved_series()
    assert series.stroke_width == 0


def test_build_options_merges_overrides():
    assert build_options(None, width=800).x_range == (40, 760)
    assert build_options({'width': 800}, marginLeft=0).x_range == (0, 760)
    base = ChartOptions()
    assert build_options(base) is base
    assert build_options(base, yLabel='kWh').y_label == 'kWh'
    assert isinstance(build_options({'ys': [SeriesOptions(y_field='a')]}).ys[0], SeriesOptions)


def test_overriding_options_rederives_ranges_from_new_geometry():
    resized = build_options(ChartOptions(), width=800, height=300)
    assert resized.x_range == (40, 760)
    assert resized.y_range == (280, 20)
    assert build_options(ChartOptions(), marginLeft=0).x_range == (0, 600)


def test_overriding_options_keeps_explicit_ranges():
    base = ChartOptions(x_range=(0, 100), y_range=(50, 0))
    resized = build_options(base, width=800, height=300)
    assert resized.x_range == (0, 100)
    assert resized.y_range == (50, 0)
    assert build_options(ChartOptions(x_range=(0, 100)), height=300).y_range == (280, 20)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
