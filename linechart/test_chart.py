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

"""Tests for the chart engine: load orchestration and surface mutation."""

import numpy as np
import pandas as pd
import pytest

from linechart import Chart, ChartConfigError, ChartDataError, ChartOptions
from linechart.shapes import shape_geometry

STEP_DATA = {
    'start': '2024-01-01',
    'end': '2024-01-01',
    'step': 360,
    'a': [0, 5, 10, 5],
    'b': [0, 10, 20, 10],
    'c': [100, 200, 300, 400],
}
STEP_OPTS = {'xStart': 'start', 'xEnd': 'end', 'xStep': 'step'}


def test_surface_is_empty_after_construction():
    chart = Chart()
    assert len(chart.surface) == 0
    assert chart.get_surface() is chart.surface
    assert (chart.surface.width, chart.surface.height) == (640, 400)


def test_load_appends_x_axis_y_axis_and_path():
    chart = Chart()
    chart.load([['2024-01-01', 1], ['2024-01-02', 3]])
    roles = [getattr(e, 'role', 'path') for e in chart.surface.elements]
    assert roles == ['x-axis', 'y-axis', 'path']


def test_y_axis_rendered_once_per_shared_label():
    chart = Chart(STEP_OPTS, yLabel='units', ys=[{'yField': name} for name in 'abc'])
    chart.load(STEP_DATA)
    assert len(chart.surface.groups('y-axis')) == 1
    assert len(chart.surface.groups('x-axis')) == 1
    assert len(chart.surface.paths()) == 3


def test_y_axis_rendered_once_per_distinct_label():
    chart = Chart(STEP_OPTS, ys=[{'yField': name, 'yLabel': name.upper()} for name in 'abc'])
    chart.load(STEP_DATA)
    assert [g.label for g in chart.surface.groups('y-axis')] == ['A', 'B', 'C']


def test_elements_follow_series_order():
    chart = Chart(STEP_OPTS, ys=[
        {'yField': 'a', 'yLabel': 'L'},
        {'yField': 'c', 'yLabel': 'R', 'yPosition': 'right'},
        {'yField': 'b', 'yLabel': 'L'},
    ])
    chart.load(STEP_DATA)
    order = [(getattr(e, 'role', 'path'), e.label) for e in chart.surface.elements]
    assert order == [
        ('x-axis', ''),
        ('y-axis', 'L'), ('path', 'L'),
        ('y-axis', 'R'), ('path', 'R'),
        ('path', 'L'),
    ]


def test_earlier_series_is_drawn_against_the_merged_domain():
    chart = Chart(STEP_OPTS, ys=[{'yField': 'a'}, {'yField': 'b'}])
    chart.load(STEP_DATA)
    first, second = chart.surface.paths()
    # a peaks at 10, which is half of the merged 0..20 domain
    assert ',200' in first.d
    assert ',20' in second.d
    assert first.d != second.d


def test_compute_axes_is_idempotent():
    chart = Chart(STEP_OPTS, ys=[{'yField': 'a'}, {'yField': 'b', 'yLabel': 'other'}])
    x1, y1, p1 = chart.compute_axes(STEP_DATA)
    x2, y2, p2 = chart.compute_axes(STEP_DATA)
    assert x1.domain == x2.domain
    assert np.array_equal(x1.scale.map(x1.values), x2.scale.map(x2.values))
    for label in y1:
        assert y1[label].domain == y2[label].domain
        assert np.array_equal(y1[label].scale.map([0, 7.5, 20]), y2[label].scale.map([0, 7.5, 20]))
    for a, b in zip(p1, p2):
        assert shape_geometry(x1, y1[a.label], a) == shape_geometry(x2, y2[b.label], b)
    assert len(chart.surface) == 0


def test_repeated_loads_accrete_by_default():
    chart = Chart()
    rows = [['2024-01-01', 1], ['2024-01-02', 3]]
    chart.load(rows)
    chart.load(rows)
    assert len(chart.surface.groups('x-axis')) == 2
    assert len(chart.surface.paths()) == 2


def test_replace_mode_clears_previous_load():
    chart = Chart(loadMode='replace')
    chart.load([['2024-01-01', 1], ['2024-01-02', 3]])
    chart.load([['2024-02-01', 5], ['2024-02-02', 6]])
    assert len(chart.surface.groups('x-axis')) == 1
    assert len(chart.surface.paths()) == 1


def test_failed_load_leaves_surface_untouched():
    chart = Chart(loadMode='replace')
    chart.load([['2024-01-01', 1], ['2024-01-02', 3]])
    before = list(chart.surface.elements)
    with pytest.raises(ChartDataError):
        chart.load({'x': [1, 2]})
    assert chart.surface.elements == before


def test_empty_series_list_renders_axes_only():
    chart = Chart(ys=[])
    chart.load([['2024-01-01', 1], ['2024-01-02', 3]])
    assert len(chart.surface.groups('x-axis')) == 1
    assert chart.surface.groups('y-axis') == []
    assert chart.surface.paths() == []


def test_dataframe_supports_rows_and_fields():
    frame = pd.DataFrame({'when': ['2024-01-01', '2024-01-02', '2024-01-03'], 'v': [1, 2, 3], 'w': [3, 2, 1]})
    chart = Chart(ys=[{}, {'yField': 'w', 'type': 'area'}])
    chart.load(frame)
    assert len(chart.surface.paths()) == 2


def test_dataframe_step_columns():
    frame = pd.DataFrame({
        's': ['2024-01-01'] * 4,
        'e': ['2024-01-01'] * 4,
        't': [360] * 4,
        'v': [1, 2, 3, 4],
    })
    chart = Chart(xStart='s', xEnd='e', xStep='t', ys=[{'yField': 'v'}])
    chart.load(frame)
    assert len(chart.surface.paths()) == 1


def test_resized_options_instance_draws_in_the_new_box():
    chart = Chart(ChartOptions(), width=800, height=300)
    assert chart.options.x_range == (40, 760)
    assert chart.options.y_range == (280, 20)
    x_axis, _, _ = chart.compute_axes([['2024-01-01', 1], ['2024-01-02', 2]])
    assert x_axis.scale(x_axis.domain[1]) == 760


def test_partial_step_spec_fails_at_construction():
    with pytest.raises(ChartConfigError):
        Chart(xStart='start', xStep='step')


def test_svg_export():
    chart = Chart(STEP_OPTS, yLabel='units', ys=[{'yField': 'a'}, {'yField': 'b', 'type': 'area'}])
    chart.load(STEP_DATA)
    svg = chart.surface.to_svg()
    assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="640" height="400"')
    assert svg.count('<path ') == 2
    assert 'fill-opacity="0.3"' in svg
    assert 'class="y-axis" transform="translate(40,0)"' in svg
    assert '>units</text>' in svg


def test_figure_export_pins_axes_to_pixels():
    chart = Chart(STEP_OPTS, ys=[{'yField': 'a', 'color': '#1f77b4', 'type': 'area'}])
    chart.load(STEP_DATA)
    fig = chart.surface.to_figure()
    assert list(fig.layout.xaxis.range) == [0, 640]
    assert list(fig.layout.yaxis.range) == [400, 0]
    paths = [shape for shape in fig.layout.shapes if shape.type == 'path']
    assert len(paths) == 1
    assert paths[0].path == chart.surface.paths()[0].d
    assert paths[0].fillcolor == 'rgba(31, 119, 180, 0.3)'


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
