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

import json
import logging
import math
import os
import tempfile
from collections.abc import Mapping
from typing import Any, Dict, Optional

import pandas as pd
import plotly.graph_objects as go

from .chart import Chart
from .config import ChartOptions, build_options
from .errors import ChartConfigError
from .scales import MISSING_TOKENS

logger = logging.getLogger(__name__)

HTML_CONFIG = {'displayModeBar': False, 'displaylogo': False, 'staticPlot': True}

# --- Helper Functions ---

def _create_error_figure(error_message: str, width: float = 640, height: float = 400) -> go.Figure:
    """Creates a visually clear error message figure."""
    fig = go.Figure()
    # Break the error message into lines for better readability
    wrapped_message = "<br>".join(error_message[i:i+80] for i in range(0, len(error_message), 80))
    fig.add_annotation(
        text=f"<b>Chart Rendering Error:</b><br>{wrapped_message}",
        xref="paper", yref="paper",
        x=0.5, y=0.5,
        showarrow=False,
        font=dict(size=14, color="red"),
        align="center",
        bordercolor="#c7c7c7",
        borderwidth=2,
        borderpad=4,
        bgcolor="#ff7f0e",
        opacity=0.8
    )
    fig.update_layout(
        width=width,
        height=height,
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        plot_bgcolor="#f0f0f0"
    )
    return fig


def _load_data(data_json: str) -> Any:
    data = json.loads(data_json)
    if not data:
        raise ValueError("Dataset is empty")
    return data


def _create_chart(data_json: str, options: Optional[Dict[str, Any]]) -> Chart:
    """Build a chart from JSON data and load it."""
    data = _load_data(data_json)
    chart = Chart(options)
    logger.debug("Loading %s data into a %sx%s chart with %d series",
                 'column' if isinstance(data, Mapping) else 'row',
                 chart.options.width, chart.options.height, len(chart.options.ys))
    chart.load(data)
    return chart


def _fallback_size(options: Optional[Dict[str, Any]]) -> Dict[str, float]:
    opts = options or {}
    return {
        'width': opts.get('width', ChartOptions.width),
        'height': opts.get('height', ChartOptions.height),
    }

# --- Public API ---

def render_chart(data_json: str, options: Optional[Dict[str, Any]] = None) -> str:
    """Renders a chart to plotly figure JSON, creating an error chart on failure."""
    try:
        fig = _create_chart(data_json, options).surface.to_figure()
    except Exception as e:
        logger.exception("Error in render_chart: %s", e)
        fig = _create_error_figure(str(e), **_fallback_size(options))
    return fig.to_json()


def save_chart_as_html(data_json: str, options: Optional[Dict[str, Any]], output_path: str) -> str:
    """Renders a chart to HTML, creating an error chart on failure."""
    try:
        fig = _create_chart(data_json, options).surface.to_figure()
    except Exception as e:
        logger.exception("Error in save_chart_as_html: %s", e)
        fig = _create_error_figure(str(e), **_fallback_size(options))

    fig.write_html(output_path, config=HTML_CONFIG, include_plotlyjs='cdn')
    return output_path


def save_chart_as_svg(data_json: str, options: Optional[Dict[str, Any]], output_path: str) -> str:
    """Renders a chart to a standalone SVG file; errors propagate."""
    chart = _create_chart(data_json, options)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(chart.surface.to_svg())
    return output_path


def create_temp_html_chart(data_json: str, options: Optional[Dict[str, Any]] = None) -> str:
    """Creates a temporary HTML file for the chart."""
    fd, temp_path = tempfile.mkstemp(suffix="_linechart.html")
    os.close(fd)
    save_chart_as_html(data_json, options, temp_path)
    return temp_path


def validate_chart_options(options: Optional[Dict[str, Any]], data: Any) -> Dict[str, Any]:
    """Validates that the chart options can be applied to the given data."""
    errors = []
    warnings = []

    try:
        opts = build_options(options)
    except ChartConfigError as e:
        return {'valid': False, 'errors': [str(e)], 'warnings': []}

    columnar = isinstance(data, (Mapping, pd.DataFrame))
    columns = list(data.keys()) if columnar else []

    if opts.uses_step_sequence:
        if not columnar:
            errors.append("xStart/xEnd/xStep need column-oriented data (a mapping of fields)")
        for name in (opts.x_start, opts.x_end, opts.x_step):
            if columnar and name not in columns:
                errors.append(f"Column '{name}' not found in data")
    elif isinstance(data, Mapping):
        errors.append("xFunc needs row-oriented data (a sequence of records)")

    if not opts.ys:
        warnings.append("No series configured; only the x axis will be rendered")

    for i, series in enumerate(opts.ys):
        if not series.y_field:
            if isinstance(data, Mapping):
                errors.append(f"ys[{i}] uses yFunc, which needs row-oriented data")
            continue
        if not columnar:
            errors.append(f"ys[{i}].yField '{series.y_field}' needs column-oriented data")
            continue
        if series.y_field not in columns:
            errors.append(f"Column '{series.y_field}' not found in data")
            continue

        # Check for data quality issues
        col_data = pd.Series(list(data[series.y_field]), dtype=object)
        if col_data.empty:
            warnings.append(f"Column '{series.y_field}' is empty")
            continue
        null_pct = col_data.isnull().sum() / len(col_data) * 100
        if null_pct > 50:
            warnings.append(f"Column '{series.y_field}' has {null_pct:.1f}% missing values")
        na_count = col_data.isin(MISSING_TOKENS).sum()
        if na_count > 0:
            warnings.append(f"Column '{series.y_field}' has {na_count} 'na' string values that will be treated as gaps")

    return {
        'valid': len(errors) == 0,
        'errors': errors,
        'warnings': warnings
    }


def create_sample_data(kind: str) -> Any:
    """Create sample data for the supported data layouts."""
    if kind == 'steps':
        temperature = [round(12 + 6 * math.sin(i / 4), 2) for i in range(48)]
        temperature[20] = None
        return {
            'start_date': '2024-01-01',
            'end_date': '2024-01-02',
            'step_minutes': 60,
            'temperature': temperature,
            'humidity': [round(60 + 15 * math.cos(i / 6), 1) for i in range(48)],
        }
    elif kind == 'shared':
        return {
            'start_date': '2024-01-01',
            'end_date': '2024-01-01',
            'step_minutes': 120,
            'inside': [19, 19, 18, 18, 20, 21, 22, 22, 21, 21, 20, 19],
            'outside': [2, 1, 0, -1, 3, 6, 9, 11, 10, 7, 5, 3],
        }
    else:
        # Default sample data: [date, value] rows
        return [
            ['2024-01-01', 10],
            ['2024-01-02', 15],
            ['2024-01-03', 13],
            ['2024-01-04', 'na'],
            ['2024-01-05', 17],
            ['2024-01-06', 20],
        ]


SAMPLE_OPTIONS: Dict[str, Dict[str, Any]] = {
    'rows': {},
    'steps': {
        'xStart': 'start_date', 'xEnd': 'end_date', 'xStep': 'step_minutes',
        'ys': [
            {'yField': 'temperature', 'yLabel': '°C', 'color': '#d62728'},
            {'yField': 'humidity', 'yLabel': '%', 'yPosition': 'right', 'type': 'area', 'color': '#1f77b4'},
        ],
    },
    'shared': {
        'xStart': 'start_date', 'xEnd': 'end_date', 'xStep': 'step_minutes', 'yLabel': '°C',
        'ys': [
            {'yField': 'inside', 'color': '#2ca02c'},
            {'yField': 'outside', 'color': '#9467bd', 'curve': 'step'},
        ],
    },
}


if __name__ == "__main__":
    print("Line Chart Renderer")
    print(f"Sample layouts: {sorted(SAMPLE_OPTIONS)}")

    # Simple smoke test
    try:
        for kind, sample_options in SAMPLE_OPTIONS.items():
            render_chart(json.dumps(create_sample_data(kind)), sample_options)
        print("✅ Basic functionality test passed")
    except Exception as e:
        print(f"❌ Basic functionality test failed: {e}")
