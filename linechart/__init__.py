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

"""Declarative line/area charts with shared, label-keyed y axes."""

from .chart import Chart
from .config import AxisPosition, ChartOptions, Curve, LoadMode, SeriesOptions, ShapeKind
from .errors import ChartConfigError, ChartDataError, ChartError
from .renderer import (
    create_sample_data,
    create_temp_html_chart,
    render_chart,
    save_chart_as_html,
    save_chart_as_svg,
    validate_chart_options,
)
from .scales import LinearScale, Scale, UtcScale
from .surface import Surface

__all__ = [
    'AxisPosition',
    'Chart',
    'ChartConfigError',
    'ChartDataError',
    'ChartError',
    'ChartOptions',
    'Curve',
    'LinearScale',
    'LoadMode',
    'Scale',
    'SeriesOptions',
    'ShapeKind',
    'Surface',
    'UtcScale',
    'create_sample_data',
    'create_temp_html_chart',
    'render_chart',
    'save_chart_as_html',
    'save_chart_as_svg',
    'validate_chart_options',
]
