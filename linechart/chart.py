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
Chart engine.

``Chart.load`` works in two passes: every axis (x, and each y label with its
merged domain) is computed first, then guides and shapes are appended to the
surface in series order. Loads accrete by default: each call appends a new
set of axes and paths to the same surface, which is how several loads can be
overlaid. ``loadMode='replace'`` clears the surface first instead.
"""

import logging
from typing import Any, Dict, List, Tuple

from .axes import (
    DataAccess,
    PlottedSeries,
    XAxis,
    YAxis,
    compute_x_axis,
    compute_y_axes,
    render_x_axis,
    render_y_axis,
)
from .config import ChartOptions, LoadMode, build_options
from .shapes import render_shape
from .surface import Surface

logger = logging.getLogger(__name__)


class Chart:
    """A line/area chart bound to one drawable surface."""

    def __init__(self, options: Any = None, **overrides: Any):
        self._opts = build_options(options, **overrides)
        self._surface = Surface(self._opts.width, self._opts.height)

    @property
    def options(self) -> ChartOptions:
        return self._opts

    @property
    def surface(self) -> Surface:
        return self._surface

    def get_surface(self) -> Surface:
        return self._surface

    def compute_axes(self, data: Any) -> Tuple[XAxis, Dict[str, YAxis], List[PlottedSeries]]:
        """Compute the x axis and all merged y axes without touching the surface."""
        access = DataAccess(data)
        x_axis = compute_x_axis(access, self._opts)
        y_axes, plotted = compute_y_axes(access, self._opts)
        return x_axis, y_axes, plotted

    def load(self, data: Any) -> None:
        x_axis, y_axes, plotted = self.compute_axes(data)

        if self._opts.load_mode is LoadMode.REPLACE:
            self._surface.clear()

        self._surface.append(render_x_axis(x_axis, self._opts))
        for entry in plotted:
            y_axis = y_axes[entry.label]
            if not y_axis.rendered:
                self._surface.append(render_y_axis(y_axis, entry.series, self._opts))
                y_axis.rendered = True
            self._surface.append(render_shape(x_axis, y_axis, entry))

        logger.debug("Loaded %d series over %d y axes; surface holds %d elements",
                     len(plotted), len(y_axes), len(self._surface))
