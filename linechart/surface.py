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
Drawable surface: a small element tree the chart appends to.

The tree is what ``Chart.load`` mutates. It is deliberately dumb: groups of
axis lines/labels mounted at a translation, and path elements in absolute
pixel coordinates. It can be embedded as an SVG document or exported as a
plotly figure whose axes are pinned to the pixel grid.
"""

import logging
from dataclasses import dataclass, field
from html import escape
from typing import List, Optional, Tuple, Union

import plotly.graph_objects as go
from plotly.colors import hex_to_rgb

logger = logging.getLogger(__name__)

FOREGROUND = '#444'

_SVG_DY = {'hanging': '0.71em', 'middle': '0.32em', 'auto': '0'}
_PLOTLY_YANCHOR = {'hanging': 'top', 'middle': 'middle', 'auto': 'bottom'}
_PLOTLY_XANCHOR = {'start': 'left', 'middle': 'center', 'end': 'right'}


def fmt_num(value: float) -> str:
    """Compact number for path data and attributes."""
    text = f"{value:.3f}".rstrip('0').rstrip('.')
    return '0' if text in ('-0', '') else text


@dataclass
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = 'currentColor'
    stroke_opacity: float = 1.0
    stroke_width: float = 1.0


@dataclass
class Text:
    x: float
    y: float
    text: str
    anchor: str = 'middle'
    baseline: str = 'auto'
    fill: str = 'currentColor'
    font_size: float = 10


@dataclass
class Group:
    """An axis guide mounted at ``translate``."""

    role: str
    translate: Tuple[float, float] = (0.0, 0.0)
    children: List[Union[Line, Text]] = field(default_factory=list)
    label: str = ''


@dataclass
class Path:
    """A series shape; ``d`` is SVG path data in absolute pixels."""

    d: str
    stroke: str
    stroke_width: float
    stroke_linecap: str
    stroke_linejoin: str
    stroke_opacity: float
    fill: str
    fill_opacity: Optional[float] = None
    label: str = ''


Element = Union[Group, Path]

# --- Helper Functions ---

def _rgba(color: Optional[str], opacity: Optional[float]) -> str:
    """Fold a separate opacity into the color, which is all plotly shapes offer."""
    if not color or color in ('none', 'transparent'):
        return 'rgba(0, 0, 0, 0)'
    if color == 'currentColor':
        color = FOREGROUND
    if opacity is None or opacity >= 1:
        return color
    if color.startswith('#'):
        digits = color.lstrip('#')
        if len(digits) == 3:
            digits = ''.join(c * 2 for c in digits)
        r, g, b = hex_to_rgb('#' + digits[:6])
    elif color.startswith('rgb('):
        r, g, b = (float(part) for part in color[4:-1].split(','))
    else:
        logger.debug("Cannot apply opacity %s to color %r; drawing it opaque", opacity, color)
        return color
    return f"rgba({r}, {g}, {b}, {opacity})"


def _svg_attrs(**attrs) -> str:
    parts = []
    for name, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, float):
            value = fmt_num(value)
        parts.append(f'{name.replace("_", "-")}="{escape(str(value))}"')
    return ' '.join(parts)

# --- Surface ---

class Surface:
    """Root drawable node owned by one chart."""

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height
        self.elements: List[Element] = []

    def append(self, element: Element) -> Element:
        self.elements.append(element)
        return element

    def clear(self) -> None:
        self.elements.clear()

    def groups(self, role: Optional[str] = None) -> List[Group]:
        return [e for e in self.elements if isinstance(e, Group) and (role is None or e.role == role)]

    def paths(self) -> List[Path]:
        return [e for e in self.elements if isinstance(e, Path)]

    def __len__(self) -> int:
        return len(self.elements)

    def to_svg(self) -> str:
        """Serialize the tree as a standalone SVG document."""
        w, h = fmt_num(float(self.width)), fmt_num(float(self.height))
        lines = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}" '
            f'style="max-width: 100%; height: auto; height: intrinsic;">'
        ]
        for element in self.elements:
            if isinstance(element, Group):
                tx, ty = element.translate
                lines.append(f'  <g class="{element.role}" transform="translate({fmt_num(tx)},{fmt_num(ty)})" '
                             f'fill="none" font-size="10" font-family="sans-serif">')
                for child in element.children:
                    lines.append('    ' + self._svg_child(child))
                lines.append('  </g>')
            else:
                lines.append('  <path ' + _svg_attrs(
                    fill=element.fill,
                    fill_opacity=element.fill_opacity,
                    stroke=element.stroke,
                    stroke_width=element.stroke_width,
                    stroke_linecap=element.stroke_linecap,
                    stroke_linejoin=element.stroke_linejoin,
                    stroke_opacity=element.stroke_opacity,
                    d=element.d,
                ) + '/>')
        lines.append('</svg>')
        return '\n'.join(lines) + '\n'

    @staticmethod
    def _svg_child(child: Union[Line, Text]) -> str:
        if isinstance(child, Line):
            return '<line ' + _svg_attrs(
                x1=float(child.x1), y1=float(child.y1), x2=float(child.x2), y2=float(child.y2),
                stroke=child.stroke, stroke_width=child.stroke_width,
                stroke_opacity=child.stroke_opacity if child.stroke_opacity != 1 else None,
            ) + '/>'
        return '<text ' + _svg_attrs(
            x=float(child.x), y=float(child.y), dy=_SVG_DY[child.baseline],
            fill=child.fill, text_anchor=child.anchor,
        ) + f'>{escape(child.text)}</text>'

    def to_figure(self) -> go.Figure:
        """Export as a plotly figure whose data coordinates are the pixel grid."""
        fig = go.Figure()
        fig.update_layout(
            width=self.width,
            height=self.height,
            margin=dict(l=0, r=0, t=0, b=0),
            showlegend=False,
            template='plotly_white',
            plot_bgcolor='rgba(0,0,0,0)',
            paper_bgcolor='rgba(0,0,0,0)',
            xaxis=dict(range=[0, self.width], visible=False, fixedrange=True),
            yaxis=dict(range=[self.height, 0], visible=False, fixedrange=True),
        )
        for element in self.elements:
            if isinstance(element, Group):
                tx, ty = element.translate
                for child in element.children:
                    if isinstance(child, Line):
                        fig.add_shape(
                            type='line', xref='x', yref='y',
                            x0=child.x1 + tx, y0=child.y1 + ty, x1=child.x2 + tx, y1=child.y2 + ty,
                            line=dict(color=_rgba(child.stroke, child.stroke_opacity), width=child.stroke_width),
                        )
                    else:
                        fig.add_annotation(
                            x=child.x + tx, y=child.y + ty, xref='x', yref='y',
                            text=escape(child.text), showarrow=False,
                            xanchor=_PLOTLY_XANCHOR[child.anchor], yanchor=_PLOTLY_YANCHOR[child.baseline],
                            font=dict(size=child.font_size, color=_rgba(child.fill, None)),
                        )
            elif element.d:
                fig.add_shape(
                    type='path', xref='x', yref='y', path=element.d, layer='above',
                    line=dict(color=_rgba(element.stroke, element.stroke_opacity), width=element.stroke_width),
                    fillcolor=_rgba(element.fill, element.fill_opacity),
                )
        return fig
