"""
ChartProjector: turns the long-range level series into a plot model sized
for a viewport class.

The curve goes through every data point exactly. Between two points it is a
cubic Bezier whose control points sit one third of the horizontal span away
from each end, at the end's own height, so the curve is monotonic in x and
never overshoots vertically. Thinning (fewer labels and markers on small
viewports) only decides which points get a label or a marker; the curve
always uses the whole series.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple
from xml.sax.saxutils import escape

from core.models.reading import HistorySample


class ViewportClass(Enum):
    """Display size classes, matched to the front end breakpoints."""
    SMALL = "small"    # <= 320px
    MEDIUM = "medium"  # <= 375px
    LARGE = "large"


@dataclass(frozen=True)
class ViewportGeometry:
    width: int
    height: int
    padding: int
    grid_levels: Tuple[int, ...]
    label_target: int
    marker_target: int
    label_offset: int
    compact_labels: bool = False

    @property
    def chart_width(self) -> int:
        return self.width - self.padding * 2

    @property
    def chart_height(self) -> int:
        return self.height - self.padding * 2


VIEWPORTS = {
    ViewportClass.SMALL: ViewportGeometry(
        width=280, height=200, padding=40, grid_levels=(0, 50, 100),
        label_target=3, marker_target=6, label_offset=20, compact_labels=True,
    ),
    ViewportClass.MEDIUM: ViewportGeometry(
        width=320, height=240, padding=80, grid_levels=(0, 25, 50, 75, 100),
        label_target=6, marker_target=12, label_offset=30,
    ),
    ViewportClass.LARGE: ViewportGeometry(
        width=700, height=320, padding=80, grid_levels=(0, 25, 50, 75, 100),
        label_target=6, marker_target=12, label_offset=30,
    ),
}


def viewport_for_width(width_px: int) -> ViewportClass:
    """Map a screen width in pixels to its viewport class."""
    if width_px <= 320:
        return ViewportClass.SMALL
    if width_px <= 375:
        return ViewportClass.MEDIUM
    return ViewportClass.LARGE


@dataclass(frozen=True)
class ChartPoint:
    x: float
    y: float
    source_index: int
    level: float


@dataclass(frozen=True)
class GridLine:
    level: int
    y: float
    label: str


@dataclass(frozen=True)
class AxisLabel:
    x: float
    y: float
    text: str
    source_index: int


@dataclass(frozen=True)
class Marker:
    x: float
    y: float
    source_index: int
    level: float
    tooltip: str


@dataclass(frozen=True)
class ChartProjection:
    viewport: ViewportClass
    width: int
    height: int
    empty: bool = False
    y_min: float = 0.0
    y_max: float = 100.0
    path: str = ""
    area_path: str = ""
    points: List[ChartPoint] = field(default_factory=list)
    grid_lines: List[GridLine] = field(default_factory=list)
    labels: List[AxisLabel] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)


def _round(value: float) -> float:
    return round(value, 2)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def thinned_indices(n: int, target: int) -> List[int]:
    """Every k-th index of a series of length n, k = max(1, n // target)."""
    step = max(1, n // target)
    return list(range(0, n, step))


def _smooth_path(points: Sequence[ChartPoint]) -> str:
    if not points:
        return ""
    first = points[0]
    parts = [f"M {_fmt(first.x)} {_fmt(first.y)}"]
    for prev, point in zip(points, points[1:]):
        third = (point.x - prev.x) / 3
        cp1_x = _round(prev.x + third)
        cp2_x = _round(point.x - third)
        parts.append(
            f"C {_fmt(cp1_x)} {_fmt(prev.y)}, {_fmt(cp2_x)} {_fmt(point.y)}, {_fmt(point.x)} {_fmt(point.y)}"
        )
    return " ".join(parts)


def _time_text(sample: HistorySample, compact: bool) -> str:
    if compact:
        return sample.recorded_at.strftime("%H") + "h"
    return sample.recorded_at.strftime("%H:%M")


def _tooltip(sample: HistorySample) -> str:
    text = f"{sample.recorded_at.strftime('%H:%M')}: {sample.level:g}%"
    if sample.temperature is not None:
        text += f", {sample.temperature:g}°C"
    return text


def project(series: Sequence[HistorySample], viewport: ViewportClass) -> ChartProjection:
    """Project a level series onto the given viewport class.

    An empty series yields a projection with `empty=True` and nothing to draw.
    """
    geometry = VIEWPORTS[viewport]
    if not series:
        return ChartProjection(
            viewport=viewport,
            width=geometry.width,
            height=geometry.height,
            empty=True,
        )

    levels = [sample.level for sample in series]
    y_max = max(max(levels), 100.0)
    y_min = max(0.0, min(levels) - 5)
    span = max(y_max - y_min, 1.0)

    n = len(series)
    padding = geometry.padding

    def x_at(index: int) -> float:
        if n == 1:
            return _round(padding + geometry.chart_width / 2)
        return _round(padding + (index / (n - 1)) * geometry.chart_width)

    def y_at(level: float) -> float:
        return _round(padding + ((y_max - level) / span) * geometry.chart_height)

    points = [
        ChartPoint(x=x_at(i), y=y_at(sample.level), source_index=i, level=sample.level)
        for i, sample in enumerate(series)
    ]
    path = _smooth_path(points)
    bottom = geometry.height - padding
    area_path = f"{path} L {_fmt(geometry.width - padding)} {_fmt(bottom)} L {_fmt(padding)} {_fmt(bottom)} Z"

    grid_lines = [
        GridLine(level=level, y=y_at(level), label=f"{level}%")
        for level in geometry.grid_levels
    ]
    labels = [
        AxisLabel(
            x=points[i].x,
            y=float(bottom + geometry.label_offset),
            text=_time_text(series[i], geometry.compact_labels),
            source_index=i,
        )
        for i in thinned_indices(n, geometry.label_target)
    ]
    markers = [
        Marker(
            x=points[i].x,
            y=points[i].y,
            source_index=i,
            level=series[i].level,
            tooltip=_tooltip(series[i]),
        )
        for i in thinned_indices(n, geometry.marker_target)
    ]

    return ChartProjection(
        viewport=viewport,
        width=geometry.width,
        height=geometry.height,
        y_min=y_min,
        y_max=y_max,
        path=path,
        area_path=area_path,
        points=points,
        grid_lines=grid_lines,
        labels=labels,
        markers=markers,
    )


def render_svg(projection: ChartProjection) -> str:
    """Render a projection as a standalone SVG document."""
    geometry = VIEWPORTS[projection.viewport]
    width, height = projection.width, projection.height
    out = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    if projection.empty:
        out.append(
            f'<text x="{width / 2:g}" y="{height / 2:g}" text-anchor="middle" '
            f'fill="#6B7280">No historical data available</text>'
        )
        out.append("</svg>")
        return "".join(out)

    for line in projection.grid_lines:
        out.append(
            f'<line x1="{geometry.padding}" y1="{_fmt(line.y)}" x2="{width - geometry.padding}" '
            f'y2="{_fmt(line.y)}" stroke="rgba(59, 130, 246, 0.12)" stroke-dasharray="6,12"/>'
        )
        out.append(
            f'<text x="{geometry.padding - (15 if geometry.compact_labels else 25)}" y="{_fmt(line.y + 5)}" '
            f'text-anchor="end" fill="#6B7280">{escape(line.label)}</text>'
        )
    for label in projection.labels:
        out.append(
            f'<text x="{_fmt(label.x)}" y="{_fmt(label.y)}" text-anchor="middle" '
            f'fill="#6B7280">{escape(label.text)}</text>'
        )
    out.append(f'<path d="{projection.area_path}" fill="rgba(59, 130, 246, 0.2)"/>')
    out.append(f'<path d="{projection.path}" fill="none" stroke="#3B82F6" stroke-width="3"/>')
    for marker in projection.markers:
        out.append(
            f'<circle cx="{_fmt(marker.x)}" cy="{_fmt(marker.y)}" r="{4 if geometry.compact_labels else 7}" '
            f'fill="#3B82F6"><title>{escape(marker.tooltip)}</title></circle>'
        )
    out.append("</svg>")
    return "".join(out)
