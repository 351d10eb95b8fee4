import io

from fastapi import APIRouter, HTTPException, Path, Query
from fastapi.responses import StreamingResponse

from core.processing.chart_projector import ChartProjection, ViewportClass, render_svg, viewport_for_width
from core.services.chart_service import chart_service
from schemas import AxisLabelModel, ChartPointModel, ChartResponse, GridLineModel, MarkerModel

VALID_VIEWPORT_VALUES = ", ".join(v.value for v in ViewportClass)

router = APIRouter(prefix="/chart", tags=["chart"])

INVALID_VIEWPORT_RESPONSE = {
    400: {
        "description": "Invalid viewport provided.",
        "content": {
            "application/json": {
                "example": {"detail": f"Invalid viewport: huge. Valid values are: {VALID_VIEWPORT_VALUES}"}
            }
        }
    }
}


def _parse_viewport(viewport: str) -> ViewportClass:
    try:
        return ViewportClass(viewport.lower())
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid viewport: {viewport}. Valid values are: {VALID_VIEWPORT_VALUES}"
        )


def projection_to_response(projection: ChartProjection) -> ChartResponse:
    return ChartResponse(
        viewport=projection.viewport,
        width=projection.width,
        height=projection.height,
        empty=projection.empty,
        y_min=projection.y_min,
        y_max=projection.y_max,
        path=projection.path,
        area_path=projection.area_path,
        points=[ChartPointModel(x=p.x, y=p.y, source_index=p.source_index, level=p.level)
                for p in projection.points],
        grid_lines=[GridLineModel(level=g.level, y=g.y, label=g.label) for g in projection.grid_lines],
        labels=[AxisLabelModel(x=l.x, y=l.y, text=l.text, source_index=l.source_index)
                for l in projection.labels],
        markers=[MarkerModel(x=m.x, y=m.y, source_index=m.source_index, level=m.level, tooltip=m.tooltip)
                 for m in projection.markers],
    )


@router.get("", response_model=ChartResponse)
async def get_chart_for_width(
    width: int = Query(..., gt=0, description="Screen width in pixels")
) -> ChartResponse:
    """
    Get the 24h level chart for a screen width. The viewport class is picked
    from the same breakpoints as the dashboard (320px, 375px).
    """
    return projection_to_response(chart_service.get_projection(viewport_for_width(width)))


@router.get("/{viewport}", response_model=ChartResponse, responses=INVALID_VIEWPORT_RESPONSE)
async def get_chart(
    viewport: str = Path(..., description="Viewport class: small, medium or large")
) -> ChartResponse:
    """
    Get the 24h level chart model for a viewport class.

    Returns `empty: true` when no historical data is available.
    """
    vp = _parse_viewport(viewport)
    return projection_to_response(chart_service.get_projection(vp))


@router.get("/{viewport}/svg", response_class=StreamingResponse, responses=INVALID_VIEWPORT_RESPONSE)
async def get_chart_svg(
    viewport: str = Path(..., description="Viewport class: small, medium or large")
):
    """
    Get the 24h level chart rendered as SVG.
    """
    vp = _parse_viewport(viewport)
    svg = render_svg(chart_service.get_projection(vp))
    return StreamingResponse(
        io.BytesIO(svg.encode("utf-8")),
        media_type="image/svg+xml",
        headers={"Content-Disposition": f"inline; filename=chart_{vp.value}.svg"}
    )
