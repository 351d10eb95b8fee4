from fastapi import APIRouter, HTTPException

from core.models.reading import Reading
from core.services.acquisition_scheduler import acquisition_scheduler
from schemas import BufferResponse, MonitorStatusResponse, ReadingResponse

router = APIRouter(prefix="/monitor", tags=["monitor"])


def reading_to_response(reading: Reading) -> ReadingResponse:
    return ReadingResponse(
        level=reading.level,
        tank_capacity=reading.tank_capacity,
        volume_liters=reading.volume_liters,
        timestamp=reading.timestamp,
        connectivity_ok=reading.connectivity_ok,
        battery=reading.battery,
        temperature=reading.temperature,
        distance=reading.distance,
    )


@router.get("/status", response_model=MonitorStatusResponse)
async def get_status() -> MonitorStatusResponse:
    """
    Get the full monitor state: last known good reading, inferred pump state,
    connection status and refresh progress.
    """
    snapshot = acquisition_scheduler.snapshot()
    return MonitorStatusResponse(
        reading=reading_to_response(snapshot.reading) if snapshot.reading else None,
        pump_status=snapshot.actuator_state,
        connection_status=snapshot.connection_status,
        is_refreshing=snapshot.is_refreshing,
        last_fetch_time=snapshot.last_fetch_time,
        history_length=len(snapshot.history),
        history_series_length=snapshot.history_series_length,
    )


@router.get("/reading", response_model=ReadingResponse, responses={
    503: {
        "description": "No reading has been received yet.",
        "content": {
            "application/json": {
                "example": {"detail": "No reading available yet"}
            }
        }
    }
})
async def get_reading() -> ReadingResponse:
    """
    Get the last known good reading. It is kept while the sensor is unreachable.
    """
    reading = acquisition_scheduler.reading
    if reading is None:
        raise HTTPException(status_code=503, detail="No reading available yet")
    return reading_to_response(reading)


@router.get("/buffer", response_model=BufferResponse)
async def get_buffer() -> BufferResponse:
    """
    Get the recent levels feeding pump inference, most recent last.
    """
    buffer = acquisition_scheduler.history_buffer
    return BufferResponse(capacity=buffer.capacity, list=buffer.snapshot())


@router.post("/refresh", status_code=204)
async def refresh() -> None:
    """
    Fetch the current reading and the historical series immediately.
    The automatic refresh schedule is not reset.
    """
    await acquisition_scheduler.refresh()


@router.post("/cache/clear", status_code=204)
async def clear_cache() -> None:
    """
    Drop the telemetry client's cached responses.
    """
    acquisition_scheduler.clear_cache()
