from fastapi import APIRouter

from core.services.alert_service import alert_service
from schemas import AlertItem, AlertsResponse

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=AlertsResponse)
async def get_alerts() -> AlertsResponse:
    """
    Get the alerts derived from the latest monitor state, most severe first.
    """
    alerts = alert_service.get_alerts()
    return AlertsResponse(
        list=[
            AlertItem(
                id=alert.id,
                rule=alert.rule,
                type=alert.severity,
                message=alert.message,
                timestamp=alert.occurred_at,
                resolved=alert.resolved,
            )
            for alert in alerts
        ],
        active_count=alert_service.active_count(),
    )
