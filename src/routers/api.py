from fastapi import APIRouter

from routers import alerts, chart, monitor

router = APIRouter()

# include sub-routers
router.include_router(monitor.router)
router.include_router(alerts.router)
router.include_router(chart.router)
