from fastapi import FastAPI
from pydantic_settings import BaseSettings
from contextlib import asynccontextmanager
from typing import Optional
import os
import logging

from routers.api import router as api_router
from schemas import AppHealthOK
from core.service_manager import service_manager
from core.config_loader import config_loader

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    app_name: str = "Water Level Monitor API"
    debug: bool = True
    # Poll the emulated sensor instead of ThingSpeak.
    # Environment variable EMULATION_MODE overrides the config file.
    emulation_mode: bool = os.getenv("EMULATION_MODE", "").lower() == "true" \
        if os.getenv("EMULATION_MODE") else config_loader.get_emulation_mode()
    # Read key for private ThingSpeak channels, kept out of the config file
    thingspeak_read_api_key: Optional[str] = None


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup/shutdown."""
    try:
        logger.info(
            "Starting background services in %s mode", "emulation" if settings.emulation_mode else "ThingSpeak"
        )
        await service_manager.start_services(
            emulation=settings.emulation_mode,
            read_api_key=settings.thingspeak_read_api_key,
        )
    except Exception as e:
        if settings.emulation_mode:
            raise
        logger.error("Failed to start ThingSpeak telemetry: %s, falling back to emulation mode", e)
        await service_manager.start_services(emulation=True)

    try:
        yield
    finally:
        logger.info("Stopping background services")
        await service_manager.stop_services()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)


@app.get("/", tags=["meta"])
async def read_root() -> dict[str, str]:
    return {"message": settings.app_name}


@app.get("/health", tags=["meta"], response_model=AppHealthOK)
async def healthcheck() -> AppHealthOK:
    return AppHealthOK(status="ok", app=settings.app_name)


# mount API router under /api
app.include_router(api_router, prefix="/api")
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
