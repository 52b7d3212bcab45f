"""
Battery Service API - HTTP interface to the battery commands.

Exposes the two public operations as REST endpoints. Every request runs
its own one-shot BLE pipeline; nothing is cached between requests.
Pipeline errors are returned as ``{"detail": "<message>"}`` with a
status code chosen by the error type.
"""
import time
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from . import commands
from .config_loader import Config
from .errors import BatteryError
from .logging_setup import get_logger

logger = get_logger(__name__)


# --- Response Models ---

class DeviceResponse(BaseModel):
    """Connected device exposing battery information"""
    name: str
    id: str


class BatteryResponse(BaseModel):
    """One Battery Level reading"""
    battery_level: int | None = None
    user_descriptor: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: int


def create_app(config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config()
    api_key = config.service.api_key
    request_timeout = config.ble.request_timeout

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting battery service v%s", __version__)
        if not api_key:
            logger.warning("No API key configured, battery service is unauthenticated")
        yield
        logger.info("Shutting down battery service")

    app = FastAPI(
        title="blebatt",
        description="Battery levels of connected Bluetooth LE devices",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.service.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def verify_api_key(x_api_key: Annotated[str | None, Header()] = None):
        """Verify API key header"""
        if not api_key or api_key == "disabled":
            return True

        if x_api_key != api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")
        return True

    @app.get("/api/battery/devices", response_model=list[DeviceResponse])
    async def list_devices(_: bool = Depends(verify_api_key)):
        """List connected devices exposing the Battery Service"""
        try:
            return await commands.list_battery_devices(timeout=request_timeout)
        except BatteryError as e:
            logger.error("List devices error: %s", e)
            raise HTTPException(status_code=e.status_code, detail=str(e))

    @app.get("/api/battery/info", response_model=list[BatteryResponse])
    async def battery_info(
        id: str = Query(..., min_length=1, description="Device id from /api/battery/devices"),
        _: bool = Depends(verify_api_key),
    ):
        """Read the battery levels of one connected device"""
        try:
            return await commands.get_battery_info(id, timeout=request_timeout)
        except BatteryError as e:
            logger.error("Battery info error for %s: %s", id, e)
            raise HTTPException(status_code=e.status_code, detail=str(e))

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(
            status="healthy",
            version=__version__,
            timestamp=int(time.time() * 1000),
        )

    return app
