"""
Thermovalve Backend Application

FastAPI application exposing the heating valve rules. Home Assistant
automations call the evaluate endpoint on every relevant state change.
"""

import os
import sys
from contextlib import asynccontextmanager

import log_config  # noqa: F401
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "core"))

# Import API router
from api import THERMOSTATS, VERSION, ha_client
from api import router as api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown."""
    # Startup
    logger.info("Thermovalve starting")

    # Log registered routes
    routes = [
        f"{getattr(route, 'path', '?')} - {getattr(route, 'methods', ['MOUNT'])}"
        for route in app.routes
    ]
    logger.info(f"Registered routes: {routes}")

    if not ha_client:
        logger.warning("⚠️ HA_TOKEN not set - thermostat evaluation disabled")
    for thermostat in THERMOSTATS:
        logger.info(
            f"Thermostat {thermostat.id}: mode={thermostat.mode_entity} "
            f"valve={thermostat.valve_entity} table={thermostat.mode_table().name}"
        )

    yield

    # Shutdown
    logger.info("Thermovalve shutting down")
    if ha_client:
        ha_client.session.close()


# Create FastAPI application
app = FastAPI(
    title="Thermovalve API",
    description="Heating valve control with hysteresis for thermostat items",
    version=VERSION,
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions gracefully."""
    import traceback

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    logger.error(f"Unhandled exception: {exc}")
    logger.error(f"Request path: {request.url.path}")
    logger.error(f"Stack trace:\n{tb_str}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "message": "Internal server error",
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# For development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
