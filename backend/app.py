"""
AquaControl Backend Application

FastAPI application serving the valve dashboard JSON API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from . import log_config  # noqa: F401
from .api import VERSION, Dashboard
from .api import router as api_router
from core.aquacontrol.config import AppConfig, load_app_config
from core.aquacontrol.device_client import DeviceClient
from core.aquacontrol.polling import PollingScheduler
from core.aquacontrol.settings import SettingsStore, default_settings


def create_app(config: Optional[AppConfig] = None, client: Optional[DeviceClient] = None) -> FastAPI:
    """Create the application.

    Args:
        config: Backend options (loaded from options/config/env if omitted)
        client: Device client (a real one is created if omitted)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan manager for startup/shutdown."""
        # Startup
        app_config = config or load_app_config()
        logger.info("AquaControl starting")

        store = SettingsStore(app_config.settings_path, defaults=default_settings(app_config.device_address))
        device_client = client or DeviceClient(timeout=app_config.request_timeout)
        general = store.settings.general
        scheduler = PollingScheduler(
            device_client,
            general.device_address,
            general.update_interval,
            locale=app_config.locale,
        )
        app.state.dashboard = Dashboard(app_config, store, device_client, scheduler)
        await scheduler.start()

        yield

        # Shutdown
        logger.info("AquaControl shutting down")
        await scheduler.stop()
        device_client.close()
        app.state.dashboard = None

    app = FastAPI(
        title="AquaControl API",
        description="Dashboard backend for a temperature-controlled two-valve device",
        version=VERSION,
        lifespan=lifespan,
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions gracefully."""
        logger.opt(exception=exc).error(f"Unhandled exception on {request.url.path}: {exc}")
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
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"app": "AquaControl", "version": VERSION, "docs": "/docs"}

    return app


app = create_app()


# For development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
