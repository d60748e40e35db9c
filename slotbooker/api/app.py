"""
FastAPI application factory and error mapping.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..adapters.credentials import build_credential_provider
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig
from ..domain.exceptions import GatewayError, SlotConflictError, ValidationError
from ..services.booking_service import BookingService, CalendarClientProtocol
from .routes import router

logger = logging.getLogger(__name__)


def create_app(service: BookingService, config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the HTTP application around a ready booking service.

    Args:
        service: Booking service the routes delegate to
        config: Application config, used for CORS origins
    """
    app = FastAPI(title="slotbooker", version=__version__)
    app.state.booking_service = service

    origins = config.cors_origins if config is not None else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(router)
    register_exception_handlers(app)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP status codes."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # loc is ("body", field, ...) or ("query", field)
        fields = sorted(
            {".".join(str(part) for part in error.get("loc", ())[1:]) for error in exc.errors()} - {""}
        )
        message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(SlotConflictError)
    async def handle_slot_conflict(request: Request, exc: SlotConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"error": "slot no longer available"})

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        logger.error("Calendar gateway failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})


def build_calendar_client(
    config: AppConfig,
    mock: bool = False,
    mock_data: Optional[Path] = None,
) -> CalendarClientProtocol:
    """
    Build the calendar gateway for the config.

    Raises:
        ConfigurationError: If credentials are missing or invalid
    """
    if mock:
        logger.warning("Using mock calendar data, no events reach Google Calendar")
        return MockCalendarClient(timezone=config.timezone, data_file=mock_data)

    provider = build_credential_provider(config.credentials)
    return GoogleCalendarClient.from_credentials(provider.get_credentials(), timezone=config.timezone)


def build_app(config: AppConfig, mock: bool = False, mock_data: Optional[Path] = None) -> FastAPI:
    """Wire config, gateway and service into an application."""
    client = build_calendar_client(config, mock=mock, mock_data=mock_data)
    service = BookingService.from_config(config, client)
    logger.info(
        "Serving calendar %s, work hours %s-%s %s, buffer %d min",
        config.calendar_id,
        config.work_start,
        config.work_end,
        config.timezone,
        config.buffer_minutes,
    )
    return create_app(service, config)


def build_app_from_env() -> FastAPI:
    """Application factory for ``uvicorn slotbooker.api.app:build_app_from_env --factory``."""
    return build_app(AppConfig.from_env())
