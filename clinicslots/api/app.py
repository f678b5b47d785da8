"""
HTTP API exposing month availability and day slots.

Both endpoints accept query parameters (GET) or a JSON body (POST) and
validate everything before a data store is touched.
"""

import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .. import __version__
from ..config import AppConfig, load_config
from ..domain.exceptions import DataSourceError, FieldError, RequestValidationError
from ..factory import build_service
from ..services.availability import AvailabilityService
from ..services.schemas import DaySlotsRequest, MonthAvailabilityRequest, parse_request

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[AvailabilityService] = None,
    mock: bool = False,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration, loaded from config.yaml if omitted
        service: Pre-built service (tests inject one with stub stores)
        mock: Use the bundled mock clinic data instead of Supabase
    """
    config = config or load_config()
    service = service or build_service(config, mock=mock)

    app = FastAPI(title="clinicslots", version=__version__)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "Validation error for %s: %s",
            request.url.path,
            [error.to_dict() for error in exc.errors],
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid input",
                "details": [error.to_dict() for error in exc.errors],
            },
        )

    @app.exception_handler(DataSourceError)
    async def data_source_error_handler(request: Request, exc: DataSourceError):
        logger.error("Data source failure for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Data source unavailable", "details": str(exc)},
        )

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    @app.get("/available-days")
    async def available_days_query(request: Request):
        return await _month_availability(request.app.state.service, dict(request.query_params))

    @app.post("/available-days")
    async def available_days_body(request: Request):
        return await _month_availability(request.app.state.service, await _json_body(request))

    @app.get("/available-slots")
    async def available_slots_query(request: Request):
        return await _day_slots(request.app.state.service, dict(request.query_params))

    @app.post("/available-slots")
    async def available_slots_body(request: Request):
        return await _day_slots(request.app.state.service, await _json_body(request))

    return app


async def _month_availability(service: AvailabilityService, raw: Any) -> JSONResponse:
    month_request = parse_request(MonthAvailabilityRequest, raw)
    response = await run_in_threadpool(service.month_availability, month_request)
    return JSONResponse(content=response.model_dump())


async def _day_slots(service: AvailabilityService, raw: Any) -> JSONResponse:
    slots_request = parse_request(DaySlotsRequest, raw)
    response = await run_in_threadpool(service.day_slots, slots_request)
    return JSONResponse(content=response.model_dump())


async def _json_body(request: Request) -> Any:
    """Decode the request body, turning bad JSON into a validation error."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationError(
            [FieldError(field="body", message="Body must be valid JSON")]
        ) from None
