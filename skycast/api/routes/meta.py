from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse

from skycast.api.deps import Gateway, get_settings, get_weather_api_client
from skycast.clients.weatherapi import WeatherApiClient
from skycast.core.config import Settings
from skycast.core.errors import UpstreamError, ValidationError
from skycast.schemas.meta import HealthOut, KeyValidationOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthOut)
def health(
    client: Annotated[WeatherApiClient, Depends(get_weather_api_client)],
) -> HealthOut:
    return HealthOut(
        status="ok",
        timestamp=datetime.now(tz=timezone.utc),
        api_key="configured" if client.has_api_key else "missing",
    )


@router.get("/validate-key", response_model=KeyValidationOut)
def validate_key(gateway: Gateway):
    logger.info("Validating WeatherAPI key")
    try:
        valid, message = gateway.validate_key()
    except UpstreamError as e:
        logger.error("API key validation error: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"valid": False, "error": "Failed to validate API key"},
        )
    if not valid:
        logger.warning("WeatherAPI key validation failed: %s", message)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"valid": False, "error": message or "API key invalid"},
        )
    return KeyValidationOut(valid=True, message=message)


@router.get("/precipitation-tile")
def precipitation_tile(
    settings: Annotated[Settings, Depends(get_settings)],
    z: str | None = None,
    x: str | None = None,
    y: str | None = None,
) -> RedirectResponse:
    if not z or not x or not y:
        raise ValidationError("Missing tile parameters (z, x, y)")
    logger.info("Redirecting to precipitation tile z=%s x=%s y=%s", z, x, y)
    url = settings.tile_url_template.format(z=z, x=x, y=y, key=settings.tile_api_key)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
