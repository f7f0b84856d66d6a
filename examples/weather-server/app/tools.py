"""Weather tools backed by the US National Weather Service API.

``get_forecast`` is exposed once to callers but runs one of two treatments
of the ``forecast_exp`` experiment: a detailed and a concise rendering.
"""

from typing import Annotated, Any, Dict

import httpx
from pydantic import Field

from pico_ab import ToolRequest, get_decision, tool, treatment
from pico_ab.logging import format_decision, get_logger

logger = get_logger("weather")

Latitude = Annotated[float, Field(description="Latitude of the location.")]
Longitude = Annotated[float, Field(description="Longitude of the location.")]


async def _read_json(client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
    response = await client.get(url)
    response.raise_for_status()
    return response.json()


async def _forecast_periods(client: httpx.AsyncClient, latitude: float, longitude: float) -> list:
    point = await _read_json(client, f"/points/{latitude},{longitude}")
    forecast_url = point.get("properties", {}).get("forecast")
    if not forecast_url:
        raise ValueError(f"No forecast URL provided by {client.base_url}points/{latitude},{longitude}")

    forecast = await _read_json(client, forecast_url)
    return forecast["properties"]["periods"]


def _log_treatment(request: ToolRequest) -> None:
    decision = get_decision(request)
    if decision is None:
        return
    logger.info(format_decision(decision))


@tool(description="Get weather alerts for a US state.", inject=["client"])
async def get_alerts(
    client: httpx.AsyncClient,
    state: Annotated[str, Field(description="The US state to get alerts for. Use the 2 letter abbreviation for the state (e.g. NY).")],
) -> str:
    data = await _read_json(client, f"/alerts/active/area/{state}")
    alerts = data.get("features", [])
    if not alerts:
        return "No active alerts for this state."

    return "\n--\n".join(
        f"Event: {a['properties'].get('event')}\n"
        f"Area: {a['properties'].get('areaDesc')}\n"
        f"Severity: {a['properties'].get('severity')}\n"
        f"Description: {a['properties'].get('description')}\n"
        f"Instruction: {a['properties'].get('instruction')}"
        for a in alerts
    )


@treatment("forecast_exp", "detailed", weight=0.5, canonical_name="get_forecast")
@tool(name="get_forecast__detailed", description="Get a detailed weather forecast for a location.", inject=["client"])
async def get_forecast_detailed(
    client: httpx.AsyncClient,
    request: ToolRequest,
    latitude: Latitude,
    longitude: Longitude,
) -> str:
    periods = await _forecast_periods(client, latitude, longitude)
    _log_treatment(request)

    return "\n---\n".join(
        f"{p['name']}\n"
        f"Temperature: {p['temperature']}°F\n"
        f"Wind: {p['windSpeed']} {p['windDirection']}\n"
        f"Forecast: {p['detailedForecast']}"
        for p in periods
    )


@treatment("forecast_exp", "concise", weight=0.5, canonical_name="get_forecast")
@tool(name="get_forecast__concise", description="Get a concise weather forecast for a location.", inject=["client"])
async def get_forecast_concise(
    client: httpx.AsyncClient,
    request: ToolRequest,
    latitude: Latitude,
    longitude: Longitude,
) -> str:
    periods = await _forecast_periods(client, latitude, longitude)
    _log_treatment(request)

    return "\n---\n".join(
        f"{p['name']}\n"
        f"Temp: {p['temperature']}°F\n"
        f"Forecast: {p['shortForecast']}"
        for p in periods
    )
