import pytest

from pico_ab.bucketing import BucketKeyResolver
from pico_ab.config import ABConfig
from pico_ab.decorators import tool, treatment
from pico_ab.experiments import ExperimentRegistry, Variant
from pico_ab.messages import ToolRequest
from pico_ab.registry import ToolRegistry
from pico_ab.router import ToolVariantRouter
from pico_ab.selector import VariantSelector


@treatment("forecast_exp", "detailed", weight=0.5, canonical_name="get_forecast")
@tool(name="get_forecast__detailed", description="Detailed forecast.")
def forecast_detailed(request: ToolRequest, latitude: float, longitude: float) -> str:
    return f"Temperature: 60F at {latitude},{longitude}"


@treatment("forecast_exp", "concise", weight=0.5, canonical_name="get_forecast")
@tool(name="get_forecast__concise", description="Concise forecast.")
def forecast_concise(request: ToolRequest, latitude: float, longitude: float) -> str:
    return f"Temp: 60F at {latitude},{longitude}"


@tool(description="Get weather alerts for a US state.")
def get_alerts(state: str) -> str:
    return f"No active alerts for {state}."


class Scope:
    """Stand-in for a transport, service scope or server object."""


def make_router(*funcs, config=None, experiments=None):
    """Wire a router by hand over *funcs*, without a container."""
    config = config or ABConfig()
    registry = ToolRegistry()
    for func in funcs:
        registry.register_function(func)
    return ToolVariantRouter(
        registry,
        experiments or ExperimentRegistry(),
        BucketKeyResolver(config),
        VariantSelector(),
        config,
    )


@pytest.fixture
def ab_config():
    return ABConfig()


@pytest.fixture
def resolver(ab_config):
    return BucketKeyResolver(ab_config)


@pytest.fixture
def selector():
    return VariantSelector()


@pytest.fixture
def weather_router():
    """Router over the two forecast treatments plus an untreated tool."""
    return make_router(forecast_detailed, forecast_concise, get_alerts)


@pytest.fixture
def two_variants():
    return (
        Variant("search", "search_exp", "control", 3.0, "search_v1"),
        Variant("search", "search_exp", "candidate", 1.0, "search_v2"),
    )
