import httpx
from pico_ioc import factory, provides

NWS_BASE_URL = "https://api.weather.gov"
USER_AGENT = "weather-tool/1.0"


@factory
class WeatherClientFactory:
    @provides(httpx.AsyncClient, scope="singleton")
    def provide_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=NWS_BASE_URL,
            headers={"User-Agent": USER_AGENT, "Accept": "application/geo+json"},
            timeout=10.0,
        )
