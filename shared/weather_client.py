"""
Weather client for the campus rain check.

Queries Open-Meteo for the hourly precipitation probability at the campus
coordinates. Single attempt, no retry: a slow or failing lookup only delays or
degrades the one chat reply waiting on it.
"""

import logging
from dataclasses import dataclass

import httpx

from shared.config import get_settings

logger = logging.getLogger(__name__)

# Only the next 12 hourly values are considered
FORECAST_HOURS = 12


class WeatherUnavailableError(Exception):
    """Raised when the forecast cannot be fetched or understood."""


@dataclass(frozen=True)
class RainForecast:
    max_probability: int
    hours_considered: int


def max_precipitation_probability(hourly: list[int | float | None]) -> int:
    """
    Max of the first FORECAST_HOURS probabilities (0-100), ignoring gaps.

    An empty forecast counts as 0%.
    """
    window = [value for value in hourly[:FORECAST_HOURS] if value is not None]
    return int(max(window, default=0))


class WeatherClient:
    """Client for the Open-Meteo forecast API."""

    def __init__(self):
        settings = get_settings()
        self.api_url = settings.WEATHER_API_URL
        self.params = {
            "latitude": settings.WEATHER_LATITUDE,
            "longitude": settings.WEATHER_LONGITUDE,
            "hourly": "precipitation_probability",
            "timezone": settings.TIMEZONE,
        }

    async def fetch_rain_forecast(self) -> RainForecast:
        """
        Fetch the rain risk for the next 12 hours.

        Raises:
            WeatherUnavailableError: On transport errors, non-2xx responses or
                an unexpected payload
        """
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(self.api_url, params=self.params, timeout=10.0)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Weather lookup failed: {e}")
                raise WeatherUnavailableError(str(e)) from e

        hourly = (payload.get("hourly") or {}).get("precipitation_probability")
        if not isinstance(hourly, list):
            logger.warning("Weather payload missing hourly precipitation_probability")
            raise WeatherUnavailableError("missing hourly precipitation data")

        forecast = RainForecast(
            max_probability=max_precipitation_probability(hourly),
            hours_considered=min(len(hourly), FORECAST_HOURS),
        )
        logger.info(f"Rain forecast fetched: max={forecast.max_probability}%")
        return forecast
