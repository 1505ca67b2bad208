"""WeatherAPI.com client -- current conditions, same-day forecast, astronomy.

One forecast.json call (days=1) returns everything the report needs. If
that endpoint faults in transit, current.json is tried once so the user
still gets conditions without the forecast/astronomy fields.
"""

from __future__ import annotations

import urllib.parse

from nodemesh.log import logger
from nodemesh.models import WeatherReport
from nodemesh.providers import LocationNotFound, ProviderError, ProviderNotConfigured, fetch_json

# WeatherAPI error code for "No matching location found."
_NO_LOCATION_CODES = {1006}


def _num(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def parse_report(payload: dict) -> WeatherReport:
    """Build a WeatherReport from a forecast.json or current.json body."""
    location = payload.get("location") or {}
    current = payload.get("current") or {}
    condition = current.get("condition") or {}
    days = (payload.get("forecast") or {}).get("forecastday") or []
    today = days[0] if days and isinstance(days[0], dict) else {}
    day = today.get("day") or {}
    astro = today.get("astro") or {}

    return WeatherReport(
        location_name=location.get("name") or "",
        region=location.get("region") or "",
        country=location.get("country") or "",
        condition_text=condition.get("text") or "Unknown",
        temp_c=_num(current.get("temp_c")),
        feels_like_c=_num(current.get("feelslike_c")),
        humidity_pct=_num(current.get("humidity")),
        wind_kph=_num(current.get("wind_kph")),
        wind_dir=current.get("wind_dir") or "",
        sunrise=astro.get("sunrise") or "",
        sunset=astro.get("sunset") or "",
        local_time=location.get("localtime") or "",
        max_temp_c=_num(day.get("maxtemp_c")),
        min_temp_c=_num(day.get("mintemp_c")),
        chance_of_rain=_num(day.get("daily_chance_of_rain")),
    )


class WeatherProvider:
    def __init__(self, api_key: str, base_url: str = "https://api.weatherapi.com/v1", timeout: float = 8) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_config(cls, cfg: dict | None = None) -> "WeatherProvider":
        if cfg is None:
            from nodemesh.config.loader import get_weather_config
            cfg = get_weather_config()
        return cls(
            api_key=cfg.get("api_key", ""),
            base_url=cfg.get("base_url") or "https://api.weatherapi.com/v1",
            timeout=float(cfg.get("timeout_seconds", 8)),
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _url(self, endpoint: str, location: str, **extra: str) -> str:
        params = {"key": self._api_key, "q": location, **extra}
        return f"{self._base_url}/{endpoint}?{urllib.parse.urlencode(params)}"

    def forecast(self, location: str) -> WeatherReport:
        """Fetch the report for ``location``.

        Raises:
            ProviderNotConfigured: no API key.
            LocationNotFound: the provider could not match the query.
            ProviderError: any other failure.
        """
        if not self.configured:
            raise ProviderNotConfigured("Weather API key missing")

        try:
            payload = fetch_json(
                self._url("forecast.json", location, days="1", aqi="no", alerts="no"),
                timeout=self._timeout,
            )
        except ProviderError as e:
            self._raise_if_not_found(e, location)
            logger.warning("forecast.json failed for %r (%s), trying current.json", location, e)
            try:
                payload = fetch_json(self._url("current.json", location), timeout=self._timeout)
            except ProviderError as retry_error:
                self._raise_if_not_found(retry_error, location)
                raise

        report = parse_report(payload)
        if not report.location_name:
            raise LocationNotFound(f"No location in provider response for {location!r}")
        return report

    @staticmethod
    def _raise_if_not_found(error: ProviderError, location: str) -> None:
        body = error.payload.get("error")
        code = body.get("code") if isinstance(body, dict) else None
        if code in _NO_LOCATION_CODES or (error.status == 400 and code is None):
            raise LocationNotFound(f"No matching location found for {location!r}", status=error.status) from error
