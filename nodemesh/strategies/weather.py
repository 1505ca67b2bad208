"""Weather strategy -- resolve a place, fetch the report, optionally advise on an activity."""

from __future__ import annotations

from datetime import datetime

from nodemesh.llm.completion import CompletionClient
from nodemesh.log import logger
from nodemesh.models import ConversationTurn, IntentResult, WeatherReport
from nodemesh.providers import LocationNotFound, ProviderError, ProviderNotConfigured
from nodemesh.providers.weather import WeatherProvider
from nodemesh.state import RouterContext
from nodemesh.strategies import format_number

LOCATION_PROMPT = (
    "Which city should I check? Tell me a place, for example "
    "\"What's the weather in Tokyo?\""
)
NOT_CONFIGURED = "Weather service is not configured. Ask the administrator to set WEATHER_API_KEY."

_ACTIVITY_PROMPT = """Current weather facts for {place}:
{facts}

The user wants to go {activity}. Based only on these facts, give a clear
go / no-go recommendation in at most three sentences, with one practical tip.
Start with "Go" or "No-go"."""


def _format_local_time(raw: str) -> str:
    """'2024-05-01 14:05' -> 'Wednesday, 01 May 2024, 14:05'. Unparseable values pass through."""
    try:
        return datetime.strptime(raw, "%Y-%m-%d %H:%M").strftime("%A, %d %B %Y, %H:%M")
    except ValueError:
        return raw


def _place_label(report: WeatherReport) -> str:
    parts = [report.location_name]
    for extra in (report.region, report.country):
        if extra and extra not in parts:
            parts.append(extra)
    return ", ".join(p for p in parts if p)


def format_report(report: WeatherReport) -> str:
    lines = [
        f"**Weather in {_place_label(report)}**",
        "",
        f"- Condition: {report.condition_text}",
        f"- Temperature: {format_number(report.temp_c, '°C')} "
        f"(feels like {format_number(report.feels_like_c, '°C')})",
    ]
    if report.max_temp_c is not None and report.min_temp_c is not None:
        today = f"- Today: high {format_number(report.max_temp_c, '°C')} / low {format_number(report.min_temp_c, '°C')}"
        if report.chance_of_rain is not None:
            today += f", {format_number(report.chance_of_rain, '%')} chance of rain"
        lines.append(today)
    lines.append(f"- Humidity: {format_number(report.humidity_pct, '%')}")
    wind = f"- Wind: {format_number(report.wind_kph, ' km/h')}"
    if report.wind_dir:
        wind += f" {report.wind_dir}"
    lines.append(wind)
    if report.sunrise or report.sunset:
        lines.append(f"- Sunrise: {report.sunrise or 'n/a'} | Sunset: {report.sunset or 'n/a'}")
    if report.local_time:
        lines.append(f"- Local time: {_format_local_time(report.local_time)}")
    return "\n".join(lines)


def _facts(report: WeatherReport) -> str:
    return "\n".join([
        f"condition: {report.condition_text}",
        f"temperature: {format_number(report.temp_c, 'C')} (feels like {format_number(report.feels_like_c, 'C')})",
        f"humidity: {format_number(report.humidity_pct, '%')}",
        f"wind: {format_number(report.wind_kph, ' km/h')} {report.wind_dir}".rstrip(),
        f"chance of rain today: {format_number(report.chance_of_rain, '%')}",
        f"sunrise: {report.sunrise or 'n/a'}, sunset: {report.sunset or 'n/a'}",
        f"local time: {report.local_time or 'n/a'}",
    ])


class WeatherStrategy:
    def __init__(self, provider: WeatherProvider, completion: CompletionClient, context: RouterContext) -> None:
        self._provider = provider
        self._completion = completion
        self._context = context

    def resolve_location(self, intent: IntentResult) -> str:
        return intent.location.strip() or self._context.last_known_location

    def handle(self, message: str, intent: IntentResult, history: list[ConversationTurn]) -> str:
        location = self.resolve_location(intent)
        if not location:
            return LOCATION_PROMPT

        try:
            report = self._provider.forecast(location)
        except ProviderNotConfigured:
            return NOT_CONFIGURED
        except LocationNotFound:
            logger.info("Weather location not found: %r", location)
            return f"Sorry, I couldn't find a place called \"{location}\". Try a specific city name."
        except ProviderError:
            logger.warning("Weather provider failed for %r", location, exc_info=True)
            return "I'm having trouble reaching the weather service right now. Please try again in a moment."
        except Exception:
            logger.error("Unexpected weather failure for %r", location, exc_info=True)
            return "Sorry, something went wrong while fetching the weather."

        text = format_report(report)
        if intent.activity:
            advice = self._activity_advice(report, intent.activity, history)
            if advice:
                text += f"\n\n**{intent.activity.strip().capitalize()} check:** {advice}"
        return text

    def _activity_advice(self, report: WeatherReport, activity: str, history: list[ConversationTurn]) -> str:
        """One extra completion for a go/no-go call. Any failure just drops the section."""
        if not self._completion.enabled:
            return ""
        prompt = _ACTIVITY_PROMPT.format(
            place=_place_label(report), facts=_facts(report), activity=activity.strip(),
        )
        try:
            return self._completion.complete(
                [*history, ConversationTurn(role="user", text=prompt)],
                max_output_tokens=200,
                system="You are NodeMesh, a practical assistant giving outdoor activity advice from weather data.",
            ).strip()
        except Exception:
            logger.warning("Activity advice failed for %r, omitting section", activity, exc_info=True)
            return ""
