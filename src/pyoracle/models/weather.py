"""Weather provider response models."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field


class CurrentWeather(BaseModel):
    """The ``current_weather`` block of an Open-Meteo forecast response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    temperature: float = Field(allow_inf_nan=False)
    windspeed: float | None = None
    winddirection: float | None = None
    weathercode: int | None = None
    time: str | None = None


class ForecastResponse(BaseModel):
    """Forecast body.  Only ``current_weather`` is required."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    latitude: float | None = None
    longitude: float | None = None
    current_weather: CurrentWeather


def format_temperature(value: float) -> str:
    """Render a temperature the way it is stored on-chain.

    Whole numbers drop the fractional part (``21.0`` → ``"21"``); other
    values use the shortest round-tripping representation (``"21.5"``).

    A genuine reading of ``0.0`` or ``-0.0`` renders as ``"0"``, the same
    string the relay submits when every fetch failed.  Consumers cannot
    tell the two apart from the stored result alone.
    """
    if not math.isfinite(value):
        raise ValueError(f"temperature must be finite, got {value}")
    if value.is_integer():
        return str(int(value))
    return repr(value)
