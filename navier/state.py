"""Controller state, its JSON form, and change-driven publishing."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from typing import Callable, Protocol

from .config import millis
from .led import BLACK, Color

UNSET_READING = -1000.0
UNSET_AIR_QUALITY = -1

STATE_CHECK_INTERVAL_MS = 500
CLIMATE_REFRESH_MS = 1_200_000
AIR_QUALITY_REFRESH_MS = 300_000

_FLAG_TEXT = ("false", "true")
_SWITCH_TEXT = ("OFF", "ON")


def _rgb(color: Color) -> str:
    return f"{color.r},{color.g},{color.b}"


def _number(value: float) -> float | int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass
class State:
    """Snapshot of everything the controller reports."""

    water_close_relay: bool = False
    drawing_relay: bool = False
    water_consumption: float = 0.0
    shelf_switch_state: bool = False
    shelf_brightness: int = 0
    shelf_color: Color = BLACK
    temperature: float = UNSET_READING
    humidity: float = UNSET_READING
    air_quality: int = UNSET_AIR_QUALITY
    motion_detected: bool = False
    water_leak_toilet: bool = False
    water_leak_bathroom: bool = False
    water_leak_kitchen: bool = False
    toilet_door_open: bool = False
    toilet_manhole_open: bool = False
    main_light_switch_state: bool = False
    main_light_brightness: int = 0
    main_light_color_temp: int = 0
    light_night_mode: bool = False
    backlight_switch_state: bool = False
    backlight_brightness: int = 0
    backlight_color: Color = BLACK

    def is_valid(self) -> bool:
        """True once every climate reading has arrived."""
        return (
            self.temperature != UNSET_READING
            and self.humidity != UNSET_READING
            and self.air_quality != UNSET_AIR_QUALITY
        )

    def to_json(self) -> str:
        """Serialise to the payload published on the state topic."""
        flag = _FLAG_TEXT
        switch = _SWITCH_TEXT
        payload = {
            "waterCloseRelay": flag[bool(self.water_close_relay)],
            "drawingRelay": flag[bool(self.drawing_relay)],
            "waterConsumption": _number(self.water_consumption),
            "shelfSwitchState": switch[bool(self.shelf_switch_state)],
            "shelfBrightness": self.shelf_brightness,
            "shelfColor": _rgb(self.shelf_color),
            "temperature": _number(self.temperature),
            "humidity": _number(self.humidity),
            "airQuality": self.air_quality,
            "motionDetected": flag[bool(self.motion_detected)],
            "waterLeakToilet": flag[bool(self.water_leak_toilet)],
            "waterLeakBathroom": flag[bool(self.water_leak_bathroom)],
            "waterLeakKitchen": flag[bool(self.water_leak_kitchen)],
            "toiletDoorOpen": flag[bool(self.toilet_door_open)],
            "toiletManholeOpen": flag[bool(self.toilet_manhole_open)],
            "mainLightSwitchState": switch[bool(self.main_light_switch_state)],
            "mainLightBrightness": self.main_light_brightness,
            "mainLightColorTemp": self.main_light_color_temp,
            "lightNightMode": flag[bool(self.light_night_mode)],
            "backlightSwitchState": switch[bool(self.backlight_switch_state)],
            "backlightBrightness": self.backlight_brightness,
            "backlightColor": _rgb(self.backlight_color),
        }
        return json.dumps(payload, separators=(",", ":"))


_FIELD_NAMES = frozenset(f.name for f in fields(State))


class _Publisher(Protocol):
    def is_connected(self) -> bool: ...

    def publish(self, topic: str, payload: str, retain: bool) -> bool: ...


class StateProducer:
    """Publishes states to an MQTT topic while the client is connected."""

    def __init__(self, mqtt: _Publisher, topic: str = "") -> None:
        self._mqtt = mqtt
        self.topic = topic

    def publish(self, state: State) -> None:
        if not self._mqtt.is_connected():
            return
        self._mqtt.publish(self.topic, state.to_json(), False)


class StateManager:
    """Holds the current state and publishes it when it changes."""

    def __init__(self, producer: StateProducer, clock: Callable[[], int] = millis) -> None:
        self._producer = producer
        self._clock = clock
        self._current = State()
        self._previous = State()
        self._last_check = 0
        self._updated_at = dict.fromkeys(("temperature", "humidity", "air_quality"), 0)

    @property
    def state(self) -> State:
        """A copy of the current state."""
        return replace(self._current)

    def update(self, **kwargs) -> None:
        """Set state fields by name."""
        unknown = set(kwargs) - _FIELD_NAMES
        if unknown:
            raise TypeError(f"unknown state fields: {', '.join(sorted(unknown))}")
        for name, value in kwargs.items():
            setattr(self._current, name, value)

    def _set_throttled(self, name: str, value, unset, threshold, refresh_ms: int) -> None:
        now = self._clock()
        current = getattr(self._current, name)
        if (
            current == unset
            or abs(value - current) > threshold
            or self._updated_at[name] + refresh_ms < now
        ):
            setattr(self._current, name, value)
            self._updated_at[name] = now

    def set_temperature(self, temperature: float) -> None:
        """Accept a reading that moved more than 0.1 or is due a refresh."""
        self._set_throttled("temperature", temperature, UNSET_READING, 0.1, CLIMATE_REFRESH_MS)

    def set_humidity(self, humidity: float) -> None:
        """Accept a reading that moved more than 0.5 or is due a refresh."""
        self._set_throttled("humidity", humidity, UNSET_READING, 0.5, CLIMATE_REFRESH_MS)

    def set_air_quality(self, air_quality: int) -> None:
        """Accept a reading that moved more than 50 or is due a refresh."""
        self._set_throttled(
            "air_quality", air_quality, UNSET_AIR_QUALITY, 50, AIR_QUALITY_REFRESH_MS
        )

    def loop(self) -> None:
        now = self._clock()
        if self._last_check + STATE_CHECK_INTERVAL_MS >= now:
            return
        if self._current.is_valid() and self._current != self._previous:
            self._previous = replace(self._current)
            self._producer.publish(self._current)
        self._last_check = now