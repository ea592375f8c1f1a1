"""MQTT command payloads and the consumers that apply them."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from .led import Color
from .lights import COLOR_TEMP_MAX, COLOR_TEMP_MIN

if TYPE_CHECKING:
    from .automation import LightAutomation
    from .backlight import Backlight
    from .lights import Light, MainLight
    from .relay import Relay
    from .shelf import ShelfLight

log = logging.getLogger(__name__)

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _as_unsigned(value: Any, bits: int) -> int:
    """Read a JSON number as an unsigned integer; anything that does not fit is 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and math.isfinite(value):
        number = int(value)
    else:
        return 0
    return number if 0 <= number < (1 << bits) else 0


def _positive(value: int) -> Optional[int]:
    return value if value > 0 else None


def _parse_int(text: str) -> Optional[int]:
    if not _DECIMAL.fullmatch(text):
        return None
    number = int(text)
    return number if _INT_MIN <= number <= _INT_MAX else None


def _parse_color(value: Any) -> Optional[Color]:
    """Parse an "r,g,b" string of decimal components."""
    if not isinstance(value, str):
        return None
    parts = value.split(",")
    if len(parts) != 3:
        return None
    packed = 0
    for shift, part in zip((16, 8, 0), parts):
        component = _parse_int(part)
        if component is None:
            return None
        packed |= component << shift
    return Color.from_int(packed & 0xFFFFFF)


@dataclass(frozen=True)
class Command:
    """A decoded command; fields left as None were not requested."""

    water_close_relay: Optional[bool] = None
    drawing_relay: Optional[bool] = None
    shelf_brightness: Optional[int] = None
    shelf_color: Optional[Color] = None
    main_light_brightness: Optional[int] = None
    main_light_color_temp: Optional[int] = None
    light_night_mode: Optional[bool] = None
    backlight_brightness: Optional[int] = None
    backlight_color: Optional[Color] = None

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Command":
        """Decode a JSON command object; raises ValueError if it is not one."""
        try:
            root = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError(f"invalid command payload: {exc}") from exc
        if not isinstance(root, dict):
            raise ValueError("command payload must be a JSON object")

        def flag(key: str) -> Optional[bool]:
            return _as_bool(root[key]) if key in root else None

        def level(key: str, bits: int) -> Optional[int]:
            return _positive(_as_unsigned(root[key], bits)) if key in root else None

        def color(key: str) -> Optional[Color]:
            return _parse_color(root[key]) if key in root else None

        night_mode: Optional[bool] = None
        if "lightNightMode" in root:
            raw = root["lightNightMode"]
            night_mode = raw is True or raw == "true"

        return cls(
            water_close_relay=flag("waterCloseRelay"),
            drawing_relay=flag("drawingRelay"),
            shelf_brightness=level("shelfBrightness", 8),
            shelf_color=color("shelfColor"),
            main_light_brightness=level("mainLightBrightness", 8),
            main_light_color_temp=level("mainLightColorTemp", 16),
            light_night_mode=night_mode,
            backlight_brightness=level("backlightBrightness", 8),
            backlight_color=color("backlightColor"),
        )


class CommandConsumer:
    """Applies JSON commands from the command topic to relays and lights."""

    def __init__(
        self,
        water_valve_relay: "Relay",
        drawing_relay: "Relay",
        shelf_light: "ShelfLight",
        backlight: "Backlight",
        main_light: "MainLight",
        light_automation: "LightAutomation",
        topic: str = "",
    ) -> None:
        self.topic = topic
        self._water_valve_relay = water_valve_relay
        self._drawing_relay = drawing_relay
        self._shelf = shelf_light
        self._backlight = backlight
        self._main = main_light
        self._automation = light_automation

    def consume(self, payload: Union[str, bytes]) -> None:
        log.debug("handle command")
        try:
            command = Command.from_json(payload)
        except ValueError as exc:
            log.error("cannot decode command: %s", exc)
            return

        if command.water_close_relay is not None:
            self._water_valve_relay.activate(command.water_close_relay)
        if command.drawing_relay is not None:
            self._drawing_relay.activate(command.drawing_relay)
        if command.shelf_color is not None:
            self._shelf.set_color(command.shelf_color)
        if command.shelf_brightness is not None:
            self._shelf.set_brightness(command.shelf_brightness)
        if command.main_light_brightness is not None:
            self._main.set_brightness(command.main_light_brightness)
        if command.main_light_color_temp is not None:
            kelvin = min(max(command.main_light_color_temp, COLOR_TEMP_MIN), COLOR_TEMP_MAX)
            self._main.set_color_temperature(kelvin)
        if command.light_night_mode is not None:
            self._automation.change_night_mode_state(command.light_night_mode)
        if command.backlight_brightness is not None:
            self._backlight.set_brightness(command.backlight_brightness)
        if command.backlight_color is not None:
            self._backlight.set_color(command.backlight_color)


class SwitchCommandConsumer:
    """Switches one light on for an "ON" payload and off for anything else."""

    def __init__(self, light: "Light", topic: str = "") -> None:
        self.topic = topic
        self._light = light

    def consume(self, payload: Union[str, bytes]) -> None:
        log.debug("handle switch command")
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        self._light.set_enabled(payload == "ON")