"""RGBW backlight driven by a Wiren Board dimmer."""

from __future__ import annotations

import math
from typing import Optional

from .animations import _rainbow
from .discovery import Device, DiscoveryManager, Entity
from .led import BLACK, WHITE, Color
from .lights import DimmerLed, LedBus, LedMode, Light, _check_byte, _map_range
from .state import StateManager

WHITE_CHANNEL = 4

_HUE_RED = 0
_HUE_ORANGE = 32
_HUE_YELLOW = 64
_HUE_GREEN = 96
_HUE_AQUA = 128
_HUE_BLUE = 160
_HUE_PURPLE = 192
_HUE_PINK = 224


def _qadd8(a: int, b: int) -> int:
    return min(a + b, 255)


def _qsub8(a: int, b: int) -> int:
    return max(a - b, 0)


def _scale8(value: int, scale: int) -> int:
    return (value * (1 + scale)) >> 8


def _scale8_video(value: int, scale: int) -> int:
    return ((value * scale) >> 8) + (1 if value and scale else 0)


def _rgb_to_hsv_approximate(color: Color) -> tuple[int, int, int]:
    """Approximate 0-255 hue, saturation and value on the rainbow hue wheel."""
    r, g, b = color
    desat = min(r, g, b)
    r, g, b = r - desat, g - desat, b - desat

    s = 255 - desat
    if s != 255:
        s = 255 - math.isqrt(desat * 256)

    if r + g + b == 0:
        return 0, 0, 255 - s

    if s < 255:
        s = max(s, 1)
        scaleup = 65535 // s
        r, g, b = (((c * scaleup) // 256) & 0xFF for c in (r, g, b))

    total = r + g + b
    if total < 255:
        scaleup = 65535 // max(total, 1)
        r, g, b = (((c * scaleup) // 256) & 0xFF for c in (r, g, b))

    if total > 255:
        v = 255
    else:
        v = _qadd8(desat, total)
        if v != 255:
            v = math.isqrt(v * 256)

    highest = max(r, g, b)
    if highest == r:
        if g == 0:
            h = (_HUE_PURPLE + _HUE_PINK) // 2 + _scale8(_qsub8(r, 128), 96)
        elif r - g > g:
            h = _HUE_RED + _scale8(g, 96)
        else:
            h = _HUE_ORANGE + _scale8(_qsub8(((g - 85) + (171 - r)) & 0xFF, 4), 96)
    elif highest == g:
        if b == 0:
            red_adjust = _scale8(_qsub8(171, r), 47)
            green_adjust = _scale8(_qsub8(g, 171), 96)
            h = _HUE_YELLOW + ((red_adjust + green_adjust) & 0xFF) // 2
        elif g - b > b:
            h = _HUE_GREEN + _scale8(b, 96)
        else:
            h = _HUE_AQUA + _scale8(_qsub8(b, 85), 48)
    elif r == 0:
        h = _HUE_AQUA + (_HUE_BLUE - _HUE_AQUA) // 4 + _scale8(_qsub8(b, 128), 48)
    elif b - r > r:
        h = _HUE_BLUE + _scale8(r, 96)
    else:
        h = _HUE_PURPLE + _scale8(_qsub8(r, 85), 96)

    return (h + 1) & 0xFF, s, v


def _saturated_rainbow(hue: int, value: int) -> Color:
    """Fully saturated rainbow colour at the given 0-255 value."""
    color = _rainbow(hue)
    if value == 255:
        return color
    value = _scale8_video(value, value)
    if value == 0:
        return BLACK
    return Color(*((_scale8(c, value) + 1) if c else 0 for c in color))


def rgb_to_rgbw(color: Color, brightness: int) -> tuple[Color, int]:
    """Split a colour at a 0-100 brightness into a saturated RGB part and a 0-100 white level."""
    level = _map_range(max(0, min(brightness, 100)), 0, 100, 0, 255)
    hue, sat, val = _rgb_to_hsv_approximate(color.scale_video(level))

    saturation = sat / 255.0
    value = val / 255.0
    white = int(value * (1.0 - saturation) * 100.0 + 0.5)
    rgb = _saturated_rainbow(hue, int(value * saturation * 255.0 + 0.5))
    return rgb, white


class Backlight(Light):
    """Colour backlight whose white part goes to a dedicated channel."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        state: StateManager,
        modbus: LedBus,
    ) -> None:
        self._discovery = discovery
        self._state = state
        self._modbus = modbus
        self._led: Optional[DimmerLed] = None
        self._enabled = False
        self._brightness = 100
        self._color = WHITE
        self.entity: Optional[Entity] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def brightness(self) -> int:
        return self._brightness

    @property
    def color(self) -> Color:
        return self._color

    def init(
        self,
        device: Device,
        state_topic: str,
        command_topic: str,
        switch_command_topic: str,
        address: int,
    ) -> None:
        led = self._modbus.add_led(address)
        led.set_mode(LedMode.RGBW)
        self._led = led

        self.entity = self._discovery.add(
            "light",
            "Backlight",
            "backlight",
            f"backlight_navier_{self._discovery.chip_id}",
            device=device,
            command_topic=switch_command_topic,
            state_topic=state_topic,
            state_value_template="{{ value_json.backlightSwitchState }}",
            payload_on="ON",
            payload_off="OFF",
            brightness_command_topic=command_topic,
            brightness_command_template='{"backlightBrightness": {{ value }} }',
            brightness_state_topic=state_topic,
            brightness_value_template="{{ value_json.backlightBrightness }}",
            brightness_scale=100,
            rgb_command_topic=command_topic,
            rgb_command_template='{"backlightColor": "{{ value }}" }',
            rgb_state_topic=state_topic,
            rgb_value_template="{{ value_json.backlightColor }}",
        )

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        self._update()
        self._state.update(backlight_switch_state=enabled)

    def set_brightness(self, brightness: int) -> None:
        _check_byte("brightness", brightness)
        self._brightness = brightness
        self._update()
        self._state.update(backlight_brightness=brightness)

    def set_color(self, color: Color) -> None:
        self._color = color
        self._update()
        self._state.update(backlight_color=color)

    def _update(self) -> None:
        if self._led is None:
            raise RuntimeError("backlight used before init")
        led = self._led
        if self._enabled:
            rgb, white = rgb_to_rgbw(self._color, self._brightness)
            led.set_channel_brightness(WHITE_CHANNEL, white)
            led.enable_channel(WHITE_CHANNEL, True)
            led.set_rgb_color(rgb.to_int())
            led.enable_rgb(True)
        else:
            led.enable_rgb(False)
            led.enable_channel(WHITE_CHANNEL, False)