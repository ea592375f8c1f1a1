"""The light interface, the Wiren Board dimmer interface and the main ceiling light."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Protocol

from .discovery import Device, DiscoveryManager, Entity
from .state import StateManager

COLOR_TEMP_MIN = 2700
COLOR_TEMP_MAX = 6000


class LedMode(Enum):
    """Output modes of a Wiren Board LED dimmer."""

    CCTWW = "cct_ww"
    RGBW = "rgbw"


class DimmerLed(Protocol):
    """A Wiren Board LED dimmer reached over Modbus."""

    def set_mode(self, mode: LedMode) -> None: ...

    def enable_cct1(self, enabled: bool) -> None: ...

    def set_temperature_cct1(self, value: int) -> None: ...

    def set_brightness_cct1(self, value: int) -> None: ...

    def set_channel_brightness(self, channel: int, value: int) -> None: ...

    def enable_channel(self, channel: int, enabled: bool) -> None: ...

    def set_rgb_color(self, color: int) -> None: ...

    def enable_rgb(self, enabled: bool) -> None: ...


class LedBus(Protocol):
    """A Modbus line that dimmers can be attached to."""

    def add_led(self, address: int) -> DimmerLed: ...


def _map_range(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    """Rescale linearly with integer arithmetic, truncating toward zero."""
    numerator = (value - in_min) * (out_max - out_min)
    denominator = in_max - in_min
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        quotient = -quotient
    return quotient + out_min


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 255:
        raise ValueError(f"{name} out of range: {value}")


class Light(ABC):
    """Anything that can be switched on and off."""

    @abstractmethod
    def set_enabled(self, enabled: bool) -> None:
        """Switch the light on or off."""


class MainLight(Light):
    """Tunable-white ceiling light driven by a dimmer in CCT mode."""

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
        self.entity: Optional[Entity] = None

    def _dimmer(self) -> DimmerLed:
        if self._led is None:
            raise RuntimeError("main light used before init")
        return self._led

    def init(
        self,
        device: Device,
        state_topic: str,
        command_topic: str,
        switch_command_topic: str,
        address: int,
    ) -> None:
        led = self._modbus.add_led(address)
        led.set_mode(LedMode.CCTWW)
        led.enable_cct1(False)
        led.set_temperature_cct1(100)
        led.set_brightness_cct1(100)
        self._led = led

        self.entity = self._discovery.add(
            "light",
            "Main light",
            "main_light",
            f"main_light_navier_{self._discovery.chip_id}",
            device=device,
            command_topic=switch_command_topic,
            state_topic=state_topic,
            state_value_template="{{ value_json.mainLightSwitchState }}",
            payload_on="ON",
            payload_off="OFF",
            brightness_command_topic=command_topic,
            brightness_command_template='{"mainLightBrightness": {{ value }} }',
            brightness_state_topic=state_topic,
            brightness_value_template="{{ value_json.mainLightBrightness }}",
            color_temp_kelvin=True,
            color_temp_command_template='{"mainLightColorTemp": {{ value }} }',
            color_temp_command_topic=command_topic,
            color_temp_state_topic=state_topic,
            color_temp_value_template="{{ value_json.mainLightColorTemp }}",
        )

    def set_enabled(self, enabled: bool) -> None:
        self._dimmer().enable_cct1(enabled)
        self._state.update(main_light_switch_state=enabled)

    def set_brightness(self, brightness: int) -> None:
        _check_byte("brightness", brightness)
        self._dimmer().set_brightness_cct1(brightness)
        self._state.update(main_light_brightness=brightness)

    def set_color_temperature(self, kelvin: int) -> None:
        """Set the white tone; 2700 K maps to 0 and 6000 K to 100 on the dimmer."""
        dimmer = self._dimmer()
        dimmer.set_temperature_cct1(
            _map_range(kelvin, COLOR_TEMP_MIN, COLOR_TEMP_MAX, 0, 100)
        )
        self._state.update(main_light_color_temp=kelvin)