"""Ventilation, leak protection and lighting automations."""

from __future__ import annotations

from typing import Callable, Protocol

from .config import millis
from .discovery import Device, DiscoveryManager, Entity
from .led import WHITE, Color
from .relay import Relay
from .state import StateManager

DRAWING_CHECK_INTERVAL_MS = 1_000
DRAWING_DELAY_CHECKS = 10
AIR_QUALITY_HIGH = 400
AIR_QUALITY_LOW = 200
HUMIDITY_HIGH = 80.0
HUMIDITY_LOW = 60.0

WATER_CHECK_INTERVAL_MS = 1_000
WATER_MAX_FAILS = 10

LIGHT_CHECK_INTERVAL_MS = 500
LIGHT_OFF_DELAY_MS = 30_000
MANUAL_MODE_TIMEOUT_MS = 600_000

NIGHT_COLOR = Color.from_int(0xFF0000)
NIGHT_SHELF_BRIGHTNESS = 26
NIGHT_BACKLIGHT_BRIGHTNESS = 10
DAY_SHELF_BRIGHTNESS = 255
DAY_BACKLIGHT_BRIGHTNESS = 100


class SwitchableLight(Protocol):
    def set_enabled(self, enabled: bool) -> None: ...


class ColorLight(Protocol):
    def set_enabled(self, enabled: bool) -> None: ...

    def set_color(self, color: Color) -> None: ...

    def set_brightness(self, brightness: int) -> None: ...


class DrawingAutomation:
    """Runs the extractor fan while the air is stale or humid."""

    def __init__(
        self,
        drawing_relay: Relay,
        state: StateManager,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._relay = drawing_relay
        self._state = state
        self._clock = clock
        self._last_check = 0
        self._activate_count = 0
        self._deactivate_count = 0

    def loop(self) -> None:
        if self._last_check + DRAWING_CHECK_INTERVAL_MS >= self._clock():
            return

        state = self._state.state
        active = self._relay.activated
        if not active and (
            state.air_quality >= AIR_QUALITY_HIGH or state.humidity >= HUMIDITY_HIGH
        ):
            self._activate_count += 1
            self._deactivate_count = 0
        elif active and (
            state.air_quality < AIR_QUALITY_LOW and state.humidity <= HUMIDITY_LOW
        ):
            self._activate_count = 0
            self._deactivate_count += 1

        if self._activate_count >= DRAWING_DELAY_CHECKS:
            self._relay.activate(True)
        elif self._deactivate_count >= DRAWING_DELAY_CHECKS:
            self._relay.activate(False)

        self._last_check = self._clock()


class WaterAutomation:
    """Closes the water valve when a leak persists."""

    def __init__(
        self,
        water_close_relay: Relay,
        state: StateManager,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._relay = water_close_relay
        self._state = state
        self._clock = clock
        self._last_check = 0
        self._fails = 0

    def loop(self) -> None:
        if self._last_check + WATER_CHECK_INTERVAL_MS >= self._clock():
            return

        state = self._state.state
        if state.water_leak_bathroom or state.water_leak_toilet or state.water_leak_kitchen:
            self._fails = (self._fails + 1) & 0xFF
        else:
            self._fails = 0

        if self._fails > WATER_MAX_FAILS:
            self._relay.activate(True)

        self._last_check = self._clock()


class LightAutomation:
    """Switches the lights on door or motion, with manual override and night mode."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        shelf: ColorLight,
        backlight: ColorLight,
        main: SwitchableLight,
        state: StateManager,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._discovery = discovery
        self._shelf = shelf
        self._backlight = backlight
        self._main = main
        self._state = state
        self._clock = clock
        self._last_check = 0
        self._last_trigger = 0
        self._last_manual = 0
        self._enabled = False
        self._night_mode = False
        self._manual = False
        self.entity: Entity | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def night_mode(self) -> bool:
        return self._night_mode

    @property
    def manual(self) -> bool:
        return self._manual

    def init(self, device: Device, state_topic: str, command_topic: str) -> None:
        self.entity = self._discovery.add(
            "switch",
            "Light night mode",
            "lightNightMode",
            f"light_night_mode_navier_{self._discovery.chip_id}",
            device=device,
            command_template='{"lightNightMode": {{ value }} }',
            command_topic=command_topic,
            state_topic=state_topic,
            value_template="{{ value_json.lightNightMode }}",
            payload_on="true",
            payload_off="false",
            state_on="true",
            state_off="false",
        )

    def change_state(self, enabled: bool) -> None:
        """Switch the lights by hand, pausing the automation."""
        if self._enabled == enabled:
            return
        self._change(enabled, manual=True)

    def _change(self, enabled: bool, manual: bool) -> None:
        self._manual = manual
        if manual:
            self._last_manual = self._clock()

        if enabled:
            if not self._night_mode:
                self._main.set_enabled(True)
            self._shelf.set_enabled(True)
            self._backlight.set_enabled(True)
        else:
            self._main.set_enabled(False)
            self._shelf.set_enabled(False)
            self._backlight.set_enabled(False)

        self._enabled = enabled

    def change_night_mode_state(self, enabled: bool) -> None:
        """Dim to red with the main light off, or restore daytime white."""
        if enabled:
            self._shelf.set_color(NIGHT_COLOR)
            self._shelf.set_brightness(NIGHT_SHELF_BRIGHTNESS)
            self._backlight.set_color(NIGHT_COLOR)
            self._backlight.set_brightness(NIGHT_BACKLIGHT_BRIGHTNESS)
            self._main.set_enabled(False)
        else:
            self._shelf.set_color(WHITE)
            self._shelf.set_brightness(DAY_SHELF_BRIGHTNESS)
            self._backlight.set_color(WHITE)
            self._backlight.set_brightness(DAY_BACKLIGHT_BRIGHTNESS)
            if self._enabled:
                self._main.set_enabled(True)

        self._night_mode = enabled
        self._state.update(light_night_mode=enabled)

    def loop(self) -> None:
        if self._last_check + LIGHT_CHECK_INTERVAL_MS < self._clock() and not self._manual:
            state = self._state.state
            if state.toilet_door_open or state.motion_detected:
                self._change(True, manual=False)
                self._last_trigger = self._clock()
            elif self._last_trigger + LIGHT_OFF_DELAY_MS < self._clock():
                self._change(False, manual=False)
            self._last_check = self._clock()

        if self._manual and self._last_manual + MANUAL_MODE_TIMEOUT_MS < self._clock():
            self._manual = False
            self._last_manual = 0