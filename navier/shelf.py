"""Addressable LED shelf light with animated transitions and persisted state."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from .animations import ChangeBrightness, ChangeColor, TurnOff, TurnOn
from .config import LightConfig, millis
from .discovery import Device, DiscoveryManager, Entity
from .led import FAIRY_LIGHT_NCC, Color, FXEngine, LedStrip
from .lights import Light, _check_byte

CONFIG_SAVE_INTERVAL_MS = 60_000

ChangeStateCallback = Callable[[bool, int, Color], None]


class ConfigStore(Protocol):
    """Something that persists the controller configuration."""

    def store(self) -> None: ...


class ShelfLight(Light):
    """Shelf strip whose on/off, brightness and colour changes are animated."""

    def __init__(
        self,
        config_store: ConfigStore,
        discovery: DiscoveryManager,
        led: LedStrip,
        fx_engine: FXEngine,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._config_store = config_store
        self._discovery = discovery
        self._led = led
        self._fx = fx_engine
        self._clock = clock
        self._enabled = False
        self._brightness = 0
        self._color = FAIRY_LIGHT_NCC
        self._callbacks: list[ChangeStateCallback] = []
        self._config: Optional[LightConfig] = None
        self._last_config_update = 0
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

    def _notify(self) -> None:
        for callback in self._callbacks:
            callback(self._enabled, self._brightness, self._color)

    def init(
        self,
        config: LightConfig,
        device: Device,
        name: str,
        object_id: str,
        state_topic: str,
        command_topic: str,
        switch_command_topic: str,
    ) -> None:
        self._config = config
        self._brightness = config.brightness
        self._led.brightness = self._brightness
        self._color = Color.from_int(config.color)
        self._enabled = config.enabled
        if self._enabled:
            self._led.fill(self._color)

        self._last_config_update = self._clock()
        self._notify()

        self.entity = self._discovery.add(
            "light",
            name,
            object_id,
            f"{object_id}_light_navier_{self._discovery.chip_id}",
            device=device,
            command_topic=switch_command_topic,
            state_topic=state_topic,
            state_value_template=f"{{{{ value_json.{object_id}SwitchState }}}}",
            payload_on="ON",
            payload_off="OFF",
            brightness_command_topic=command_topic,
            brightness_command_template=f'{{"{object_id}Brightness": {{{{ value }}}} }}',
            brightness_state_topic=state_topic,
            brightness_value_template=f"{{{{ value_json.{object_id}Brightness }}}}",
            rgb_command_topic=command_topic,
            rgb_command_template=f'{{"{object_id}Color": "{{{{ value }}}}" }}',
            rgb_state_topic=state_topic,
            rgb_value_template=f"{{{{ value_json.{object_id}Color }}}}",
        )

    def loop(self) -> None:
        """Write changed state back to the configuration once a minute."""
        if self._config is None:
            raise RuntimeError("shelf light used before init")
        now = self._clock()
        if self._last_config_update + CONFIG_SAVE_INTERVAL_MS >= now:
            return

        config = self._config
        color = self._color.to_int()
        changed = (
            config.enabled != self._enabled
            or config.brightness != self._brightness
            or config.color != color
        )
        if changed:
            config.enabled = self._enabled
            config.brightness = self._brightness
            config.color = color
            self._config_store.store()

        self._last_config_update = self._clock()

    def set_enabled(self, enabled: bool) -> None:
        if self._enabled == enabled:
            return
        self._enabled = enabled
        if enabled:
            self._fx.play(TurnOn(self._led, self._color))
            self._led.brightness = self._brightness
        else:
            self._fx.play(TurnOff(self._led, self._color))
        self._notify()

    def set_brightness(self, brightness: int) -> None:
        _check_byte("brightness", brightness)
        if self._brightness == brightness:
            return
        self._brightness = brightness
        if self._enabled:
            self._fx.play(ChangeBrightness(self._led, brightness))
        self._notify()

    def set_color(self, color: Color) -> None:
        if self._color == color:
            return
        previous = self._color
        self._color = color
        if self._enabled:
            self._fx.play(ChangeColor(self._led, previous, color))
        self._notify()

    def on_change_state(self, callback: ChangeStateCallback) -> None:
        self._callbacks.append(callback)