"""A GPIO-driven relay exposed as a Home Assistant switch."""

from __future__ import annotations

from typing import Callable, Optional

from .discovery import Device, DiscoveryManager, Entity

PinWriter = Callable[[int, bool], None]
ActivateCallback = Callable[[bool], None]


class Relay:
    """Switches an output pin, optionally with inverted logic."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        write_pin: Optional[PinWriter] = None,
    ) -> None:
        self._discovery = discovery
        self._write_pin = write_pin
        self._callbacks: list[ActivateCallback] = []
        self._activated = False
        self.pin: Optional[int] = None
        self.reverse = False
        self.level: Optional[bool] = None
        self.entity: Optional[Entity] = None

    @property
    def activated(self) -> bool:
        return self._activated

    def _write(self, high: bool) -> None:
        self.level = high
        if self._write_pin is not None:
            self._write_pin(self.pin, high)

    def init(
        self,
        device: Device,
        name: str,
        object_id: str,
        pin: int,
        reverse: bool,
        state_topic: str,
        command_topic: str,
    ) -> None:
        self.pin = pin
        self.reverse = reverse
        self._write(reverse)
        self.entity = self._discovery.add(
            "switch",
            name,
            object_id,
            f"{object_id}_relay_navier_{self._discovery.chip_id}",
            device=device,
            command_template=f'{{"{object_id}Relay": {{{{ value }}}} }}',
            command_topic=command_topic,
            state_topic=state_topic,
            value_template=f"{{{{ value_json.{object_id}Relay }}}}",
            payload_on="true",
            payload_off="false",
            state_on="true",
            state_off="false",
        )

    def activate(self, on: bool) -> None:
        """Switch the relay and notify listeners."""
        if self.pin is None:
            raise RuntimeError("relay used before init")
        self._write(on != self.reverse)
        self._activated = on
        for callback in self._callbacks:
            callback(on)

    def on_activate(self, callback: ActivateCallback) -> None:
        self._callbacks.append(callback)