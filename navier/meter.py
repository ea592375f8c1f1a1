"""Pulse water meter with debouncing and persisted readings."""

from __future__ import annotations

from typing import Callable

from .config import millis
from .discovery import Device, DiscoveryManager
from .state import StateManager
from .storage import RingStorage

METER_CHECK_INTERVAL_MS = 250
LITRES_PER_PULSE = 10

PinReader = Callable[[], bool]


def to_cubic_meters(value: int) -> float:
    """Convert a pulse count to cubic metres."""
    return value * LITRES_PER_PULSE / 1000.0


def from_cubic_meters(value: float) -> int:
    """Convert cubic metres to a pulse count, truncating."""
    return int((value * 1000) / LITRES_PER_PULSE)


class Meter:
    """Counts meter pulses from a reed contact read every 250 ms."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        storage: RingStorage,
        state: StateManager,
        read_pin: PinReader,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._discovery = discovery
        self._storage = storage
        self._state = state
        self._read_pin = read_pin
        self._clock = clock
        self._locked = False
        self._pending_change = False
        self._pulses = 0
        self._last_check = 0

    @property
    def pulses(self) -> int:
        return self._pulses

    @property
    def current_value(self) -> float:
        """Total consumption in cubic metres."""
        return to_cubic_meters(self._pulses)

    def init(self, device: Device, state_topic: str) -> None:
        self._pulses = self._storage.current_value
        self._locked = self._storage.locked
        self._discovery.add(
            "sensor",
            "Water consumption",
            "water_consumption",
            f"water_consumption_sensor_navier_{self._discovery.chip_id}",
            device=device,
            state_topic=state_topic,
            value_template="{{ value_json.waterConsumption }}",
            unit_of_measurement="m³",
            state_class="total",
            device_class="water",
        )
        self._state.update(water_consumption=to_cubic_meters(self._pulses))

    def loop(self) -> None:
        now = self._clock()
        if self._last_check + METER_CHECK_INTERVAL_MS >= now:
            return

        high = self._read_pin()
        if not high and not self._locked:
            if not self._pending_change:
                self._pending_change = True
            else:
                self._pending_change = False
                self._locked = True
                self._pulses += 1
                self._storage.write_value(self._pulses, self._locked)
                self._state.update(water_consumption=to_cubic_meters(self._pulses))
        elif high and self._locked:
            if not self._pending_change:
                self._pending_change = True
            else:
                self._pending_change = False
                self._locked = False
                self._storage.write_value(self._pulses, self._locked)

        self._last_check = self._clock()

    def set_initial_value(self, value: float) -> None:
        """Restart the stored reading from a consumption in cubic metres."""
        if value < 0:
            raise ValueError(f"consumption cannot be negative: {value}")
        self._storage.clear()
        self._pulses = from_cubic_meters(value)
        self._storage.write_value(self._pulses, self._locked)