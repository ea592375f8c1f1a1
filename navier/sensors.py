"""Wiren Board input module and multi-sensor readers feeding the state."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from .config import (
    WB_MCM8_CHANNEL_LIGHT_SWITCH,
    WB_MCM8_CHANNEL_TOILET_DOOR,
    WB_MCM8_CHANNEL_TOILET_MANHOLE,
    WB_MCM8_CHANNEL_WATER_LEAK_BATHROOM,
    WB_MCM8_CHANNEL_WATER_LEAK_KITCHEN,
    WB_MCM8_CHANNEL_WATER_LEAK_TOILET,
    millis,
)
from .discovery import Device, DiscoveryManager
from .state import UNSET_READING, StateManager

BINARY_UPDATE_INTERVAL_MS = 200
CLIMATE_UPDATE_INTERVAL_MS = 10_000
AIR_QUALITY_UPDATE_INTERVAL_MS = 1_000
MOTION_UPDATE_INTERVAL_MS = 200

SWITCH_INPUT_MODE = 1
MOTION_THRESHOLD = 100

SwitchCallback = Callable[[], None]


class InputModule(Protocol):
    """A Wiren Board MCM8 discrete input module."""

    def set_input_mode(self, channel: int, mode: int) -> None: ...

    def get_input_state(self, channel: int) -> bool: ...

    def get_short_press_count(self, channel: int) -> int: ...


class MultiSensor(Protocol):
    """A Wiren Board MSW climate, air quality and motion sensor."""

    def temperature(self) -> float: ...

    def humidity(self) -> float: ...

    def air_quality(self) -> int: ...

    def motion(self) -> int: ...


class SensorBus(Protocol):
    """A Modbus line that sensor modules can be attached to."""

    def add_mcm8(self, address: int) -> InputModule: ...

    def add_msw(self, address: int) -> MultiSensor: ...


class KalmanFilter:
    """One-dimensional Kalman filter smoothing noisy readings."""

    def __init__(
        self,
        measurement_error: float = 50.0,
        process_noise: float = 0.7,
        estimate_error: Optional[float] = None,
    ) -> None:
        if measurement_error <= 0:
            raise ValueError(f"measurement error must be positive: {measurement_error}")
        self._err_measure = measurement_error
        self._err_estimate = measurement_error if estimate_error is None else estimate_error
        self._q = process_noise
        self._last = 0.0

    @property
    def estimate(self) -> float:
        return self._last

    def filtered(self, value: float) -> float:
        """Feed a reading and return the new estimate."""
        gain = self._err_estimate / (self._err_estimate + self._err_measure)
        current = self._last + gain * (value - self._last)
        self._err_estimate = (1.0 - gain) * self._err_estimate + abs(self._last - current) * self._q
        self._last = current
        return current


def _binary_sensor(
    discovery: DiscoveryManager,
    device: Device,
    state_topic: str,
    name: str,
    object_id: str,
    unique_prefix: str,
    key: str,
    device_class: str,
) -> None:
    discovery.add(
        "binary_sensor",
        name,
        object_id,
        f"{unique_prefix}_navier_{discovery.chip_id}",
        device=device,
        state_topic=state_topic,
        value_template=f"{{{{ value_json.{key} }}}}",
        payload_on="true",
        payload_off="false",
        device_class=device_class,
    )


class BinarySensor:
    """Water leak, door and manhole contacts plus the light wall switch."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        state: StateManager,
        modbus: SensorBus,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._discovery = discovery
        self._state = state
        self._modbus = modbus
        self._clock = clock
        self._module: Optional[InputModule] = None
        self._press_count = 0
        self._callbacks: list[SwitchCallback] = []
        self._last_update = 0

    def init(self, device: Device, state_topic: str, address: int) -> None:
        module = self._modbus.add_mcm8(address)
        module.set_input_mode(WB_MCM8_CHANNEL_LIGHT_SWITCH, SWITCH_INPUT_MODE)
        self._module = module

        entities = (
            ("Water leak toilet", "water_leak_toilet", "water_leak_toiler", "waterLeakToilet", "problem"),
            ("Water leak bathroom", "water_leak_bathroom", "water_leak_bathroom", "waterLeakBathroom", "problem"),
            ("Water leak kitchen", "water_leak_kitchen", "water_leak_kitchen", "waterLeakKitchen", "problem"),
            ("Toilet door", "toilet_door", "toilet_door", "toiletDoorOpen", "door"),
            ("Toilet manhole", "toilet_manhole", "toilet_manhole", "toiletManholeOpen", "window"),
        )
        for name, object_id, prefix, key, device_class in entities:
            _binary_sensor(
                self._discovery, device, state_topic, name, object_id, prefix, key, device_class
            )

        self._press_count = module.get_short_press_count(WB_MCM8_CHANNEL_LIGHT_SWITCH)

    def loop(self) -> None:
        if self._module is None:
            raise RuntimeError("binary sensor used before init")
        now = self._clock()
        if self._last_update + BINARY_UPDATE_INTERVAL_MS >= now:
            return

        module = self._module
        self._state.update(
            water_leak_toilet=module.get_input_state(WB_MCM8_CHANNEL_WATER_LEAK_TOILET),
            water_leak_bathroom=module.get_input_state(WB_MCM8_CHANNEL_WATER_LEAK_BATHROOM),
            water_leak_kitchen=module.get_input_state(WB_MCM8_CHANNEL_WATER_LEAK_KITCHEN),
            toilet_door_open=not module.get_input_state(WB_MCM8_CHANNEL_TOILET_DOOR),
            toilet_manhole_open=not module.get_input_state(WB_MCM8_CHANNEL_TOILET_MANHOLE),
        )

        count = module.get_short_press_count(WB_MCM8_CHANNEL_LIGHT_SWITCH)
        if count != self._press_count:
            for callback in self._callbacks:
                callback()
            self._press_count = count

        self._last_update = self._clock()

    def on_switch_short_press(self, callback: SwitchCallback) -> None:
        self._callbacks.append(callback)


class ComplexSensor:
    """Temperature, humidity, air quality and motion from one multi-sensor."""

    def __init__(
        self,
        discovery: DiscoveryManager,
        state: StateManager,
        modbus: SensorBus,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._discovery = discovery
        self._state = state
        self._modbus = modbus
        self._clock = clock
        self._sensor: Optional[MultiSensor] = None
        self._air_filter = KalmanFilter(50.0, 0.7)
        self._last_climate = 0
        self._last_air_quality = 0
        self._last_motion = 0

    def init(self, device: Device, state_topic: str, address: int) -> None:
        self._sensor = self._modbus.add_msw(address)
        chip_id = self._discovery.chip_id

        for name, object_id, prefix, key, unit, device_class in (
            ("Temperature", "temperature", "temperature", "temperature", "°C", "temperature"),
            ("Humidity", "humidity", "humidity", "humidity", "%", "humidity"),
            ("Air quality", "airQuality", "air_quality", "airQuality", "ppb", "aqi"),
        ):
            self._discovery.add(
                "sensor",
                name,
                object_id,
                f"{prefix}_navier_{chip_id}",
                device=device,
                state_topic=state_topic,
                value_template=f"{{{{ value_json.{key} }}}}",
                unit_of_measurement=unit,
                device_class=device_class,
            )

        _binary_sensor(
            self._discovery,
            device,
            state_topic,
            "Motion detected",
            "motion_detected",
            "motion_detected",
            "motionDetected",
            "motion",
        )

    def loop(self) -> None:
        if self._sensor is None:
            raise RuntimeError("complex sensor used before init")
        sensor = self._sensor

        if self._last_climate + CLIMATE_UPDATE_INTERVAL_MS < self._clock():
            temperature = sensor.temperature()
            if temperature != UNSET_READING:
                self._state.set_temperature(temperature)
            humidity = sensor.humidity()
            if humidity > 0.0:
                self._state.set_humidity(humidity)
            self._last_climate = self._clock()

        if self._last_air_quality + AIR_QUALITY_UPDATE_INTERVAL_MS < self._clock():
            raw = sensor.air_quality()
            if raw != 0:
                self._state.set_air_quality(int(self._air_filter.filtered(raw)))
            self._last_air_quality = self._clock()

        if self._last_motion + MOTION_UPDATE_INTERVAL_MS < self._clock():
            self._state.update(motion_detected=sensor.motion() > MOTION_THRESHOLD)
            self._last_motion = self._clock()