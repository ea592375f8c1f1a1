"""Wires the controller's devices, automations and MQTT together."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from .automation import DrawingAutomation, LightAutomation, WaterAutomation
from .backlight import Backlight
from .commands import CommandConsumer, SwitchCommandConsumer
from .config import RELAY_DRAWING, RELAY_WATER_VALVE, Config, default_config, millis
from .discovery import DiscoveryManager
from .led import FXEngine, LedStrip
from .lights import LedBus, MainLight
from .meter import Meter
from .network import NetworkInterface, NetworkManager
from .relay import PinWriter, Relay
from .sensors import BinarySensor, ComplexSensor, SensorBus
from .shelf import ConfigStore, ShelfLight
from .state import StateManager
from .storage import Eeprom, RingStorage

log = logging.getLogger(__name__)

LED_COUNT = 135


class MqttClient(Protocol):
    """The MQTT connection used for commands, state and discovery."""

    def connect(self) -> None: ...

    def is_connected(self) -> bool: ...

    def publish(self, topic: str, payload: str, retain: bool) -> bool: ...

    def subscribe(self, topic: str, handler: Callable[[str], None]) -> None: ...


class ModbusBus(LedBus, SensorBus, Protocol):
    """The RS-485 line carrying the dimmers and sensor modules."""


class _NullConfigStore:
    def store(self) -> None:
        log.debug("configuration kept in memory only")


class _StatePublisher:
    def __init__(self, mqtt: MqttClient, topic: str) -> None:
        self._mqtt = mqtt
        self._topic = topic

    def publish(self, state) -> None:
        if not self._mqtt.is_connected():
            return
        self._mqtt.publish(self._topic, state.to_json(), False)


def _meter_idle() -> bool:
    return True


class Controller:
    """The whole controller: call setup() once, then loop() continuously."""

    def __init__(
        self,
        mqtt: MqttClient,
        modbus: ModbusBus,
        network_interface: NetworkInterface,
        *,
        chip_id: str,
        mac_address: str,
        config: Optional[Config] = None,
        config_store: Optional[ConfigStore] = None,
        eeprom: Optional[Eeprom] = None,
        read_meter_pin: Optional[Callable[[], bool]] = None,
        write_pin: Optional[PinWriter] = None,
        has_ethernet: bool = True,
        clock: Callable[[], int] = millis,
    ) -> None:
        self.config = config if config is not None else default_config(chip_id, mac_address)
        cfg = self.config
        self._mqtt = mqtt
        self._ready = False
        self._discovery_sent = False

        self.network = NetworkManager(cfg, has_ethernet, network_interface, clock)
        self.discovery = DiscoveryManager(
            cfg.mqtt_ha_discovery_prefix, cfg.mqtt_is_ha_discovery, chip_id
        )
        self.state = StateManager(_StatePublisher(mqtt, cfg.mqtt_state_topic))
        self.storage = RingStorage(eeprom if eeprom is not None else Eeprom())
        self.meter = Meter(
            self.discovery, self.storage, self.state, read_meter_pin or _meter_idle, clock=clock
        )

        self.water_relay = Relay(self.discovery, write_pin)
        self.drawing_relay = Relay(self.discovery, write_pin)

        self.led = LedStrip(LED_COUNT)
        self.fx = FXEngine(self.led)
        self.shelf = ShelfLight(
            config_store if config_store is not None else _NullConfigStore(),
            self.discovery,
            self.led,
            self.fx,
            clock=clock,
        )
        self.main_light = MainLight(self.discovery, self.state, modbus)
        self.backlight = Backlight(self.discovery, self.state, modbus)

        self.binary_sensor = BinarySensor(self.discovery, self.state, modbus, clock=clock)
        self.complex_sensor = ComplexSensor(self.discovery, self.state, modbus, clock=clock)

        self.drawing = DrawingAutomation(self.drawing_relay, self.state, clock=clock)
        self.water = WaterAutomation(self.water_relay, self.state, clock=clock)
        self.light_automation = LightAutomation(
            self.discovery, self.shelf, self.backlight, self.main_light, self.state, clock=clock
        )

        self.command_consumer = CommandConsumer(
            self.water_relay,
            self.drawing_relay,
            self.shelf,
            self.backlight,
            self.main_light,
            self.light_automation,
            topic=cfg.mqtt_command_topic,
        )
        self.switch_consumers = [
            SwitchCommandConsumer(self.shelf, topic=cfg.mqtt_shelf_switch_command_topic),
            SwitchCommandConsumer(self.backlight, topic=cfg.mqtt_backlight_switch_command_topic),
            SwitchCommandConsumer(self.main_light, topic=cfg.mqtt_main_light_switch_command_topic),
        ]

    def setup(self) -> None:
        """Bring up the network, register every entity and subscribe to commands."""
        log.info("setup start")
        cfg = self.config

        self.network.init()
        self.network.on_connect(self._on_network_change)
        self._mqtt.subscribe(self.command_consumer.topic, self.command_consumer.consume)

        device = self.discovery.device

        self.storage.load()
        self.meter.init(device, cfg.mqtt_state_topic)

        self.water_relay.init(
            device, "Water close", "waterClose", RELAY_WATER_VALVE, False,
            cfg.mqtt_state_topic, cfg.mqtt_command_topic,
        )
        self.water_relay.on_activate(lambda on: self.state.update(water_close_relay=on))

        self.drawing_relay.init(
            device, "Drawing", "drawing", RELAY_DRAWING, False,
            cfg.mqtt_state_topic, cfg.mqtt_command_topic,
        )
        self.drawing_relay.on_activate(lambda on: self.state.update(drawing_relay=on))

        self.shelf.on_change_state(
            lambda enabled, brightness, color: self.state.update(
                shelf_switch_state=enabled, shelf_brightness=brightness, shelf_color=color
            )
        )
        self.shelf.init(
            cfg.shelf_light, device, "Shelf light", "shelf",
            cfg.mqtt_state_topic, cfg.mqtt_command_topic, cfg.mqtt_shelf_switch_command_topic,
        )

        for consumer in self.switch_consumers:
            self._mqtt.subscribe(consumer.topic, consumer.consume)

        self.binary_sensor.init(device, cfg.mqtt_state_topic, cfg.address_wb_mcm8)
        self.binary_sensor.on_switch_short_press(
            lambda: self.light_automation.change_state(not self.light_automation.enabled)
        )
        self.complex_sensor.init(device, cfg.mqtt_state_topic, cfg.address_wb_msw)

        self.backlight.init(
            device, cfg.mqtt_state_topic, cfg.mqtt_command_topic,
            cfg.mqtt_backlight_switch_command_topic, cfg.address_wb_led2,
        )
        self.main_light.init(
            device, cfg.mqtt_state_topic, cfg.mqtt_command_topic,
            cfg.mqtt_main_light_switch_command_topic, cfg.address_wb_led1,
        )
        self.light_automation.init(device, cfg.mqtt_state_topic, cfg.mqtt_command_topic)

        self._ready = True
        log.info("setup complete")

    def loop(self) -> None:
        """Run one pass over every component."""
        if not self._ready:
            raise RuntimeError("controller loop run before setup")
        self.network.loop()
        self._publish_discovery()
        self.meter.loop()
        self.fx.loop()
        self.shelf.loop()
        self.binary_sensor.loop()
        self.complex_sensor.loop()
        self.state.loop()
        self.drawing.loop()
        self.water.loop()
        self.light_automation.loop()

    def _on_network_change(self, connected: bool) -> None:
        if connected:
            self._mqtt.connect()

    def _publish_discovery(self) -> None:
        if not self._mqtt.is_connected():
            self._discovery_sent = False
            return
        if self._discovery_sent:
            return
        for topic, payload in self.discovery.messages():
            self._mqtt.publish(topic, payload, True)
        self._discovery_sent = True