"""Controller configuration, hardware constants and the millisecond clock."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

CURRENT_VERSION = 1

# Sizes of the persisted text fields, terminating byte included.
WIFI_SSID_LEN = 32 + 1
WIFI_PWD_LEN = 64 + 1
HOST_LEN = 64
MQTT_DEFAULT_PORT = 1883
MQTT_LOGIN_LEN = 32
MQTT_PASSWORD_LEN = 32
MQTT_TOPIC_LEN = 64

SERIAL_SPEED = 115200

ETH_ADDR = 0
ETH_POWER_PIN = -1
ETH_MDC_PIN = 23
ETH_MDIO_PIN = 18

RELAY_WATER_VALVE = 2
RELAY_DRAWING = 15

METER_PIN = 36
LED_PIN = 33

RS485_RX = 35
RS485_TX = 32

EEPROM_SIZE = 2048

CONTROLLER_NAME = "Navier"

WB_MCM8_CHANNEL_WATER_LEAK_TOILET = 1
WB_MCM8_CHANNEL_WATER_LEAK_BATHROOM = 2
WB_MCM8_CHANNEL_WATER_LEAK_KITCHEN = 3
WB_MCM8_CHANNEL_TOILET_DOOR = 4
WB_MCM8_CHANNEL_TOILET_MANHOLE = 5
WB_MCM8_CHANNEL_LIGHT_SWITCH = 7

DEVICE_NAME = CONTROLLER_NAME
DEVICE_MODEL = "KC868-A2"
DEVICE_MANUFACTURER = "Kincony"
DEVICE_HW_VERSION = "1.1.0"
DEVICE_FW_VERSION = "0.2.0"

# Packed RGB value of the warm "fairy light" tone used as the shelf default.
FAIRY_LIGHT_NCC = 0xFF9D2A


@dataclass
class LightConfig:
    """Persisted state of the addressable shelf light."""

    enabled: bool = False
    brightness: int = 255
    color: int = FAIRY_LIGHT_NCC


@dataclass
class Config:
    """Persisted controller configuration."""

    version: int = CURRENT_VERSION

    is_ap_mode: bool = True
    wifi_ap_ssid: str = ""
    wifi_ap_has_password: bool = False
    wifi_ap_password: str = ""

    wifi_ssid: str = ""
    wifi_password: str = ""

    mqtt_host: str = ""
    mqtt_port: int = MQTT_DEFAULT_PORT
    mqtt_login: str = ""
    mqtt_password: str = ""

    mqtt_is_ha_discovery: bool = True
    mqtt_ha_discovery_prefix: str = ""
    mqtt_command_topic: str = ""
    mqtt_shelf_switch_command_topic: str = ""
    mqtt_backlight_switch_command_topic: str = ""
    mqtt_main_light_switch_command_topic: str = ""
    mqtt_state_topic: str = ""

    modbus_speed: int = 0
    address_wb_msw: int = 0
    address_wb_mcm8: int = 0
    address_wb_led1: int = 0
    address_wb_led2: int = 0

    shelf_light: LightConfig = field(default_factory=LightConfig)


def _fit(text: str, size: int) -> str:
    """Cut text to what a buffer of `size` bytes with a terminator holds."""
    return text[: size - 1]


def default_config(chip_id: str, mac_address: str) -> Config:
    """Build the factory configuration for a controller."""

    def topic(suffix: str) -> str:
        return _fit(f"navier/{chip_id}/{suffix}", MQTT_TOPIC_LEN)

    return Config(
        wifi_ap_ssid=_fit(f"Navier_{mac_address}", WIFI_SSID_LEN),
        mqtt_state_topic=topic("state"),
        mqtt_command_topic=topic("set"),
        mqtt_shelf_switch_command_topic=topic("shelf/switch"),
        mqtt_backlight_switch_command_topic=topic("backlight/switch"),
        mqtt_main_light_switch_command_topic=topic("main/switch"),
        mqtt_ha_discovery_prefix=_fit("homeassistant", MQTT_TOPIC_LEN),
        modbus_speed=9600,
        address_wb_msw=1,
        address_wb_mcm8=2,
        address_wb_led1=3,
        address_wb_led2=4,
    )


_EPOCH = time.monotonic()


def millis() -> int:
    """Milliseconds elapsed since the controller started."""
    return int((time.monotonic() - _EPOCH) * 1000)