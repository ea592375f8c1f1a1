# navier

`navier` is the control logic of a bathroom and toilet room controller. It
watches the room's sensors, drives relays and lights, counts water meter
pulses, and talks to Home Assistant over MQTT. It has no dependencies outside
the standard library.

## What it does

- **Water meter**: counts pulses from a water meter at 10 litres per pulse.
  The input is debounced: a change must be seen on two checks in a row, and
  checks run every 250 ms. The count is kept in a wear-levelled ring of 100
  slots in an `Eeprom`, so it survives a restart. The total is reported in
  cubic metres.
- **Leak protection**: if any leak sensor (toilet, bathroom or kitchen) stays
  wet for more than ten one-second checks in a row, the water valve relay
  closes.
- **Ventilation**: the drawing fan relay switches on when air quality reaches
  400 ppb or humidity reaches 80 %. It switches off once air quality is below
  200 ppb and humidity is at or below 60 %. Each condition must hold for ten
  one-second checks.
- **Lighting**: there are three lights. The main light has a colour
  temperature that commands clamp to 2700–6000 K. The backlight is RGBW. The
  shelf is an addressable LED strip with animated on/off, colour and
  brightness changes. The lights come on when the door opens or motion is
  seen, and go off 30 seconds after the last trigger. A short press of the
  wall switch toggles the lights and pauses the automation for ten minutes.
  Night mode turns the shelf and backlight dim red and keeps the main light
  off.
- **MQTT**: the whole room state is published as one JSON document when it
  changes, once temperature, humidity and air quality have all been read.
  The controller accepts JSON commands on the command topic and `ON`/anything
  else switch commands on one topic per light. Every entity is announced
  through Home Assistant MQTT discovery each time the client connects.
- **Network**: the controller starts on Ethernet, falls back to Wi-Fi (or to
  an access point when the configuration says so) after 30 failed
  half-second checks, and from Wi-Fi falls back to an access point.

## Modules

| Module | Contents |
| --- | --- |
| `navier.config` | `Config`, `LightConfig`, `default_config`, `millis`, hardware constants |
| `navier.led` | `Color`, `LedStrip`, `Animation`, `FXEngine` |
| `navier.animations` | `TurnOn`, `TurnOff`, `ChangeColor`, `ChangeBrightness`, `Chase` |
| `navier.state` | `State`, `StateProducer`, `StateManager` |
| `navier.storage` | `Eeprom`, `RingStorage` |
| `navier.discovery` | `Device`, `Entity`, `DiscoveryManager` |
| `navier.meter` | `Meter`, `to_cubic_meters`, `from_cubic_meters` |
| `navier.relay` | `Relay` |
| `navier.lights` | `Light`, `MainLight`, `LedMode` |
| `navier.backlight` | `Backlight`, `rgb_to_rgbw` |
| `navier.shelf` | `ShelfLight` |
| `navier.sensors` | `KalmanFilter`, `BinarySensor`, `ComplexSensor` |
| `navier.automation` | `DrawingAutomation`, `WaterAutomation`, `LightAutomation` |
| `navier.commands` | `Command`, `CommandConsumer`, `SwitchCommandConsumer` |
| `navier.network` | `Mode`, `NetworkManager` |
| `navier.controller` | `Controller`, which wires everything together |

## Examples

Build the default configuration for a device:

```python
from navier.config import default_config

config = default_config("a1b2c3", "00:00:5E:00:53:01")
config.mqtt_state_topic  # "navier/a1b2c3/state"
```

This sets the MQTT state, command and switch topics under
`navier/<chip id>/`, the discovery prefix `homeassistant`, the access point
name `Navier_<mac address>`, a Modbus speed of 9600, and the default Modbus
addresses of the sensor, input and LED modules.

Convert between meter pulses and cubic metres:

```python
from navier.meter import to_cubic_meters, from_cubic_meters

to_cubic_meters(150)    # 1.5
from_cubic_meters(1.5)  # 150
```

Work with colours:

```python
from navier.led import Color

red = Color.from_int(0xFF0000)
red.to_int()  # 16711680 (0xFF0000)
```

Decode a command as it arrives on the command topic. Keys that are absent
come back as `None`; a payload that is not a JSON object raises `ValueError`:

```python
from navier.commands import Command

command = Command.from_json('{"drawingRelay": true, "shelfColor": "255,0,0"}')
command.drawing_relay  # True
command.shelf_color    # Color(r=255, g=0, b=0)
```

Keep the meter count in a file:

```python
from navier.storage import Eeprom, RingStorage

storage = RingStorage(Eeprom(path="eeprom.bin"))
storage.load()
storage.write_value(storage.current_value + 1, locked=False)
```

## Running a controller

`Controller` builds every component. It is given the hardware through three
interfaces:

- an MQTT client with `connect()`, `is_connected()`,
  `publish(topic, payload, retain)` and `subscribe(topic, handler)`;
- a Modbus line with `add_led(address)`, `add_mcm8(address)` and
  `add_msw(address)`, returning the dimmer, input module and multi-sensor
  objects described in `navier.lights` and `navier.sensors`;
- a network interface with `start_ethernet()`, `start_wifi(ssid, password)`
  and `start_access_point(ssid, password)`.

It also takes the keyword arguments `chip_id` and `mac_address`, and
optionally a `config`, a `config_store` with a `store()` method, an
`eeprom`, a meter pin reader and a relay pin writer. Link events are passed
in with `controller.network.handle_event(...)`, using the event names in
`navier.network` (`"eth_got_ip"`, `"wifi_disconnected"` and so on).

Call `setup()` once, then `loop()` repeatedly. Every component checks the
millisecond clock and only does its work when its interval has passed.

## What it does not do

- It has no MQTT client, Modbus driver, GPIO access or network stack of its
  own. These come in through the interfaces above.
- It has no web page or HTTP API for changing the configuration or setting
  the meter reading.
- Without a `config_store`, shelf light changes are kept in memory only.
  Without an `Eeprom` path, the meter count is kept in memory only.
- It has no command-line program.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.