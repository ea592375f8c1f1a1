import pytest

from navier.automation import DrawingAutomation, LightAutomation, WaterAutomation
from navier.discovery import Device, DiscoveryManager
from navier.led import WHITE, Color
from navier.relay import Relay
from navier.state import StateManager, StateProducer


class Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


class Mqtt:
    def is_connected(self):
        return False

    def publish(self, topic, payload, retain):
        return True


class FakeLight:
    def __init__(self):
        self.enabled = False
        self.color = None
        self.brightness = None
        self.calls = []

    def set_enabled(self, enabled):
        self.enabled = enabled
        self.calls.append(("enabled", enabled))

    def set_color(self, color):
        self.color = color
        self.calls.append(("color", color))

    def set_brightness(self, brightness):
        self.brightness = brightness
        self.calls.append(("brightness", brightness))


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def state(clock):
    return StateManager(StateProducer(Mqtt()), clock=clock)


def make_relay():
    relay = Relay(DiscoveryManager(chip_id="abc123"))
    relay.init(Device(), "Relay", "relay", 15, False, "state", "set")
    return relay


def run(automation, clock, times, step=1001):
    for _ in range(times):
        clock.now += step
        automation.loop()


def test_drawing_activates_after_ten_checks(clock, state):
    relay = make_relay()
    automation = DrawingAutomation(relay, state, clock=clock)
    state.update(air_quality=400)
    run(automation, clock, 9)
    assert relay.activated is False
    run(automation, clock, 1)
    assert relay.activated is True


def test_drawing_activates_on_humidity(clock, state):
    relay = make_relay()
    automation = DrawingAutomation(relay, state, clock=clock)
    state.update(humidity=80.0)
    run(automation, clock, 10)
    assert relay.activated is True


def test_drawing_deactivates_when_air_clears(clock, state):
    relay = make_relay()
    automation = DrawingAutomation(relay, state, clock=clock)
    state.update(air_quality=400)
    run(automation, clock, 10)
    state.update(air_quality=100, humidity=50.0)
    run(automation, clock, 9)
    assert relay.activated is True
    run(automation, clock, 1)
    assert relay.activated is False


def test_drawing_respects_interval(clock, state):
    relay = make_relay()
    automation = DrawingAutomation(relay, state, clock=clock)
    state.update(air_quality=400)
    for _ in range(20):
        automation.loop()
    assert relay.activated is False


def test_water_closes_after_persistent_leak(clock, state):
    relay = make_relay()
    automation = WaterAutomation(relay, state, clock=clock)
    state.update(water_leak_kitchen=True)
    run(automation, clock, 10)
    assert relay.activated is False
    run(automation, clock, 1)
    assert relay.activated is True


def test_water_leak_interruption_resets_count(clock, state):
    relay = make_relay()
    automation = WaterAutomation(relay, state, clock=clock)
    state.update(water_leak_toilet=True)
    run(automation, clock, 10)
    state.update(water_leak_toilet=False)
    run(automation, clock, 1)
    state.update(water_leak_toilet=True)
    run(automation, clock, 10)
    assert relay.activated is False


@pytest.fixture
def lights(clock, state):
    shelf, backlight, main = FakeLight(), FakeLight(), FakeLight()
    discovery = DiscoveryManager(chip_id="abc123")
    automation = LightAutomation(discovery, shelf, backlight, main, state, clock=clock)
    return automation, shelf, backlight, main, discovery


def test_light_init_registers_switch(lights):
    automation, _, _, _, discovery = lights
    automation.init(Device(), "navier/abc123/state", "navier/abc123/set")
    entity = discovery.entities[0]
    assert entity.component == "switch"
    assert entity.unique_id == "light_night_mode_navier_abc123"
    assert entity.options["command_template"] == '{"lightNightMode": {{ value }} }'


def test_light_follows_door_and_turns_off_later(clock, state, lights):
    automation, shelf, backlight, main, _ = lights
    state.update(toilet_door_open=True)
    clock.now = 501
    automation.loop()
    assert automation.enabled is True
    assert (shelf.enabled, backlight.enabled, main.enabled) == (True, True, True)
    assert automation.manual is False

    state.update(toilet_door_open=False)
    clock.now = 20000
    automation.loop()
    assert automation.enabled is True

    clock.now = 30502
    automation.loop()
    assert automation.enabled is False
    assert (shelf.enabled, backlight.enabled, main.enabled) == (False, False, False)


def test_light_motion_triggers(clock, state, lights):
    automation, shelf, _, _, _ = lights
    state.update(motion_detected=True)
    clock.now = 501
    automation.loop()
    assert shelf.enabled is True


def test_manual_change_overrides_automation_until_timeout(clock, state, lights):
    automation, _, _, main, _ = lights
    clock.now = 1000
    automation.change_state(True)
    assert automation.manual is True
    assert main.enabled is True

    clock.now = 40000
    automation.loop()
    assert automation.enabled is True

    clock.now = 1000 + 600001
    automation.loop()
    assert automation.manual is False
    assert automation.enabled is True

    clock.now += 501
    automation.loop()
    assert automation.enabled is False


def test_change_state_to_same_value_does_nothing(lights):
    automation, shelf, backlight, main, _ = lights
    automation.change_state(False)
    assert automation.manual is False
    assert main.calls == [] and shelf.calls == [] and backlight.calls == []


def test_night_mode(state, lights):
    automation, shelf, backlight, main, _ = lights
    automation.change_night_mode_state(True)
    assert shelf.color == Color(255, 0, 0)
    assert shelf.brightness == 26
    assert backlight.color == Color(255, 0, 0)
    assert backlight.brightness == 10
    assert main.enabled is False
    assert state.state.light_night_mode is True
    assert automation.night_mode is True

    automation.change_state(True)
    assert main.enabled is False
    assert shelf.enabled is True

    automation.change_night_mode_state(False)
    assert main.enabled is True
    assert shelf.color == WHITE
    assert shelf.brightness == 255
    assert backlight.brightness == 100
    assert state.state.light_night_mode is False


def test_leaving_night_mode_while_off_keeps_main_off(lights):
    automation, _, _, main, _ = lights
    automation.change_night_mode_state(True)
    automation.change_night_mode_state(False)
    assert main.enabled is False
    assert ("enabled", True) not in main.calls