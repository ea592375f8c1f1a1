import pytest

from navier.config import LightConfig
from navier.discovery import Device, DiscoveryManager
from navier.led import BLACK, Color, FXEngine, LedStrip
from navier.lights import Light
from navier.shelf import ShelfLight

GREEN = Color(0, 255, 0)


class Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


class FakeStore:
    def __init__(self):
        self.stores = 0

    def store(self):
        self.stores += 1


class Rig:
    def __init__(self):
        self.clock = Clock()
        self.strip = LedStrip(count=10)
        self.engine = FXEngine(self.strip, clock=self.clock)
        self.store = FakeStore()
        self.discovery = DiscoveryManager(chip_id="chip01")
        self.shelf = ShelfLight(
            self.store, self.discovery, self.strip, self.engine, clock=self.clock
        )
        self.events = []
        self.shelf.on_change_state(lambda *event: self.events.append(event))

    def init(self, config):
        self.config = config
        self.shelf.init(
            config,
            Device(),
            "Shelf light",
            "shelf",
            "navier/chip01/state",
            "navier/chip01/set",
            "navier/chip01/shelf/switch",
        )

    def run(self, frames=200):
        for _ in range(frames):
            self.clock.now += 41
            self.engine.loop()


@pytest.fixture
def rig():
    return Rig()


def test_init_restores_enabled_config(rig):
    rig.init(LightConfig(enabled=True, brightness=200, color=GREEN.to_int()))
    assert rig.strip.brightness == 200
    assert list(rig.strip) == [GREEN] * 10
    assert rig.shelf.enabled is True
    assert rig.events == [(True, 200, GREEN)]


def test_init_disabled_leaves_strip_dark(rig):
    rig.init(LightConfig(enabled=False, brightness=200, color=GREEN.to_int()))
    assert list(rig.strip) == [BLACK] * 10
    assert rig.shelf.color == GREEN


def test_init_registers_discovery(rig):
    rig.init(LightConfig())
    (entity,) = rig.discovery.entities
    assert entity.unique_id == "shelf_light_navier_chip01"
    assert entity.options["state_value_template"] == "{{ value_json.shelfSwitchState }}"
    assert entity.options["rgb_command_template"] == '{"shelfColor": "{{ value }}" }'
    assert entity.options["brightness_command_template"] == '{"shelfBrightness": {{ value }} }'
    assert entity.options["command_topic"] == "navier/chip01/shelf/switch"


def test_turn_on_animates_to_color(rig):
    rig.init(LightConfig(enabled=False, brightness=200, color=GREEN.to_int()))
    rig.shelf.set_enabled(True)
    assert rig.engine.pending == 1
    assert rig.events[-1] == (True, 200, GREEN)
    rig.run()
    assert list(rig.strip) == [GREEN] * 10
    assert rig.strip.brightness == 200
    assert rig.engine.current is None


def test_turn_off_animates_to_black(rig):
    rig.init(LightConfig(enabled=True, brightness=200, color=GREEN.to_int()))
    rig.shelf.set_enabled(False)
    rig.run()
    assert list(rig.strip) == [BLACK] * 10
    assert rig.events[-1] == (False, 200, GREEN)


def test_repeated_state_is_ignored(rig):
    rig.init(LightConfig(enabled=True, brightness=200, color=GREEN.to_int()))
    count = len(rig.events)
    rig.shelf.set_enabled(True)
    rig.shelf.set_brightness(200)
    rig.shelf.set_color(GREEN)
    assert len(rig.events) == count
    assert rig.engine.pending == 0


def test_brightness_while_disabled_only_notifies(rig):
    rig.init(LightConfig(enabled=False, brightness=200, color=GREEN.to_int()))
    rig.shelf.set_brightness(50)
    assert rig.engine.pending == 0
    assert rig.events[-1] == (False, 50, GREEN)


def test_brightness_while_enabled_animates(rig):
    rig.init(LightConfig(enabled=True, brightness=200, color=GREEN.to_int()))
    rig.shelf.set_brightness(50)
    rig.run()
    assert rig.strip.brightness == 50


def test_brightness_out_of_range(rig):
    rig.init(LightConfig())
    with pytest.raises(ValueError):
        rig.shelf.set_brightness(256)


def test_color_change_while_enabled(rig):
    rig.init(LightConfig(enabled=True, brightness=200, color=GREEN.to_int()))
    blue = Color(0, 0, 255)
    rig.shelf.set_color(blue)
    rig.run()
    assert list(rig.strip) == [blue] * 10
    assert rig.events[-1] == (True, 200, blue)


def test_loop_persists_changes_after_a_minute(rig):
    config = LightConfig(enabled=False, brightness=200, color=GREEN.to_int())
    rig.init(config)
    blue = Color(0, 0, 255)
    rig.shelf.set_enabled(True)
    rig.shelf.set_color(blue)

    rig.clock.now = 59_000
    rig.shelf.loop()
    assert rig.store.stores == 0
    assert config.enabled is False

    rig.clock.now = 60_001
    rig.shelf.loop()
    assert rig.store.stores == 1
    assert config.enabled is True
    assert config.color == blue.to_int()

    rig.clock.now = 130_000
    rig.shelf.loop()
    assert rig.store.stores == 1


def test_loop_before_init_raises():
    clock = Clock()
    strip = LedStrip(count=10)
    engine = FXEngine(strip, clock=clock)
    shelf = ShelfLight(
        FakeStore(), DiscoveryManager(chip_id="chip01"), strip, engine, clock=clock
    )
    clock.now = 120_000
    with pytest.raises(RuntimeError):
        shelf.loop()


def test_shelf_is_a_light(rig):
    assert isinstance(rig.shelf, Light)
    rig.init(LightConfig(enabled=False, brightness=10, color=GREEN.to_int()))
    rig.shelf.set_enabled(True)
    assert rig.shelf.enabled is True