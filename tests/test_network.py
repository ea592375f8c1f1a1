import pytest

from navier.config import Config
from navier.network import (
    ETH_DISCONNECTED,
    ETH_GOT_IP,
    WIFI_GOT_IP,
    Mode,
    NetworkManager,
)


class FakeClock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


class FakeInterface:
    def __init__(self):
        self.started = []

    def start_ethernet(self):
        self.started.append(("ethernet",))

    def start_wifi(self, ssid, password):
        self.started.append(("wifi", ssid, password))

    def start_access_point(self, ssid, password):
        self.started.append(("ap", ssid, password))


def make(config=None, has_ethernet=True):
    clock = FakeClock()
    interface = FakeInterface()
    manager = NetworkManager(config or Config(), has_ethernet, interface, clock)
    return manager, interface, clock


def run_checks(manager, clock, count):
    for _ in range(count):
        clock.now += 501
        manager.loop()


def test_init_prefers_ethernet():
    manager, interface, _ = make()
    manager.init()
    assert manager.mode is Mode.ETHERNET
    assert interface.started == [("ethernet",)]


def test_init_wifi_client():
    password = "password"
    config = Config(is_ap_mode=False, wifi_ssid="home", wifi_password=password)
    manager, interface, _ = make(config, has_ethernet=False)
    manager.init()
    assert manager.mode is Mode.WIFI
    assert interface.started == [("wifi", "home", "password")]


def test_init_access_point_without_password():
    config = Config(wifi_ap_ssid="Navier_test")
    manager, interface, _ = make(config, has_ethernet=False)
    manager.init()
    assert manager.mode is Mode.WIFI_AP
    assert interface.started == [("ap", "Navier_test", None)]


def test_access_point_with_password():
    password = "password"
    config = Config(wifi_ap_ssid="Navier_test", wifi_ap_has_password=True, wifi_ap_password=password)
    manager, interface, _ = make(config, has_ethernet=False)
    manager.init()
    assert interface.started == [("ap", "Navier_test", "password")]


def test_connect_callbacks_fire_on_change_only():
    manager, _, clock = make()
    manager.init()
    seen = []
    manager.on_connect(seen.append)
    manager.handle_event(ETH_GOT_IP)
    run_checks(manager, clock, 2)
    assert seen == [True]
    manager.handle_event(ETH_DISCONNECTED)
    run_checks(manager, clock, 1)
    assert seen == [True, False]
    assert manager.connected is False


def test_no_check_before_interval():
    manager, _, clock = make()
    manager.init()
    seen = []
    manager.on_connect(seen.append)
    manager.handle_event(WIFI_GOT_IP)
    clock.now = 500
    manager.loop()
    assert seen == []
    clock.now = 501
    manager.loop()
    assert seen == [True]


def test_unknown_event_is_ignored():
    manager, _, _ = make()
    manager.handle_event("something_else")
    assert manager.connected is False


def test_ethernet_falls_back_to_wifi():
    manager, interface, clock = make(Config(is_ap_mode=False, wifi_ssid="home"))
    manager.init()
    run_checks(manager, clock, 29)
    assert manager.mode is Mode.ETHERNET
    run_checks(manager, clock, 1)
    assert manager.mode is Mode.WIFI
    assert interface.started[-1][:2] == ("wifi", "home")


def test_ethernet_falls_back_to_access_point_in_ap_mode():
    manager, _, clock = make(Config(is_ap_mode=True))
    manager.init()
    run_checks(manager, clock, 30)
    assert manager.mode is Mode.WIFI_AP


def test_wifi_falls_back_to_access_point_and_stays():
    manager, interface, clock = make(Config(is_ap_mode=False), has_ethernet=False)
    manager.init()
    run_checks(manager, clock, 30)
    assert manager.mode is Mode.WIFI_AP
    started = len(interface.started)
    run_checks(manager, clock, 60)
    assert len(interface.started) == started
    assert manager.mode is Mode.WIFI_AP


def test_connected_link_never_falls_back():
    manager, interface, clock = make()
    manager.init()
    manager.handle_event(ETH_GOT_IP)
    run_checks(manager, clock, 40)
    assert manager.mode is Mode.ETHERNET
    assert interface.started == [("ethernet",)]