"""Network link selection with fallback from Ethernet to Wi-Fi to an access point."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from .config import Config, millis

log = logging.getLogger(__name__)

CHECK_INTERVAL_MS = 500
MAX_FAILED_CHECKS = 30

WIFI_GOT_IP = "wifi_got_ip"
WIFI_DISCONNECTED = "wifi_disconnected"
ETH_GOT_IP = "eth_got_ip"
ETH_DISCONNECTED = "eth_disconnected"

ConnectCallback = Callable[[bool], None]


class Mode(Enum):
    """Which link the controller is bringing up."""

    ETHERNET = "ethernet"
    WIFI = "wifi"
    WIFI_AP = "wifi_ap"


class NetworkInterface(Protocol):
    """The network hardware of the controller."""

    def start_ethernet(self) -> None: ...

    def start_wifi(self, ssid: str, password: str) -> None: ...

    def start_access_point(self, ssid: str, password: Optional[str]) -> None: ...


class NetworkManager:
    """Tracks link state and falls back to the next mode after repeated failures."""

    def __init__(
        self,
        config: Config,
        has_ethernet: bool,
        interface: NetworkInterface,
        clock: Callable[[], int] = millis,
    ) -> None:
        self._config = config
        self._has_ethernet = has_ethernet
        self._interface = interface
        self._clock = clock
        self._wifi_connected = False
        self._ethernet_connected = False
        self._previous_connected = False
        self._mode: Optional[Mode] = None
        self._last_check = 0
        self._failed_checks = 0
        self._callbacks: list[ConnectCallback] = []

    @property
    def connected(self) -> bool:
        return self._wifi_connected or self._ethernet_connected

    @property
    def mode(self) -> Optional[Mode]:
        return self._mode

    def init(self) -> None:
        log.info("network init start")
        if self._has_ethernet:
            self._run_ethernet()
        elif not self._config.is_ap_mode:
            self._run_wifi()
        else:
            self._run_access_point()
        log.info("network init complete")

    def handle_event(self, event: str) -> None:
        """Record a link event; events of no interest are ignored."""
        if event == WIFI_GOT_IP:
            self._wifi_connected = True
            log.info("wifi connected")
        elif event == WIFI_DISCONNECTED:
            self._wifi_connected = False
            log.info("wifi disconnected")
        elif event == ETH_GOT_IP:
            self._ethernet_connected = True
            log.info("ethernet connected")
        elif event == ETH_DISCONNECTED:
            self._ethernet_connected = False
            log.info("ethernet disconnected")

    def loop(self) -> None:
        if self._last_check + CHECK_INTERVAL_MS >= self._clock():
            return

        connected = self.connected
        if connected != self._previous_connected:
            for callback in self._callbacks:
                callback(connected)
            self._previous_connected = connected

        if not connected and self._mode is not Mode.WIFI_AP:
            self._failed_checks += 1
        else:
            self._failed_checks = 0

        if self._failed_checks >= MAX_FAILED_CHECKS:
            if self._mode is Mode.ETHERNET:
                if not self._config.is_ap_mode:
                    self._run_wifi()
                else:
                    self._run_access_point()
            elif self._mode is Mode.WIFI:
                self._run_access_point()
            self._failed_checks = 0

        self._last_check = self._clock()

    def on_connect(self, callback: ConnectCallback) -> None:
        self._callbacks.append(callback)

    def _run_ethernet(self) -> None:
        log.info("run in ethernet mode")
        self._interface.start_ethernet()
        self._mode = Mode.ETHERNET

    def _run_wifi(self) -> None:
        log.info("run in wifi client mode")
        self._interface.start_wifi(self._config.wifi_ssid, self._config.wifi_password)
        self._mode = Mode.WIFI

    def _run_access_point(self) -> None:
        log.info("run in wifi access point mode")
        config = self._config
        self._interface.start_access_point(
            config.wifi_ap_ssid,
            config.wifi_ap_password if config.wifi_ap_has_password else None,
        )
        self._mode = Mode.WIFI_AP