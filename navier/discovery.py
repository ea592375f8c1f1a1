"""Home Assistant MQTT discovery entities and their config messages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import (
    DEVICE_FW_VERSION,
    DEVICE_HW_VERSION,
    DEVICE_MANUFACTURER,
    DEVICE_MODEL,
    DEVICE_NAME,
)

COMPONENTS = frozenset({"switch", "light", "sensor", "binary_sensor"})


@dataclass(frozen=True)
class Device:
    """The physical controller the entities belong to."""

    name: str = DEVICE_NAME
    model: str = DEVICE_MODEL
    manufacturer: str = DEVICE_MANUFACTURER
    hw_version: str = DEVICE_HW_VERSION
    sw_version: str = DEVICE_FW_VERSION
    identifier: str = ""


@dataclass
class Entity:
    """One discoverable entity and its component-specific options."""

    component: str
    name: str
    object_id: str
    unique_id: str
    device: Optional[Device] = None
    options: dict[str, Any] = field(default_factory=dict)


def _device_payload(device: Device) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if device.identifier:
        payload["identifiers"] = [device.identifier]
    payload.update(
        name=device.name,
        model=device.model,
        manufacturer=device.manufacturer,
        hw_version=device.hw_version,
        sw_version=device.sw_version,
    )
    return payload


class DiscoveryManager:
    """Collects entities and renders their retained discovery messages."""

    def __init__(
        self,
        prefix: str = "homeassistant",
        enabled: bool = True,
        chip_id: str = "",
        device: Optional[Device] = None,
    ) -> None:
        self.prefix = prefix
        self.enabled = enabled
        self.chip_id = chip_id
        self.device = device if device is not None else Device(identifier=chip_id)
        self._entities: dict[str, Entity] = {}

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    def add(self, component, name, object_id, unique_id, **kwargs) -> Entity:
        """Register an entity; keyword options go into its config as given."""
        if component not in COMPONENTS:
            raise ValueError(f"unknown component: {component}")
        if unique_id in self._entities:
            raise ValueError(f"duplicate unique id: {unique_id}")
        device = kwargs.pop("device", None) or self.device
        options = {key: value for key, value in kwargs.items() if value is not None}
        entity = Entity(component, name, object_id, unique_id, device, options)
        self._entities[unique_id] = entity
        return entity

    def messages(self) -> list[tuple[str, str]]:
        """(topic, payload) for every entity, or nothing if discovery is off."""
        if not self.enabled:
            return []
        return [
            (
                f"{self.prefix}/{entity.component}/{entity.unique_id}/config",
                json.dumps(self._payload(entity), ensure_ascii=False),
            )
            for entity in self._entities.values()
        ]

    @staticmethod
    def _payload(entity: Entity) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": entity.name,
            "object_id": entity.object_id,
            "unique_id": entity.unique_id,
        }
        payload.update(entity.options)
        if entity.device is not None:
            payload["device"] = _device_payload(entity.device)
        return payload