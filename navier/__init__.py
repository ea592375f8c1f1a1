"""Control logic for a bathroom controller: water meter, leak protection, ventilation, lights and MQTT state."""

__version__ = "0.2.0"