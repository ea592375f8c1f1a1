"""Wear-levelled ring of meter readings kept in emulated EEPROM."""

from __future__ import annotations

import logging
import struct
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from .config import EEPROM_SIZE

log = logging.getLogger(__name__)

RING_STORAGE_OFFSET = 1024
RING_STORAGE_SIZE = 100

LOCK_BIT = 0x80000000
VALUE_MASK = 0x7FFFFFFF
ERASED_WORD = 0xFFFFFFFF

_WORD = struct.Struct("<I")


class Eeprom:
    """Byte-addressed non-volatile memory, optionally backed by a file."""

    def __init__(
        self,
        size: int = EEPROM_SIZE,
        path: Optional[Union[str, PathLike]] = None,
    ) -> None:
        if size < _WORD.size:
            raise ValueError(f"EEPROM too small: {size}")
        self.size = size
        self.path = Path(path) if path is not None else None
        data = bytearray(b"\xff" * size)
        if self.path is not None and self.path.is_file():
            stored = self.path.read_bytes()[:size]
            data[: len(stored)] = stored
        self._data = data
        self._committed = bytes(data)

    def _check(self, address: int) -> None:
        if not 0 <= address <= self.size - _WORD.size:
            raise IndexError(f"EEPROM address out of range: {address}")

    def read_uint(self, address: int) -> int:
        """Read a little-endian 32-bit word."""
        self._check(address)
        return _WORD.unpack_from(self._data, address)[0]

    def write_uint(self, address: int, value: int) -> None:
        """Stage a little-endian 32-bit word until the next commit."""
        self._check(address)
        if not 0 <= value <= ERASED_WORD:
            raise ValueError(f"value does not fit in 32 bits: {value}")
        _WORD.pack_into(self._data, address, value)

    def commit(self) -> bool:
        """Persist staged writes; on failure they are dropped."""
        if self.path is not None:
            try:
                self.path.write_bytes(bytes(self._data))
            except OSError as exc:
                log.error("EEPROM commit failed: %s", exc)
                self._data = bytearray(self._committed)
                return False
        self._committed = bytes(self._data)
        return True


class RingStorage:
    """Keeps the latest meter reading, rotating through slots to spread wear."""

    def __init__(
        self,
        eeprom: Eeprom,
        offset: int = RING_STORAGE_OFFSET,
        slots: int = RING_STORAGE_SIZE,
    ) -> None:
        if slots <= 0:
            raise ValueError("ring storage needs at least one slot")
        self._eeprom = eeprom
        self._offset = offset
        self._slots = slots
        self._position = 0
        self._current = 0

    @property
    def current_value(self) -> int:
        return self._current & VALUE_MASK

    @property
    def locked(self) -> bool:
        return bool(self._current & LOCK_BIT)

    @property
    def position(self) -> int:
        """Slot the next write goes to."""
        return self._position

    def _address(self, slot: int) -> int:
        return self._offset + _WORD.size * slot

    def _read(self, slot: int) -> tuple[int, bool]:
        raw = self._eeprom.read_uint(self._address(slot))
        return raw & VALUE_MASK, bool(raw & LOCK_BIT)

    def load(self) -> None:
        """Find the newest reading: the end of the longest ascending run."""
        previous, max_locked = self._read(0)
        max_value = previous
        max_slot = 0
        need_clear = max_value == ERASED_WORD

        for slot in range(1, self._slots):
            value, locked = self._read(slot)
            log.debug("%d: %d", slot, value)
            if value == ERASED_WORD:
                need_clear = True
            if value > max_value and previous + 1 == value:
                log.debug("found new max value (%d) at slot %d", value, slot)
                max_value = value
                max_locked = locked
                max_slot = slot
            previous = value

        self._position = (max_slot + 1) % self._slots
        self._current = max_value | (LOCK_BIT if max_locked else 0)

        if need_clear:
            self.clear()

        log.debug("loaded position %d, current value %d", self._position, self._current)

    def write_value(self, value: int, locked: bool) -> None:
        """Store a reading with its lock flag in the next slot."""
        if not 0 <= value <= VALUE_MASK:
            raise ValueError(f"reading out of range: {value}")
        word = value | (LOCK_BIT if locked else 0)
        self._eeprom.write_uint(self._address(self._position), word)
        if self._eeprom.commit():
            self._position = (self._position + 1) % self._slots
            self._current = word
        else:
            log.error("failed to store reading %d", value)

    def clear(self) -> None:
        """Zero every slot."""
        for slot in range(self._slots):
            self._eeprom.write_uint(self._address(slot), 0)
        if self._eeprom.commit():
            self._position = 0
            self._current = 0
        else:
            log.error("failed to clear storage")