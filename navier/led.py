"""RGB colours, the addressable LED strip and its animation engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence

from .config import FAIRY_LIGHT_NCC as _FAIRY_LIGHT_NCC_RGB
from .config import LED_PIN, millis

NUM_LEDS = 135
FRAME_INTERVAL_MS = 40


def _clamp8(value: int) -> int:
    return max(0, min(255, value))


def _blend8(a: int, b: int, amount: int) -> int:
    return (((a << 8) | b) + b * amount - a * amount) >> 8


@dataclass(frozen=True)
class Color:
    """An 8-bit-per-channel RGB colour."""

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"colour channel out of range: {channel}")

    @classmethod
    def from_int(cls, value: int) -> "Color":
        """Unpack a 0xRRGGBB value."""
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"colour value out of range: {value:#x}")
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def to_int(self) -> int:
        """Pack into a 0xRRGGBB value."""
        return (self.r << 16) | (self.g << 8) | self.b

    def __iter__(self) -> Iterator[int]:
        yield self.r
        yield self.g
        yield self.b

    def blend(self, other: "Color", amount: int) -> "Color":
        """Mix towards `other`; amount 0 keeps self, 255 gives other."""
        if not 0 <= amount <= 255:
            raise ValueError(f"blend amount out of range: {amount}")
        if amount == 0:
            return self
        if amount == 255:
            return other
        return Color(*(_blend8(a, b, amount) for a, b in zip(self, other)))

    def scale_video(self, scale: int) -> "Color":
        """Dim by scale/256, never turning a lit channel fully off."""
        if not 0 <= scale <= 255:
            raise ValueError(f"scale out of range: {scale}")
        return Color(
            *(((c * scale) >> 8) + (1 if c and scale else 0) for c in self)
        )

    def __add__(self, other: "Color") -> "Color":
        return Color(*(_clamp8(a + b) for a, b in zip(self, other)))

    def __sub__(self, other: "Color") -> "Color":
        return Color(*(_clamp8(a - b) for a, b in zip(self, other)))

    def __floordiv__(self, divisor: int) -> "Color":
        return Color(*(c // divisor for c in self))

    def __lt__(self, other: "Color") -> bool:
        """Order by the sum of the channels."""
        return sum(self) < sum(other)


BLACK = Color()
WHITE = Color(255, 255, 255)
FAIRY_LIGHT_NCC = Color.from_int(_FAIRY_LIGHT_NCC_RGB)

FrameOutput = Callable[[Sequence[Color], int], None]


class LedStrip:
    """A strip of addressable pixels with a global brightness."""

    def __init__(
        self,
        count: int = NUM_LEDS,
        pin: int = LED_PIN,
        output: Optional[FrameOutput] = None,
    ) -> None:
        if count <= 0:
            raise ValueError("a strip needs at least one pixel")
        self.pin = pin
        self._pixels = [BLACK] * count
        self._brightness = 255
        self._output = output
        self.frame: tuple[Color, ...] = ()
        self.frame_brightness = 0
        self.show_count = 0
        self.show()

    def __len__(self) -> int:
        return len(self._pixels)

    def __iter__(self) -> Iterator[Color]:
        return iter(self._pixels)

    def __getitem__(self, index: int) -> Color:
        return self._pixels[index]

    def __setitem__(self, index: int, color: Color) -> None:
        if not isinstance(color, Color):
            raise TypeError("pixels hold Color values")
        self._pixels[index] = color

    @property
    def brightness(self) -> int:
        return self._brightness

    @brightness.setter
    def brightness(self, value: int) -> None:
        if not 0 <= value <= 255:
            raise ValueError(f"brightness out of range: {value}")
        self._brightness = value

    def fill(self, color: Color) -> None:
        """Set every pixel to one colour."""
        if not isinstance(color, Color):
            raise TypeError("pixels hold Color values")
        self._pixels = [color] * len(self._pixels)

    def show(self) -> None:
        """Push the current pixels out as a frame."""
        self.frame = tuple(self._pixels)
        self.frame_brightness = self._brightness
        self.show_count += 1
        if self._output is not None:
            self._output(self.frame, self._brightness)


class Animation(ABC):
    """A step-wise effect played on a strip by the FX engine."""

    def __init__(self, led: LedStrip) -> None:
        self.led = led
        self.ended = False

    @abstractmethod
    def update(self, dt: int) -> None:
        """Advance by `dt` milliseconds."""

    def finish(self) -> None:
        """Called once when the engine drops the animation."""


class FXEngine:
    """Plays queued animations one after another, one frame every 40 ms."""

    def __init__(self, led: LedStrip, clock: Callable[[], int] = millis) -> None:
        self._led = led
        self._clock = clock
        self._queue: deque[Animation] = deque()
        self._current: Optional[Animation] = None
        self._last_update = 0

    @property
    def current(self) -> Optional[Animation]:
        return self._current

    @property
    def pending(self) -> int:
        return len(self._queue)

    def play(self, animation: Animation) -> None:
        """Queue an animation to play after those already queued."""
        self._queue.append(animation)

    def loop(self) -> None:
        now = self._clock()
        if self._last_update + FRAME_INTERVAL_MS >= now:
            return

        if self._current is None and self._queue:
            self._current = self._queue.popleft()

        if self._current is not None:
            self._current.update(now - self._last_update)
            if self._current.ended:
                self._current.finish()
                self._current = None

        self._led.show()
        self._last_update = now