"""LED strip effects played by the FX engine."""

from __future__ import annotations

from .led import BLACK, Animation, Color, LedStrip

CHANGE_BRIGHTNESS_STEP = 10
COLOR_BLEND_STEP = 10
FADE_STEPS = 20
OFF_SPREAD = 3
ON_SPREAD = 5
MAX_SPEED = 1000


def _scale8(value: int, scale: int) -> int:
    return (value * (1 + scale)) >> 8


def _rainbow(hue: int) -> Color:
    """Fully saturated, full-value colour for a 0-255 hue on the rainbow wheel."""
    offset8 = (hue & 0x1F) << 3
    third = _scale8(offset8, 85)
    two_thirds = _scale8(offset8, 170)
    sections = (
        (255 - third, third, 0),
        (171, 85 + third, 0),
        (171 - two_thirds, 170 + third, 0),
        (0, 255 - third, third),
        (0, 171 - two_thirds, 85 + two_thirds),
        (third, 0, 255 - third),
        (85 + third, 0, 171 - third),
        (170 + third, 0, 85 - third),
    )
    return Color(*sections[(hue & 0xFF) >> 5])


class ChangeBrightness(Animation):
    """Steps the strip brightness towards a target."""

    def __init__(self, led: LedStrip, brightness: int) -> None:
        super().__init__(led)
        if not 0 <= brightness <= 255:
            raise ValueError(f"brightness out of range: {brightness}")
        self.target = brightness
        self._falling = brightness < led.brightness

    def update(self, dt: int) -> None:
        current = self.led.brightness
        gap = current - self.target if self._falling else self.target - current
        if gap < CHANGE_BRIGHTNESS_STEP:
            self.led.brightness = self.target
            self.ended = True
        elif self._falling:
            self.led.brightness = current - CHANGE_BRIGHTNESS_STEP
        else:
            self.led.brightness = current + CHANGE_BRIGHTNESS_STEP

    def finish(self) -> None:
        self.led.brightness = self.target
        self.led.show()


class ChangeColor(Animation):
    """Blends every pixel from one colour to another."""

    def __init__(self, led: LedStrip, start: Color, target: Color) -> None:
        super().__init__(led)
        self._current = start
        self.target = target
        self._counter = 0

    def update(self, dt: int) -> None:
        self._current = self._current.blend(self.target, min(self._counter, 255))
        self.led.fill(self._current)
        if self._counter >= 255:
            self._counter = 255
            self.ended = True
        else:
            self._counter += COLOR_BLEND_STEP

    def finish(self) -> None:
        self.led.fill(self.target)
        self.led.show()


class TurnOff(Animation):
    """Fades the strip out from both ends towards the centre."""

    def __init__(self, led: LedStrip, color: Color) -> None:
        super().__init__(led)
        self._from = 0
        self._to = len(led) - 1
        self._step = color // FADE_STEPS

    def _dim(self, index: int) -> bool:
        color = self.led[index] - self._step
        self.led[index] = color
        return color == BLACK

    def update(self, dt: int) -> None:
        count = len(self.led)
        indices = [*range(0, self._from + 1), *range(self._to, count)]
        done = all([self._dim(i) for i in indices])

        center = count // 2
        self._from = min(self._from + OFF_SPREAD, center)
        self._to = max(self._to - OFF_SPREAD, center)

        if done and self._from == center and self._to == center:
            self.ended = True

    def finish(self) -> None:
        self.led.fill(BLACK)
        self.led.show()


class TurnOn(Animation):
    """Fades the strip in from the centre outwards."""

    def __init__(self, led: LedStrip, color: Color) -> None:
        super().__init__(led)
        if len(led) < 3:
            raise ValueError("turning on needs a strip of at least three pixels")
        half = len(led) // 2
        self._from = half - 1
        self._to = half + 1
        self._step = color // FADE_STEPS
        self.color = color
        led.fill(BLACK)

    def _brighten(self, index: int) -> bool:
        current = self.led[index]
        if (self.color - current) < self._step:
            self.led[index] = self.color
            return True
        self.led[index] = current + self._step
        return False

    def update(self, dt: int) -> None:
        done = all([self._brighten(i) for i in range(self._from, self._to + 1)])

        last = len(self.led) - 1
        self._from = max(self._from - ON_SPREAD, 0)
        self._to = min(self._to + ON_SPREAD, last)

        if done and self._from == 0 and self._to == last:
            self.ended = True

    def finish(self) -> None:
        self.led.fill(self.color)
        self.led.show()


class Chase(Animation):
    """A single pixel bouncing along the strip while cycling through hues."""

    def __init__(self, led: LedStrip, pixel_speed: int, color_speed: int) -> None:
        super().__init__(led)
        for speed in (pixel_speed, color_speed):
            if not 0 < speed <= MAX_SPEED:
                raise ValueError(f"speed must be between 1 and {MAX_SPEED}: {speed}")
        self._pixel_interval = MAX_SPEED // pixel_speed
        self._hue_interval = MAX_SPEED // color_speed
        self._hue = 0
        self._position = 0
        self._reversed = False
        self._accumulator = 0

    @property
    def position(self) -> int:
        return self._position

    @property
    def hue(self) -> int:
        return self._hue

    def update(self, dt: int) -> None:
        color = _rainbow(self._hue)
        self.led.fill(BLACK)

        distance = dt // self._pixel_interval
        self.led[self._position] = color
        self._position += -distance if self._reversed else distance

        last = len(self.led) - 1
        self._position = max(0, min(self._position, last))
        if self._position in (0, last):
            self._reversed = not self._reversed

        self._accumulator += dt
        self._hue = (self._hue + self._accumulator // self._hue_interval) % 256
        if self._accumulator > self._hue_interval:
            self._accumulator %= self._hue_interval