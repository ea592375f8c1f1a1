import pytest

from navier.config import FAIRY_LIGHT_NCC as FAIRY_RGB
from navier.led import (
    BLACK,
    FAIRY_LIGHT_NCC,
    NUM_LEDS,
    WHITE,
    Animation,
    Color,
    FXEngine,
    LedStrip,
)


class FakeClock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


class Recording(Animation):
    def __init__(self, led, frames):
        super().__init__(led)
        self.frames = frames
        self.dts = []
        self.finished = False

    def update(self, dt):
        self.dts.append(dt)
        if len(self.dts) >= self.frames:
            self.ended = True

    def finish(self):
        self.finished = True


@pytest.mark.parametrize("value", [0, 0xFFFFFF, 0x123456, FAIRY_RGB])
def test_color_int_round_trip(value):
    assert Color.from_int(value).to_int() == value


def test_color_from_int_channels():
    assert Color.from_int(0x123456) == Color(0x12, 0x34, 0x56)


def test_fairy_light_constant_matches_config():
    assert FAIRY_LIGHT_NCC.to_int() == FAIRY_RGB


@pytest.mark.parametrize("value", [-1, 0x1000000])
def test_color_from_int_out_of_range(value):
    with pytest.raises(ValueError):
        Color.from_int(value)


def test_color_channel_out_of_range():
    with pytest.raises(ValueError):
        Color(256, 0, 0)


def test_blend_endpoints():
    a, b = Color(10, 20, 30), Color(200, 150, 100)
    assert a.blend(b, 0) == a
    assert a.blend(b, 255) == b


def test_blend_stays_between_and_moves_towards_target():
    previous = BLACK
    for amount in range(0, 256, 15):
        mixed = BLACK.blend(WHITE, amount)
        assert all(0 <= c <= 255 for c in mixed)
        assert previous.r <= mixed.r
        previous = mixed


def test_blend_rejects_bad_amount():
    with pytest.raises(ValueError):
        WHITE.blend(BLACK, 300)


def test_scale_video_limits():
    assert WHITE.scale_video(255) == WHITE
    assert WHITE.scale_video(0) == BLACK


def test_scale_video_keeps_lit_channels_lit():
    dimmed = Color(1, 0, 5).scale_video(1)
    assert dimmed.r > 0 and dimmed.b > 0
    assert dimmed.g == 0


def test_saturating_arithmetic():
    assert WHITE + Color(1, 2, 3) == WHITE
    assert BLACK - Color(1, 2, 3) == BLACK
    assert Color(100, 50, 0) - Color(100, 50, 0) == BLACK


def test_floordiv_and_ordering():
    assert Color(200, 100, 40) // 20 == Color(10, 5, 2)
    assert BLACK < WHITE
    assert not WHITE < BLACK


def test_strip_starts_black_and_shown():
    strip = LedStrip()
    assert len(strip) == NUM_LEDS
    assert all(pixel == BLACK for pixel in strip)
    assert strip.show_count == 1


def test_strip_fill_and_show():
    frames = []
    strip = LedStrip(count=4, output=lambda pixels, brightness: frames.append((pixels, brightness)))
    strip.fill(WHITE)
    strip.brightness = 42
    strip.show()
    assert strip.frame == (WHITE,) * 4
    assert frames[-1] == ((WHITE,) * 4, 42)


def test_strip_pixel_access():
    strip = LedStrip(count=3)
    strip[1] = WHITE
    assert list(strip) == [BLACK, WHITE, BLACK]
    with pytest.raises(IndexError):
        strip[3] = WHITE
    with pytest.raises(TypeError):
        strip[0] = 0xFFFFFF


def test_strip_brightness_validation():
    strip = LedStrip(count=1)
    with pytest.raises(ValueError):
        strip.brightness = 256
    with pytest.raises(ValueError):
        LedStrip(count=0)


def test_engine_waits_for_frame_interval():
    clock = FakeClock()
    strip = LedStrip(count=2)
    engine = FXEngine(strip, clock)
    animation = Recording(strip, frames=2)
    engine.play(animation)
    clock.now = 40
    engine.loop()
    assert animation.dts == []
    assert strip.show_count == 1


def test_engine_plays_animations_in_order():
    clock = FakeClock()
    strip = LedStrip(count=2)
    engine = FXEngine(strip, clock)
    first = Recording(strip, frames=2)
    second = Recording(strip, frames=1)
    engine.play(first)
    engine.play(second)

    clock.now = 41
    engine.loop()
    assert first.dts == [41]
    assert engine.current is first
    assert engine.pending == 1

    clock.now = 100
    engine.loop()
    assert first.dts == [41, 59]
    assert first.finished is True
    assert engine.current is None
    assert second.dts == []

    clock.now = 200
    engine.loop()
    assert second.dts == [100]
    assert second.finished is True
    assert strip.show_count == 4