import pytest

from image_crop_tool.crop_state import CropState
from image_crop_tool.models import CropArea, Size
from image_crop_tool.scheduler import ImmediateScheduler


def relative(state):
    geo, crop = state.geometry, state.crop
    return (
        (crop.x - geo.position.x) / geo.size.width,
        (crop.y - geo.position.y) / geo.size.height,
        crop.width / geo.size.width,
        crop.height / geo.size.height,
    )


def test_resize_initializes_crop_after_zero_geometry():
    state = CropState()
    state.load_image(Size(1000, 500))
    assert state.crop == CropArea()

    state.on_container_resized(Size(500, 500))

    assert state.crop == CropArea(0, 125, 500, 250)


def test_resize_initializes_locked_crop_after_zero_geometry():
    state = CropState(aspect_ratio=1.0)
    state.load_image(Size(1000, 500))
    state.on_container_resized(Size(500, 500))
    assert state.crop == CropArea(125, 125, 250, 250)


class TestBeforeLoad:
    def test_geometry_operations_are_noops(self):
        state = CropState(Size(500, 500))
        state.set_crop(CropArea(1, 2, 3, 4))
        state.set_zoom(2.0)
        state.reset()
        state.on_container_resized(Size(800, 800))

        assert not state.image_loaded
        assert state.crop == CropArea()
        assert state.geometry.size.is_empty()

    def test_aspect_can_be_chosen_before_loading(self):
        state = CropState(Size(500, 500))
        state.set_aspect_ratio(1.0)
        state.load_image(Size(1000, 500))
        assert state.crop == CropArea(125, 125, 250, 250)


def test_load_selects_whole_image(state):
    assert state.image_loaded
    assert state.crop == CropArea(0, 125, 500, 250)
    assert state.crop == state.geometry.bounds()


def test_zoom_rescales_crop(state):
    state.set_zoom(2.0)
    assert state.crop == CropArea(-250, 0, 1000, 500)


@pytest.mark.parametrize("zoom", [0.5, 1.5, 3.0])
def test_zoom_round_trip_keeps_relative_crop(state, zoom):
    state.set_crop(CropArea(100, 150, 200, 100))
    before = relative(state)
    state.set_zoom(zoom)
    assert relative(state) == pytest.approx(before)
    state.set_zoom(1.0)
    assert state.crop.x == pytest.approx(100)
    assert state.crop.y == pytest.approx(150)


def test_zoom_and_rotation_are_clamped(state):
    state.set_zoom(5)
    assert state.zoom == 3.0
    state.set_zoom(0.1)
    assert state.zoom == 0.5
    state.set_rotation(400)
    assert state.rotation == 360
    state.set_rotation(-5)
    assert state.rotation == 0


def test_square_lock_on_square_crop():
    state = CropState(Size(400, 400))
    state.load_image(Size(400, 400))
    state.set_aspect_ratio(16 / 9)

    assert state.crop.x == pytest.approx(0)
    assert state.crop.y == pytest.approx(87.5)
    assert state.crop.width == pytest.approx(400)
    assert state.crop.height == pytest.approx(225)


def test_invalid_ratio_falls_back_to_square(state):
    state.set_aspect_ratio(0)
    assert state.aspect_ratio == 1.0
    assert state.crop == CropArea(125, 125, 250, 250)


def test_free_aspect_leaves_crop_alone(state):
    state.set_aspect_ratio(None)
    assert state.crop == CropArea(0, 125, 500, 250)


def test_every_stored_crop_is_aspect_corrected(state):
    state.set_aspect_ratio(2.0)
    state.set_crop(CropArea(100, 150, 100, 100))
    assert state.crop == CropArea(100, 175, 100, 50)


def test_reset_restores_defaults(state):
    state.set_zoom(2.0)
    state.set_rotation(90)
    state.set_crop(CropArea(0, 0, 50, 50))

    state.reset()
    first = state.crop
    state.reset()

    assert state.zoom == 1.0
    assert state.rotation == 0
    assert first == CropArea(0, 125, 500, 250)
    assert state.crop == first


def test_reset_respects_aspect_lock(state):
    state.set_aspect_ratio(1.0)
    state.set_crop(CropArea(0, 125, 50, 50))
    state.reset()
    assert state.crop == CropArea(125, 125, 250, 250)


def test_container_resize_carries_crop(state):
    state.on_container_resized(Size(1000, 1000))
    assert state.geometry.position.y == 250
    assert state.crop == CropArea(0, 250, 1000, 500)


def test_resize_handler_is_debounced(state):
    scheduler = ImmediateScheduler()
    calls = []
    state.subscribe(lambda: calls.append(state.crop))
    handler = state.resize_handler(scheduler)

    handler(Size(600, 600))
    handler(Size(800, 800))
    handler(Size(1000, 1000))
    assert calls == []

    scheduler.flush()

    assert scheduler.debounce_delays == [100]
    assert calls == [CropArea(0, 250, 1000, 500)]


def test_listeners(state):
    calls = []

    def listener():
        calls.append(1)

    state.subscribe(listener)
    state.set_crop(CropArea(0, 125, 100, 100))
    state.unsubscribe(listener)
    state.set_crop(CropArea(0, 125, 200, 100))

    assert calls == [1]
