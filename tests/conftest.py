import os

import pytest
from PIL import Image

# Qt widgets are exercised without a display server
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from image_crop_tool.crop_state import CropState
from image_crop_tool.drag import DragController
from image_crop_tool.models import ImageSource, Size
from image_crop_tool.scheduler import ImmediateScheduler


@pytest.fixture
def state():
    """1000x500 image in a 500x500 container: shown at (0, 125), 500x250."""
    s = CropState(Size(500, 500))
    s.load_image(Size(1000, 500))
    return s


@pytest.fixture
def scheduler():
    return ImmediateScheduler()


@pytest.fixture
def controller(state, scheduler):
    return DragController(state, scheduler)


def pattern_image(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """An image where every pixel is distinguishable from its neighbours."""
    img = Image.new("RGB", (width, height))
    img.putdata([
        ((x * 7) % 256, (y * 11) % 256, (x * 3 + y * 5) % 256)
        for y in range(height) for x in range(width)
    ])
    return img.convert(mode)


@pytest.fixture
def source():
    return ImageSource(pattern_image(100, 50), "image/png", "photo.png")
