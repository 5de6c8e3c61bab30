"""Shared fixtures: source images on disk and fake collaborators."""

import numpy as np
import pytest
from PIL import Image

from image_alchemy.collaborators import LocalHandle
from image_alchemy.engine import ImageHandle, Interpretation
from image_alchemy.pipeline.state import PipelineState


class TrackingHandle(LocalHandle):
    """Local handle that records whether it was released."""

    def __init__(self, path):
        super().__init__(path)
        self.released = False

    def release(self):
        self.released = True


class FakeFetcher:
    """Serves one local file for every URL, or raises ``error``."""

    def __init__(self, path=None, error=None):
        self.path = path
        self.error = error
        self.calls = []
        self.handles = []

    def fetch(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        handle = TrackingHandle(self.path)
        self.handles.append(handle)
        return handle


class FakeThrottler:
    """Rejects every identity when ``exceeded``; fires the callback ``fire`` times."""

    def __init__(self, exceeded=False, fire=2, ban_time=600):
        self.exceeded = exceeded
        self.fire = fire
        self.ban_time = ban_time
        self.identities = []

    def is_exceeded(self, identity, on_exceeded):
        self.identities.append(identity)
        if self.exceeded:
            for _ in range(self.fire):
                on_exceeded(identity, self.ban_time)
        return self.exceeded


def gradient_rgb(width=32, height=24):
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[..., 0] = x[np.newaxis, :]
    pixels[..., 1] = y[:, np.newaxis]
    pixels[..., 2] = 128
    return pixels


def gradient_rgba(width=32, height=24):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = gradient_rgb(width, height)
    pixels[..., 3] = 255
    # Left half half-transparent, left quarter fully transparent
    pixels[:, : width // 2, 3] = 128
    pixels[:, : width // 4, 3] = 0
    return pixels


@pytest.fixture
def rgb_handle():
    return ImageHandle(pixels=gradient_rgb(), interpretation=Interpretation.SRGB)


@pytest.fixture
def rgba_handle():
    return ImageHandle(pixels=gradient_rgba(), interpretation=Interpretation.SRGB)


@pytest.fixture
def grey_handle():
    pixels = gradient_rgb()[..., :1].copy()
    return ImageHandle(pixels=pixels, interpretation=Interpretation.B_W)


@pytest.fixture
def rgb_state():
    return PipelineState()


@pytest.fixture
def rgba_state():
    return PipelineState(has_alpha=True)


@pytest.fixture
def jpeg_path(tmp_path):
    path = tmp_path / "source.jpg"
    Image.fromarray(gradient_rgb()).save(path, format="JPEG", quality=95)
    return str(path)


@pytest.fixture
def png_rgba_path(tmp_path):
    path = tmp_path / "source.png"
    Image.fromarray(gradient_rgba()).save(path, format="PNG")
    return str(path)


@pytest.fixture
def png_grey16_path(tmp_path):
    path = tmp_path / "grey16.png"
    pixels = np.tile(np.linspace(0, 65535, 32, dtype=np.uint16), (24, 1))
    Image.fromarray(pixels).save(path, format="PNG")
    return str(path)


@pytest.fixture
def bordered_png_path(tmp_path):
    """White 40x30 canvas with a black 20x10 block at (8, 6)"""
    path = tmp_path / "bordered.png"
    pixels = np.full((30, 40, 3), 255, dtype=np.uint8)
    pixels[6:16, 8:28] = 0
    Image.fromarray(pixels).save(path, format="PNG")
    return str(path)


@pytest.fixture
def garbage_path(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"this is not an image at all")
    return str(path)


@pytest.fixture
def png_translucent_path(tmp_path):
    """Uniform 20x20 grey 100 at alpha 26"""
    path = tmp_path / "translucent.png"
    pixels = np.zeros((20, 20, 4), dtype=np.uint8)
    pixels[..., :3] = 100
    pixels[..., 3] = 26
    Image.fromarray(pixels).save(path, format="PNG")
    return str(path)
