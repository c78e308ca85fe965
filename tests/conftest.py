"""Shared fixtures: synthetic photos and lightweight stand-in models."""

from __future__ import annotations

import io
import os
import threading

import pytest
import torch
from PIL import Image
from torch import nn

from facepaint.core.model_manager import ModelManager


class TinyStylizer(nn.Module):
    """Size-preserving stand-in for the generator: negates and squashes pixels."""

    def __init__(self):
        super().__init__()
        self.scale = nn.Parameter(torch.tensor(-1.0))

    def forward(self, x):
        return torch.tanh(x * self.scale)


def encode_image(image: Image.Image, fmt: str = "JPEG", **save_kwargs) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture
def photo_bytes():
    """Factory returning JPEG bytes of a ``width`` x ``height`` gradient-ish photo."""

    def _make(width: int, height: int, color=(200, 120, 60)) -> bytes:
        img = Image.new("RGB", (width, height), color=color)
        # a dark band so crops and flips are visible
        img.paste((20, 20, 20), (0, 0, max(1, width // 4), height))
        return encode_image(img, "JPEG", quality=95)

    return _make


@pytest.fixture
def counting_loader():
    """Loader that records calls and returns a fresh TinyStylizer per call."""

    class _Loader:
        def __init__(self):
            self.calls = []
            self._lock = threading.Lock()

        def __call__(self, identifier):
            with self._lock:
                self.calls.append(identifier)
            return TinyStylizer().eval()

    return _Loader()


@pytest.fixture
def manager(counting_loader):
    return ModelManager("cpu", loader=counting_loader)


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for every Qt test, rendered offscreen."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
