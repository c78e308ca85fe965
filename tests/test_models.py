"""Model backend: generator shape, weight lookup, download, loading."""

from __future__ import annotations

import pytest
import requests
import torch

from facepaint.errors import LoadError
from facepaint.models import (
    MODEL_CONFIGS,
    Generator,
    ModelDownloader,
    ModelIdentifier,
    list_available_models,
    load_pretrained_model,
    parse_identifier,
)
from facepaint.models import model_util


def test_four_models_configured():
    assert len(ModelIdentifier) == 4
    assert set(MODEL_CONFIGS) == set(ModelIdentifier)
    listed = list_available_models()
    assert list(listed) == list(ModelIdentifier)
    assert all({"display_name", "description"} <= set(v) for v in listed.values())


def test_parse_identifier():
    assert parse_identifier("paprika") is ModelIdentifier.PAPRIKA
    assert parse_identifier(ModelIdentifier.PAPRIKA) is ModelIdentifier.PAPRIKA
    with pytest.raises(LoadError):
        parse_identifier("hayao")


@pytest.mark.parametrize("size", [32, 48])
def test_generator_preserves_spatial_size(size):
    g = Generator().eval()
    with torch.inference_mode():
        y = g(torch.zeros(1, 3, size, size))
    assert y.shape == (1, 3, size, size)
    assert y.min() >= -1 and y.max() <= 1


def test_load_pretrained_model_from_local_weights(tmp_path):
    torch.manual_seed(0)
    reference = Generator()
    path = tmp_path / MODEL_CONFIGS[ModelIdentifier.FACE_PAINT_V2]["filename"]
    torch.save(reference.state_dict(), path)

    model = load_pretrained_model("face_paint_512_v2", device="cpu", save_dir=tmp_path, allow_download=False)
    assert isinstance(model, Generator)
    assert not model.training
    for k, v in reference.state_dict().items():
        assert torch.equal(model.state_dict()[k], v)


def test_corrupt_weights_raise_load_error(tmp_path):
    path = tmp_path / MODEL_CONFIGS[ModelIdentifier.PAPRIKA]["filename"]
    path.write_bytes(b"this is not a checkpoint")
    with pytest.raises(LoadError, match="corrupt"):
        load_pretrained_model(ModelIdentifier.PAPRIKA, save_dir=tmp_path, allow_download=False)


def test_mismatched_state_dict_raises_load_error(tmp_path):
    path = tmp_path / MODEL_CONFIGS[ModelIdentifier.PAPRIKA]["filename"]
    torch.save({"unexpected.weight": torch.zeros(1)}, path)
    with pytest.raises(LoadError):
        load_pretrained_model(ModelIdentifier.PAPRIKA, save_dir=tmp_path, allow_download=False)


def test_missing_weights_offline(tmp_path):
    with pytest.raises(LoadError, match="not found"):
        load_pretrained_model(ModelIdentifier.CELEBA_DISTILL, save_dir=tmp_path, allow_download=False)


class _FakeResponse:
    def __init__(self, chunks, fail_after=None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.headers = {"content-length": str(sum(len(c) for c in chunks))}

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size=8192):
        for i, c in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.exceptions.ConnectionError("connection reset")
            yield c


def test_downloader_fetches_missing_file(tmp_path, monkeypatch):
    seen = {}

    def fake_get(url, stream, timeout):
        seen["url"] = url
        return _FakeResponse([b"abc", b"def"])

    monkeypatch.setattr(model_util.requests, "get", fake_get)
    d = ModelDownloader(ModelIdentifier.FACE_PAINT_V1, save_dir=tmp_path / "models")
    path = d.download_model()
    assert path.read_bytes() == b"abcdef"
    assert seen["url"].endswith("/face_paint_512_v1.pt")

    # second call uses the local file
    monkeypatch.setattr(model_util.requests, "get", lambda *a, **k: pytest.fail("downloaded twice"))
    assert d.download_model() == path


def test_downloader_removes_partial_file(tmp_path, monkeypatch):
    monkeypatch.setattr(
        model_util.requests, "get", lambda url, stream, timeout: _FakeResponse([b"abc", b"def"], fail_after=1)
    )
    d = ModelDownloader(ModelIdentifier.PAPRIKA, save_dir=tmp_path)
    with pytest.raises(LoadError, match="download failed"):
        d.download_model()
    assert not d.model_path.exists()
