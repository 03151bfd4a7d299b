"""
Shared fixtures for the Trellis test suite.

Builds small on-disk datasets (PNG images written with Pillow, tar
archives, metadata.jsonl files) under ``tmp_path`` so no test touches the
network or the user's cache.
"""

import io
import json
import logging
import tarfile
from pathlib import Path
from types import SimpleNamespace

import pytest
from PIL import Image

from trellis.core.config import DownloadConfig
from trellis.core.paths import LOGGER_NAME
from trellis.data_handler import DownloadManager


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")


def png_bytes(color=(255, 0, 0), size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def write_png(path: Path, color=(255, 0, 0), size=(4, 4)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(png_bytes(color, size))
    return path


def write_jsonl(path: Path, rows) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(row) + "\n" for row in rows), encoding="utf-8")
    return path


def write_tar(path: Path, members: dict, mode: str = "w:gz") -> Path:
    """Tar archive with ``{entry_name: bytes}`` members, in insertion order."""
    with tarfile.open(path, mode) as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def files():
    """Writers for on-disk fixtures: images, JSON Lines and tar archives."""
    return SimpleNamespace(png=write_png, png_bytes=png_bytes, jsonl=write_jsonl, tar=write_tar)


@pytest.fixture
def download_cfg(tmp_path):
    return DownloadConfig(cache_dir=tmp_path / "cache", retries=2, delay=0.0)


@pytest.fixture
def fetcher(download_cfg, tmp_path):
    return DownloadManager(download_cfg, base_dir=tmp_path)


@pytest.fixture
def trellis_caplog(caplog):
    """caplog attached to the non-propagating Trellis logger."""
    log = logging.getLogger(LOGGER_NAME)
    log.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    yield caplog
    log.removeHandler(caplog.handler)


@pytest.fixture
def pets_dir(tmp_path):
    """Class-directory layout with train and val (→ validation) splits."""
    root = tmp_path / "pets"
    write_png(root / "train" / "cat" / "c1.png", (10, 10, 10))
    write_png(root / "train" / "cat" / "c2.png", (20, 20, 20))
    write_png(root / "train" / "dog" / "d1.png", (30, 30, 30))
    write_png(root / "val" / "cat" / "c3.png", (40, 40, 40))
    write_png(root / "val" / "dog" / "d2.png", (50, 50, 50))
    return root


@pytest.fixture
def captions_dir(tmp_path):
    """root/train/metadata.jsonl with three captioned sibling images."""
    root = tmp_path / "captions"
    rows = []
    for i, text in enumerate(["a red square", "a green square", "a blue square"]):
        write_png(root / "train" / f"{i:04d}.png", ((i * 80) % 256, 0, 0))
        rows.append({"file_name": f"{i:04d}.png", "text": text})
    write_jsonl(root / "train" / "metadata.jsonl", rows)
    return root
