"""
Test Suite for naming conventions and the cache location.
"""

from pathlib import Path

import pytest

from trellis.core.paths import IMAGE_EXTENSIONS, canonical_split_name, get_cache_dir


@pytest.mark.unit
@pytest.mark.parametrize(
    "dirname,expected",
    [
        ("train", "train"),
        ("Training", "train"),
        ("val", "validation"),
        ("dev", "validation"),
        ("valid", "validation"),
        ("eval", "test"),
        ("testing", "test"),
        ("cats", None),
    ],
)
def test_canonical_split_name(dirname, expected):
    assert canonical_split_name(dirname) == expected


@pytest.mark.unit
def test_cache_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("TRELLIS_CACHE", str(tmp_path / "cache"))
    assert get_cache_dir() == (tmp_path / "cache").resolve()


@pytest.mark.unit
def test_cache_dir_default(monkeypatch):
    monkeypatch.delenv("TRELLIS_CACHE", raising=False)
    assert get_cache_dir() == (Path.home() / ".cache" / "trellis").resolve()


@pytest.mark.unit
def test_image_extensions_cover_common_formats():
    assert {".png", ".jpg", ".jpeg"} <= IMAGE_EXTENSIONS
    assert ".jsonl" not in IMAGE_EXTENSIONS
