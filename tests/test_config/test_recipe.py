"""
Test Suite for the configuration schemas and YAML recipes.
"""

import pytest

from trellis.core.config import Config, DownloadConfig, LoaderConfig, TelemetryConfig
from trellis.exceptions import TrellisConfigError


# LOADER
@pytest.mark.unit
class TestLoaderConfig:

    def test_strict_defaults(self):
        cfg = LoaderConfig()
        assert cfg.on_dangling_reference == "error"
        assert cfg.on_missing_metadata == "error"

    @pytest.mark.parametrize(
        "drop_labels,has_metadata,expected",
        [
            (None, False, True),
            (None, True, False),
            (False, True, True),
            (True, False, False),
        ],
    )
    def test_infer_labels(self, drop_labels, has_metadata, expected):
        assert LoaderConfig(drop_labels=drop_labels).infer_labels(has_metadata) is expected

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            LoaderConfig(on_missing_metadata="ignore")


# DOWNLOAD / TELEMETRY
@pytest.mark.unit
class TestSections:

    def test_download_bounds(self):
        with pytest.raises(ValueError):
            DownloadConfig(retries=0)
        with pytest.raises(ValueError):
            DownloadConfig(chunk_size=10)

    def test_cache_dir_expanded(self, tmp_path):
        assert DownloadConfig(cache_dir="~/x").cache_dir.is_absolute()

    def test_log_level_normalized(self):
        assert TelemetryConfig(log_level="debug").log_level == "DEBUG"


# RECIPES
@pytest.mark.unit
class TestFromRecipe:

    def test_defaults_without_recipe(self):
        assert Config.from_recipe() == Config()

    def test_recipe_with_empty_sections(self, tmp_path):
        recipe = tmp_path / "recipe.yaml"
        recipe.write_text("download:\nloader:\n  drop_labels: false\n", encoding="utf-8")
        cfg = Config.from_recipe(recipe)
        assert cfg.loader.drop_labels is False
        assert cfg.download.retries == 3

    def test_overrides_applied_on_top(self, tmp_path):
        recipe = tmp_path / "recipe.yaml"
        recipe.write_text("loader:\n  on_missing_metadata: error\n", encoding="utf-8")
        cfg = Config.from_recipe(
            recipe, {"loader.on_missing_metadata": "drop", "download.retries": 5}
        )
        assert cfg.loader.on_missing_metadata == "drop"
        assert cfg.download.retries == 5

    def test_unknown_key(self):
        with pytest.raises(TrellisConfigError, match="Invalid configuration"):
            Config.from_recipe(None, {"loader.strictness": "high"})

    def test_malformed_override_key(self):
        with pytest.raises(TrellisConfigError, match="Malformed"):
            Config.from_recipe(None, {"loader..drop_labels": True})

    def test_override_through_scalar(self):
        with pytest.raises(TrellisConfigError, match="non-section"):
            Config.from_recipe(None, {"loader.drop_labels": True, "loader.drop_labels.x": 1})

    def test_non_mapping_recipe(self, tmp_path):
        recipe = tmp_path / "recipe.yaml"
        recipe.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(TrellisConfigError, match="mapping"):
            Config.from_recipe(recipe)

    def test_recipe_dict_round_trip(self):
        cfg = Config.from_recipe(None, {"telemetry.log_level": "warning"})
        assert Config.model_validate(cfg.to_recipe_dict()) == cfg
