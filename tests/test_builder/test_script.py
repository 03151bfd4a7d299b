"""
Test Suite for loading script discovery and dataset verification.

Loading scripts are written to ``tmp_path`` and imported from their file
path, the way ``trellis test`` does.
"""

import textwrap
from types import SimpleNamespace

import pytest
import yaml

from trellis.builder import (
    find_builder_class,
    instantiate,
    load_expected_checksums,
    load_script_module,
    save_infos,
    verify_builder,
)
from trellis.exceptions import ResourceUnavailableError, TrellisConfigError

SCRIPT = textwrap.dedent(
    '''
    """Toy loading script with two configurations."""

    from trellis.builder import BuilderConfig, ConfigRegistry, DatasetInfo, SplitPlan
    from trellis.features import Features, Value


    class Numbers:
        CONFIGS = ConfigRegistry(
            configs=(
                BuilderConfig(name="small", params={"n": 2}),
                BuilderConfig(name="large", params={"n": 5}),
            ),
            default="small",
        )

        def __init__(self, config):
            self.config = config

        def describe(self):
            return DatasetInfo(
                features=Features({"value": Value("int64")}), config_name=self.config.name
            )

        def plan_splits(self, fetcher):
            n = self.config.params["n"]
            return {
                "train": SplitPlan(name="train", gen_kwargs={"start": 0, "stop": n}),
                "test": SplitPlan(name="test", gen_kwargs={"start": n, "stop": n + 1}),
            }

        def generate(self, plan):
            return plan.bind(self._generate_examples)

        def _generate_examples(self, start, stop):
            for i in range(start, stop):
                yield str(i), {"value": i}
    '''
)


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "numbers.py"
    path.write_text(SCRIPT, encoding="utf-8")
    return path


# DISCOVERY
@pytest.mark.unit
class TestScriptDiscovery:

    def test_finds_single_builder(self, script):
        builder_cls = find_builder_class(load_script_module(script))
        assert builder_cls.__name__ == "Numbers"

    def test_instantiate_default(self, script):
        builder = instantiate(find_builder_class(load_script_module(script)))
        assert builder.config.name == "small"

    def test_instantiate_named(self, script):
        builder = instantiate(find_builder_class(load_script_module(script)), "large")
        assert builder.config.params == {"n": 5}

    def test_unknown_config(self, script):
        with pytest.raises(TrellisConfigError, match="not found"):
            instantiate(find_builder_class(load_script_module(script)), "huge")

    def test_missing_script(self, tmp_path):
        with pytest.raises(ResourceUnavailableError) as exc:
            load_script_module(tmp_path / "absent.py")
        assert exc.value.locator.endswith("absent.py")

    def test_no_builder(self, tmp_path):
        path = tmp_path / "empty.py"
        path.write_text("X = 1\n", encoding="utf-8")
        with pytest.raises(TrellisConfigError, match="No builder class"):
            find_builder_class(load_script_module(path))

    def test_explicit_marker_disambiguates(self, tmp_path, script):
        path = tmp_path / "twice.py"
        path.write_text(
            script.read_text() + "\n\nclass Other(Numbers):\n    pass\n\n\nBUILDER = Other\n",
            encoding="utf-8",
        )
        assert find_builder_class(load_script_module(path)).__name__ == "Other"

    def test_several_builders_without_marker(self, tmp_path, script):
        path = tmp_path / "ambiguous.py"
        path.write_text(script.read_text() + "\n\nclass Other(Numbers):\n    pass\n")
        with pytest.raises(TrellisConfigError, match="Several builder classes"):
            find_builder_class(load_script_module(path))


# VERIFICATION
@pytest.mark.integration
class TestVerification:

    @pytest.fixture
    def builder(self, script):
        return instantiate(find_builder_class(load_script_module(script)), "large")

    def test_verify_counts_splits(self, builder):
        result = verify_builder(builder, SimpleNamespace())
        assert result.config_name == "large"
        assert result.split_sizes == {"train": 5, "test": 1}
        assert result.num_examples == 6

    def test_save_infos_keeps_other_configs(self, builder, tmp_path):
        path = tmp_path / "dataset_infos.yaml"
        path.write_text(yaml.safe_dump({"small": {"splits": {}}}), encoding="utf-8")
        checksums = {"https://example.com/a.tar": {"num_bytes": 10, "checksum": "abc"}}

        save_infos([verify_builder(builder, SimpleNamespace())], path, checksums)

        saved = yaml.safe_load(path.read_text())
        assert set(saved) == {"small", "large"}
        assert saved["large"]["splits"] == {
            "train": {"num_examples": 5},
            "test": {"num_examples": 1},
        }
        assert saved["large"]["features"] == {"value": {"_type": "Value", "dtype": "int64"}}
        assert load_expected_checksums(path, "large") == {"https://example.com/a.tar": "abc"}

    def test_expected_checksums_absent(self, tmp_path):
        assert load_expected_checksums(tmp_path / "none.yaml", "large") == {}
