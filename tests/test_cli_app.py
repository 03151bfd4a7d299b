"""
Test Suite for the Trellis CLI (cli_app.py).

Tests the Typer-based CLI utilities: override parsing, auto-casting,
and the init / test / publish commands on small on-disk datasets.
"""

import re

import pytest
import typer
import yaml
from typer.testing import CliRunner

from trellis.cli_app import _auto_cast, _parse_overrides, app

SCRIPT = '''
from trellis.builder import BuilderConfig, ConfigRegistry, DatasetInfo, SplitPlan
from trellis.features import Features, Value


class Counter:
    CONFIGS = ConfigRegistry(
        configs=(
            BuilderConfig(name="short", params={"n": 2}),
            BuilderConfig(name="long", params={"n": 5}),
        ),
        default="short",
    )

    def __init__(self, config):
        self.config = config

    def describe(self):
        return DatasetInfo(features=Features({"value": Value("int64")}))

    def plan_splits(self, fetcher):
        return {"train": SplitPlan(name="train", gen_kwargs={"n": self.config.params["n"]})}

    def generate(self, plan):
        return plan.bind(self._generate_examples)

    def _generate_examples(self, n):
        for i in range(n):
            yield str(i), {"value": i}
'''


def _strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from Rich/Typer help output."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def counter_script(tmp_path):
    path = tmp_path / "counter" / "counter.py"
    path.parent.mkdir()
    path.write_text(SCRIPT, encoding="utf-8")
    return path


# AUTO-CAST
@pytest.mark.unit
class TestAutoCast:
    """Tests for _auto_cast string-to-Python type conversion."""

    def test_int(self):
        assert _auto_cast("42") == 42
        assert isinstance(_auto_cast("42"), int)

    def test_float(self):
        assert _auto_cast("0.5") == pytest.approx(0.5)
        assert isinstance(_auto_cast("1e-3"), float)

    def test_bool(self):
        assert _auto_cast("true") is True
        assert _auto_cast("False") is False

    def test_null(self):
        assert _auto_cast("null") is None
        assert _auto_cast("None") is None

    def test_string_passthrough(self):
        assert _auto_cast("drop") == "drop"
        assert _auto_cast("") == ""


# PARSE OVERRIDES
@pytest.mark.unit
class TestParseOverrides:
    """Tests for _parse_overrides CLI flag parsing."""

    def test_multiple_overrides(self):
        result = _parse_overrides(
            [
                "download.retries=5",
                "download.verify_checksums=false",
                "loader.on_missing_metadata=drop",
            ]
        )
        assert result == {
            "download.retries": 5,
            "download.verify_checksums": False,
            "loader.on_missing_metadata": "drop",
        }

    def test_value_with_equals(self):
        """Values containing = should work (partition on first =)."""
        assert _parse_overrides(["key=a=b"]) == {"key": "a=b"}

    def test_whitespace_stripped(self):
        assert _parse_overrides(["  key  =  42  "]) == {"key": 42}

    def test_missing_equals_raises(self):
        with pytest.raises(typer.BadParameter, match="key=value"):
            _parse_overrides(["no_equals_here"])

    def test_empty_key_raises(self):
        with pytest.raises(typer.BadParameter, match="Empty key"):
            _parse_overrides(["=value"])


# CLI HELP & VERSION
@pytest.mark.unit
class TestCLIHelp:
    """Smoke tests for CLI command registration."""

    def test_app_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "test", "publish"):
            assert command in result.output

    def test_test_help(self, runner):
        result = runner.invoke(app, ["test", "--help"])
        assert result.exit_code == 0
        clean = _strip_ansi(result.output)
        assert "--all-configs" in clean
        assert "--save-info" in clean

    def test_version_flag(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "trellis-datasets" in result.output


# INIT
@pytest.mark.unit
class TestCLIInit:
    """Tests for the ``init`` starter recipe."""

    def test_creates_loadable_recipe(self, runner, tmp_path):
        output = tmp_path / "recipe.yaml"
        result = runner.invoke(app, ["init", str(output)])

        assert result.exit_code == 0
        assert "Recipe created" in result.output
        data = yaml.safe_load(output.read_text())
        assert set(data) == {"download", "loader", "telemetry"}
        assert data["download"]["cache_dir"] == "~/.cache/trellis"
        assert data["loader"]["on_dangling_reference"] == "error"

    def test_refuses_existing_file(self, runner, tmp_path):
        output = tmp_path / "recipe.yaml"
        output.write_text("keep: me\n")

        result = runner.invoke(app, ["init", str(output)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert output.read_text() == "keep: me\n"

    def test_force_overwrites(self, runner, tmp_path):
        output = tmp_path / "recipe.yaml"
        output.write_text("keep: me\n")

        result = runner.invoke(app, ["init", str(output), "--force"])

        assert result.exit_code == 0
        assert "download" in yaml.safe_load(output.read_text())


# TEST COMMAND
@pytest.mark.integration
class TestCLITest:
    """Tests for ``trellis test`` on folders and loading scripts."""

    def test_folder_reports_split_sizes(self, runner, pets_dir):
        result = runner.invoke(app, ["test", str(pets_dir)])

        assert result.exit_code == 0, result.output
        assert "default: train=3, validation=2" in result.output

    def test_script_default_configuration(self, runner, counter_script):
        result = runner.invoke(app, ["test", str(counter_script)])

        assert result.exit_code == 0, result.output
        assert "short: train=2" in result.output
        assert "long:" not in result.output

    def test_all_configs_saves_infos(self, runner, counter_script):
        result = runner.invoke(app, ["test", str(counter_script), "--all-configs", "--save-info"])

        assert result.exit_code == 0, result.output
        assert "long: train=5" in result.output
        saved = yaml.safe_load((counter_script.parent / "dataset_infos.yaml").read_text())
        assert set(saved) == {"short", "long"}
        assert saved["long"]["splits"] == {"train": {"num_examples": 5}}

    def test_name_and_all_configs_are_exclusive(self, runner, counter_script):
        result = runner.invoke(app, ["test", str(counter_script), "-n", "long", "--all-configs"])
        assert result.exit_code == 2

    def test_unknown_configuration(self, runner, counter_script):
        result = runner.invoke(app, ["test", str(counter_script), "--name", "huge"])

        assert result.exit_code == 1
        assert "huge" in result.output

    def test_missing_dataset(self, runner, tmp_path):
        result = runner.invoke(app, ["test", str(tmp_path / "nowhere")])
        assert result.exit_code == 1

    def test_strict_metadata_failure_and_override(self, runner, captions_dir, files):
        files.png(captions_dir / "train" / "stray.png")

        strict = runner.invoke(app, ["test", str(captions_dir)])
        lenient = runner.invoke(
            app, ["test", str(captions_dir), "--set", "loader.on_missing_metadata=drop"]
        )

        assert strict.exit_code == 1
        assert "stray.png" in strict.output
        assert lenient.exit_code == 0, lenient.output
        assert "default: train=3" in lenient.output

    def test_undecodable_metadata_is_reported(self, runner, captions_dir):
        (captions_dir / "train" / "metadata.jsonl").write_bytes(
            b'{"file_name": "0000.png", "text": "\xff\xfe"}\n'
        )

        result = runner.invoke(app, ["test", str(captions_dir)])

        assert result.exit_code == 1
        assert "not valid UTF-8" in result.output

    def test_missing_recipe(self, runner, pets_dir, tmp_path):
        result = runner.invoke(app, ["test", str(pets_dir), "-r", str(tmp_path / "none.yaml")])

        assert result.exit_code == 1
        assert "recipe not found" in result.output

    def test_invalid_override(self, runner, pets_dir):
        result = runner.invoke(app, ["test", str(pets_dir), "--set", "loader.bogus=1"])
        assert result.exit_code == 1


# PUBLISH COMMAND
@pytest.mark.integration
class TestCLIPublish:
    """Tests for ``trellis publish`` to a local hub."""

    def test_publish_folder(self, runner, pets_dir, tmp_path):
        hub = tmp_path / "hub"
        result = runner.invoke(app, ["publish", str(pets_dir), "acme/pets", "--hub-dir", str(hub)])

        assert result.exit_code == 0, result.output
        assert "Published acme/pets" in result.output
        assert (hub / "acme" / "pets" / "train" / "cat").is_dir()
        assert (hub / "acme" / "pets" / "dataset_info.yaml").is_file()

    def test_existing_destination_needs_overwrite(self, runner, pets_dir, tmp_path):
        args = ["publish", str(pets_dir), "acme/pets", "--hub-dir", str(tmp_path / "hub")]
        runner.invoke(app, args)

        again = runner.invoke(app, args)
        forced = runner.invoke(app, [*args, "--overwrite"])

        assert again.exit_code == 1
        assert "already exists" in again.output
        assert forced.exit_code == 0, forced.output

    def test_invalid_repo_id(self, runner, pets_dir, tmp_path):
        result = runner.invoke(
            app, ["publish", str(pets_dir), "not-a-repo", "--hub-dir", str(tmp_path / "hub")]
        )

        assert result.exit_code == 1
        assert "namespace/name" in result.output
