"""
Trellis Command-Line Interface.

Provides the ``trellis`` entry point with three commands:

- ``trellis init``    generate a starter recipe YAML with all defaults
- ``trellis test``    verify a loading script or dataset folder
- ``trellis publish`` materialize a dataset and publish it to a local hub

Usage:
    trellis init
    trellis test trellis/builders/food101.py --name breakfast --save-info
    trellis test data/pets --set loader.on_missing_metadata=drop
    trellis publish data/pets acme/pets --hub-dir ./hub
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

app = typer.Typer(
    name="trellis",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

RecipeOption = Annotated[
    Path | None,
    typer.Option("--recipe", "-r", help="YAML recipe with download/loader/telemetry settings."),
]
SetOption = Annotated[
    list[str] | None,
    typer.Option("--set", help="Override config value (repeatable): key.path=value"),
]
NameOption = Annotated[
    str | None,
    typer.Option("--name", "-n", help="Configuration name (default: the declared default)."),
]


# ── App callback ────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from importlib.metadata import version as pkg_version

        typer.echo(f"trellis-datasets {pkg_version('trellis-datasets')}")
        raise typer.Exit()


@app.callback()
def main(
    _: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Trellis: declarative image datasets."""
    ...  # pragma: no cover


# ── Commands ────────────────────────────────────────────────────────────────


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Argument(help="Where to write the recipe."),
    ] = Path("recipe.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace the file if it exists."),
    ] = False,
) -> None:
    """Write a recipe listing every download, loader and telemetry setting."""
    import yaml

    from trellis.core.config import Config

    if output.exists() and not force:
        typer.echo(f"Error: {output} already exists (pass --force to replace it)", err=True)
        raise typer.Exit(code=1)

    sections = Config().to_recipe_dict()
    sections["download"]["cache_dir"] = "~/.cache/trellis"
    body = yaml.safe_dump(sections, sort_keys=False, indent=2, allow_unicode=True)

    output.write_text(_INIT_HEADER.format(filename=output.name) + body, encoding="utf-8")
    typer.echo(f"Recipe created: {output}")
    typer.echo(f"Next: trellis test <dataset> --recipe {output}")


@app.command()
def test(
    path: Annotated[
        Path,
        typer.Argument(help="Loading script (.py) or dataset directory."),
    ],
    name: NameOption = None,
    all_configs: Annotated[
        bool,
        typer.Option("--all-configs", help="Verify every declared configuration."),
    ] = False,
    save_info: Annotated[
        bool,
        typer.Option("--save-info", help="Write dataset_infos.yaml next to the dataset."),
    ] = False,
    recipe: RecipeOption = None,
    set_: SetOption = None,
) -> None:
    """Run describe / plan_splits / generate and report split sizes."""
    from trellis.builder import load_script_module, verify_builder
    from trellis.builder.script import find_builder_class, instantiate
    from trellis.builder.verification import save_infos
    from trellis.core.logger import log_verification_summary
    from trellis.core.paths import INFO_FILENAME
    from trellis.exceptions import TrellisError
    from trellis.load import load_builder, make_fetcher

    if name is not None and all_configs:
        raise typer.BadParameter("--name and --all-configs are mutually exclusive")

    cfg = _load_config(recipe, set_)
    log = _setup_logging(cfg)

    try:
        if path.is_file() and path.suffix == ".py":
            builder_cls = find_builder_class(load_script_module(path))
            names = builder_cls.CONFIGS.names if all_configs else [name]
            builders = [instantiate(builder_cls, n) for n in names]
        else:
            builders = [load_builder(path, name, cfg)]

        info_path = (path if path.is_dir() else path.parent) / INFO_FILENAME
        results = []
        for builder in builders:
            fetcher = make_fetcher(path, builder, cfg)
            result = verify_builder(builder, fetcher)
            results.append(result)
            if save_info:
                save_infos([result], info_path, fetcher.recorded_checksums)

    except TrellisError as e:
        log.error(f"Verification failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    log_verification_summary(results, logger_instance=log)
    for result in results:
        sizes = ", ".join(f"{split}={n}" for split, n in result.split_sizes.items())
        typer.echo(f"{result.config_name}: {sizes}")
    if save_info:
        typer.echo(f"Infos saved: {info_path}")


@app.command()
def publish(
    path: Annotated[
        Path,
        typer.Argument(help="Loading script (.py) or dataset directory."),
    ],
    repo_id: Annotated[
        str,
        typer.Argument(help="Destination as namespace/name."),
    ],
    hub_dir: Annotated[
        Path,
        typer.Option("--hub-dir", help="Root directory of the local hub."),
    ] = Path("hub"),
    name: NameOption = None,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", help="Replace an existing dataset."),
    ] = False,
    recipe: RecipeOption = None,
    set_: SetOption = None,
) -> None:
    """Materialize a dataset and publish it under HUB_DIR/namespace/name."""
    from trellis.core.logger import log_dataset_summary
    from trellis.data_handler import LocalHubPublisher
    from trellis.exceptions import TrellisError
    from trellis.load import load_dataset

    cfg = _load_config(recipe, set_)
    log = _setup_logging(cfg)

    try:
        datasets = load_dataset(path, name=name, cfg=cfg)
        log_dataset_summary(datasets, logger_instance=log)
        target = LocalHubPublisher(hub_dir, overwrite=overwrite).publish(datasets, repo_id)
    except TrellisError as e:
        log.error(f"Publish failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Published {repo_id} to {target}")


# ── Private helpers ─────────────────────────────────────────────────────────

_INIT_HEADER = """\
# ==============================================================================
# Trellis Starter Recipe (generated by `trellis init`)
# ==============================================================================
# Usage:   trellis test <dataset> --recipe {filename}
#
# download:  resource fetcher (cache, retries, checksum verification)
# loader:    folder convention policies (labels, metadata join strictness)
# telemetry: log level and optional log directory
# ==============================================================================

"""


_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None, "none": None}


def _auto_cast(value: str) -> Any:
    """
    Interpret a ``--set`` value.

    Booleans and null literals are matched case-insensitively; otherwise the
    value becomes an int or float when it parses as one, else stays a string.
    """
    if value.lower() in _LITERALS:
        return _LITERALS[value.lower()]
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def _split_override(item: str) -> tuple[str, Any]:
    key, sep, raw = item.partition("=")
    if not sep:
        raise typer.BadParameter(f"Expected key=value, got '{item}'")
    key = key.strip()
    if not key:
        raise typer.BadParameter(f"Empty key in '{item}'")
    return key, _auto_cast(raw.strip())


def _parse_overrides(raw: list[str]) -> dict[str, Any]:
    """``["loader.drop_labels=false", ...]`` → ``{"loader.drop_labels": False, ...}``."""
    return dict(_split_override(item) for item in raw)


def _load_config(recipe: Path | None, set_: list[str] | None) -> Any:
    """Validated ``Config`` from the recipe and ``--set`` overrides; exits on bad input."""
    from trellis.core.config import Config
    from trellis.exceptions import TrellisConfigError

    if recipe is not None and not recipe.exists():
        typer.echo(f"Error: recipe not found: {recipe}", err=True)
        raise typer.Exit(code=1)

    overrides = _parse_overrides(set_ or [])
    try:
        return Config.from_recipe(recipe, overrides=overrides or None)
    except TrellisConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _setup_logging(cfg: Any) -> Any:
    from trellis.core.logger import Logger

    return Logger.setup(log_dir=cfg.telemetry.log_dir, level=cfg.telemetry.log_level)
