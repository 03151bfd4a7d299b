"""
Food-101 Loading Script.

101 food categories, 101,000 images: 750 training and 250 test images per
class. The images ship in a single gzipped tar archive laid out as
``food-101/images/<class>/<id>.jpg``; split membership comes from separate
``train.txt`` / ``test.txt`` files listing ``<class>/<id>`` per line.

The archive is streamed sequentially; each split reads its membership file
completely and keeps the archive entries it names, labelled with their
class directory.

Source: https://data.vision.ee.ethz.ch/cvl/datasets_extra/food-101/
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

from trellis.builder import BuilderConfig, ConfigRegistry, DatasetInfo, SplitPlan
from trellis.builder.protocol import ResourceFetcher
from trellis.data_handler import ArchiveMembershipJoin, read_membership
from trellis.features import ClassLabel, Features, Image

_CITATION = """\
@inproceedings{bossard14,
  title = {Food-101 -- Mining Discriminative Components with Random Forests},
  author = {Bossard, Lukas and Guillaumin, Matthieu and Van Gool, Luc},
  booktitle = {European Conference on Computer Vision},
  year = {2014}
}
"""

_HOMEPAGE = "https://data.vision.ee.ethz.ch/cvl/datasets_extra/food-101/"
_LICENSE = "Research use only; images collected from foodspotting.com"

_IMAGE_DIR = "food-101/images"
_LABEL_SEGMENT = 2


class Food101:
    """Food-101 builder; configurations select subsets of the classes."""

    CONFIGS = ConfigRegistry.from_yaml(Path(__file__).with_name("food101.yaml"))

    def __init__(self, config: BuilderConfig) -> None:
        self.config = config

    @property
    def class_names(self) -> tuple[str, ...]:
        return tuple(self.config.params["classes"])

    def describe(self) -> DatasetInfo:
        return DatasetInfo(
            description=self.config.description or "Food-101 image classification.",
            features=Features({"image": Image(), "label": ClassLabel(self.class_names)}),
            supervised_keys=("image", "label"),
            homepage=_HOMEPAGE,
            license=_LICENSE,
            citation=_CITATION,
            config_name=self.config.name,
            version=self.config.version,
        )

    def plan_splits(self, fetcher: ResourceFetcher) -> dict[str, SplitPlan]:
        archive = fetcher.download(self.config.data_url)
        membership = fetcher.download(self.config.metadata_urls)
        return {
            split: SplitPlan(
                name=split,
                gen_kwargs={
                    "entries": fetcher.iter_archive(archive),
                    "membership_path": membership[split],
                },
            )
            for split in membership
        }

    def generate(self, plan: SplitPlan) -> Iterator[tuple[str, dict[str, Any]]]:
        return plan.bind(self._generate_examples)

    def _generate_examples(
        self, entries: Any, membership_path: Path
    ) -> Iterator[tuple[str, dict[str, Any]]]:
        classes = set(self.class_names)
        members = frozenset(
            member
            for member in read_membership(membership_path)
            if member.split("/", 1)[0] in classes
        )
        join = ArchiveMembershipJoin(
            image_dir=_IMAGE_DIR,
            members=members,
            label_segment=_LABEL_SEGMENT,
            key_mode="relative",
        )
        for entry_path, file_obj, label in join.select(entries):
            yield entry_path, {
                "image": {"path": entry_path, "bytes": file_obj.read()},
                "label": label,
            }


BUILDER = Food101
