"""
Test Suite for the archive membership join and the Food-101 script.

The Food-101 builder is driven against a miniature archive and membership
files on disk, so its real configuration registry is used without any
network access.
"""

from pathlib import Path

import pytest

from trellis.builder import BuilderConfig, materialize, prepare, stream_split
from trellis.builder.script import find_builder_class, load_script_module
from trellis.data_handler import ArchiveIterable, ArchiveMembershipJoin, read_membership
from trellis.exceptions import MetadataFormatError, ResourceUnavailableError, SchemaMismatchError

FOOD101_SCRIPT = Path(__file__).resolve().parents[2] / "trellis" / "builders" / "food101.py"


# MEMBERSHIP JOIN
@pytest.mark.unit
class TestArchiveMembershipJoin:

    @pytest.fixture
    def archive(self, files, tmp_path):
        return files.tar(
            tmp_path / "images.tar",
            {
                "images/cats/0001.jpg": b"1",
                "images/dogs/0002.jpg": b"2",
                "images/dogs/0003.jpg": b"3",
                "README.txt": b"readme",
            },
            mode="w",
        )

    def test_only_members_are_yielded(self, archive):
        join = ArchiveMembershipJoin("images", frozenset({"0001", "0002"}), label_segment=1)
        selected = [
            (path, f.read(), label) for path, f, label in join.select(ArchiveIterable(archive))
        ]
        assert selected == [
            ("images/cats/0001.jpg", b"1", "cats"),
            ("images/dogs/0002.jpg", b"2", "dogs"),
        ]

    def test_relative_key_mode(self):
        join = ArchiveMembershipJoin(
            "food-101/images/", frozenset(), label_segment=2, key_mode="relative"
        )
        assert join.entry_key("food-101/images/pho/12.jpg") == "pho/12"
        assert join.entry_key("food-101/meta/train.txt") is None
        assert join.label_of("food-101/images/pho/12.jpg") == "pho"

    def test_missing_label_segment(self):
        join = ArchiveMembershipJoin("images", frozenset({"x"}), label_segment=4)
        with pytest.raises(SchemaMismatchError, match="segment 4"):
            join.label_of("images/x.jpg")

    def test_read_membership(self, tmp_path):
        path = tmp_path / "train.txt"
        path.write_text("pho/1\n\n pho/2 \n", encoding="utf-8")
        assert read_membership(path) == frozenset({"pho/1", "pho/2"})

    def test_read_membership_missing(self, tmp_path):
        with pytest.raises(ResourceUnavailableError, match="membership"):
            read_membership(tmp_path / "absent.txt")

    def test_read_membership_invalid_utf8(self, tmp_path):
        path = tmp_path / "train.txt"
        path.write_bytes(b"pho/1\n\xffpho/2\n")
        with pytest.raises(MetadataFormatError, match="train.txt: not valid UTF-8"):
            read_membership(path)


# FOOD-101
@pytest.fixture
def food101_cls():
    return find_builder_class(load_script_module(FOOD101_SCRIPT))


@pytest.fixture
def mini_food(files, tmp_path):
    """Archive with 3 classes x 2 images plus train/test membership files."""
    members = {}
    for cls in ("churros", "pho", "waffles"):
        for idx in ("1", "2"):
            members[f"food-101/images/{cls}/{idx}.jpg"] = files.png_bytes()
    members["food-101/meta/classes.txt"] = b"churros\npho\nwaffles\n"
    archive = files.tar(tmp_path / "food-101.tar.gz", members)

    train = tmp_path / "train.txt"
    train.write_text("churros/1\npho/1\nwaffles/1\n", encoding="utf-8")
    test = tmp_path / "test.txt"
    test.write_text("churros/2\npho/2\nwaffles/2\n", encoding="utf-8")
    return archive, train, test


def _config(mini_food, classes):
    archive, train, test = mini_food
    return BuilderConfig(
        name="mini",
        data_url=str(archive),
        metadata_urls={"train": str(train), "test": str(test)},
        params={"classes": classes},
    )


@pytest.mark.unit
class TestFood101Registry:

    def test_declared_configs(self, food101_cls):
        assert food101_cls.CONFIGS.names == ["full", "breakfast", "dinner"]
        assert food101_cls.CONFIGS.select().name == "full"

    def test_full_has_101_classes(self, food101_cls):
        builder = food101_cls(food101_cls.CONFIGS.select())
        assert builder.describe().features["label"].num_classes == 101

    def test_subsets_are_within_full(self, food101_cls):
        full = set(food101_cls.CONFIGS.get("full").params["classes"])
        for name in ("breakfast", "dinner"):
            subset = food101_cls.CONFIGS.get(name).params["classes"]
            assert set(subset) < full

    def test_configs_share_resources(self, food101_cls):
        breakfast = food101_cls.CONFIGS.get("breakfast")
        dinner = food101_cls.CONFIGS.get("dinner")
        assert breakfast.data_url == dinner.data_url
        assert set(breakfast.metadata_urls) == {"train", "test"}

    def test_supervised_keys(self, food101_cls):
        info = food101_cls(food101_cls.CONFIGS.get("dinner")).describe()
        assert info.supervised_keys == ("image", "label")
        assert info.config_name == "dinner"


@pytest.mark.integration
class TestFood101Generation:

    def test_all_classes(self, food101_cls, mini_food, fetcher):
        builder = food101_cls(_config(mini_food, ["churros", "pho", "waffles"]))
        datasets = materialize(builder, fetcher)

        assert datasets.num_rows == {"train": 3, "test": 3}
        assert datasets["train"].keys == [
            "food-101/images/churros/1.jpg",
            "food-101/images/pho/1.jpg",
            "food-101/images/waffles/1.jpg",
        ]
        assert datasets["test"].column("label") == [0, 1, 2]
        assert datasets["train"].decoded(0)["image"].size == (4, 4)

    def test_subset_configuration(self, food101_cls, mini_food, fetcher):
        builder = food101_cls(_config(mini_food, ["waffles", "churros"]))
        datasets = materialize(builder, fetcher, split="train")

        train = datasets["train"]
        assert [train.features["label"].int2str(i) for i in train.column("label")] == [
            "churros",
            "waffles",
        ]

    def test_regeneration_is_identical(self, food101_cls, mini_food, fetcher):
        builder = food101_cls(_config(mini_food, ["pho"]))
        plan = prepare(builder, fetcher)["test"]
        first = [(key, ex["image"]["bytes"]) for key, ex in stream_split(builder, plan)]
        second = [(key, ex["image"]["bytes"]) for key, ex in stream_split(builder, plan)]
        assert first == second
        assert [key for key, _ in first] == ["food-101/images/pho/2.jpg"]

    def test_missing_membership_file(self, food101_cls, mini_food, fetcher, tmp_path):
        config = _config(mini_food, ["pho"]).model_copy(
            update={"metadata_urls": {"train": str(tmp_path / "nope.txt")}}
        )
        with pytest.raises(ResourceUnavailableError) as exc:
            prepare(food101_cls(config), fetcher)
        assert exc.value.locator.endswith("nope.txt")
