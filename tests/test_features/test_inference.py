"""
Test Suite for feature inference from metadata rows.
"""

import pytest

from trellis.features import BBoxes, Sequence, Value, infer_feature, infer_features, merge_features


@pytest.mark.unit
class TestInferFeature:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (True, Value("bool")),
            (3, Value("int64")),
            (0.5, Value("float64")),
            ("text", Value("string")),
        ],
    )
    def test_scalars(self, value, expected):
        assert infer_feature(value) == expected

    def test_none_is_undecided(self):
        assert infer_feature(None) is None

    def test_bbox_key_becomes_bboxes(self):
        assert infer_feature([[1, 2, 3, 4]], "bbox") == BBoxes()

    def test_other_key_list_of_lists_is_sequence(self):
        assert infer_feature([[1, 2, 3, 4]], "points") == Sequence(Sequence(Value("int64")))

    def test_empty_list_is_undecided(self):
        assert infer_feature([], "tags") is None


@pytest.mark.unit
class TestMergeFeatures:

    def test_int_and_float_widen(self):
        assert merge_features(Value("int64"), Value("float64")) == Value("float64")

    def test_first_wins_on_conflict(self):
        assert merge_features(Value("string"), Value("int64")) == Value("string")

    def test_struct_keys_union(self):
        merged = merge_features({"a": Value("int64")}, {"b": Value("string")})
        assert merged == {"a": Value("int64"), "b": Value("string")}


@pytest.mark.unit
class TestInferFeatures:

    def test_object_detection_rows(self):
        rows = [
            {"file_name": "a.png", "objects": {"bbox": [[0, 0, 2, 2]], "categories": [1]}},
            {"file_name": "b.png", "objects": {"bbox": [], "categories": []}},
        ]
        features = infer_features(rows, exclude={"file_name"})
        assert list(features) == ["objects"]
        assert features["objects"] == {"bbox": BBoxes(), "categories": Sequence(Value("int64"))}

    def test_all_null_column_defaults_to_string(self):
        features = infer_features([{"note": None}, {"note": None}])
        assert features["note"] == Value("string")

    def test_column_order_follows_first_appearance(self):
        features = infer_features([{"b": 1}, {"a": "x", "b": 2}])
        assert list(features) == ["b", "a"]
