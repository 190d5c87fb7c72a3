"""Tests for the weight table and its YAML configuration."""

import dataclasses
import logging

import pytest

from lead_engine.scoring.errors import WeightConfigError
from lead_engine.scoring.weights import (
    DEFAULT_TARGET_REGIONS,
    WeightTable,
    load_weight_table,
)


class TestWeightTable:

    def test_known_label(self, weights):
        assert weights.weight("lead_source", "Referral") == 30

    def test_unknown_label_is_zero(self, weights):
        assert weights.weight("industry", "Mining") == 0

    def test_unknown_category_is_zero(self, weights):
        assert weights.weight("zodiac_sign", "Leo") == 0

    def test_none_label_is_zero(self, weights):
        assert weights.weight("role_in_decision", None) == 0

    def test_scalars(self, weights):
        assert weights.base_score == 5
        assert weights.notes_added == 10
        assert weights.follow_up_scheduled == 10
        assert weights.status_contacted == 15
        assert weights.no_update_30_days == -10
        assert weights.status_cold == -30

    def test_table_is_immutable(self, weights):
        with pytest.raises(dataclasses.FrozenInstanceError):
            weights.stale_after_days = 10
        with pytest.raises(TypeError):
            weights.categories["industry"]["Mining"] = 50
        with pytest.raises(TypeError):
            weights.scalars["base_score"] = 50


class TestFromMapping:

    def test_empty_mapping_uses_defaults(self):
        table = WeightTable.from_mapping(None)
        assert table.to_dict() == WeightTable().to_dict()
        assert table.target_regions == DEFAULT_TARGET_REGIONS

    def test_labels_merge_over_defaults(self):
        table = WeightTable.from_mapping({"weights": {"industry": {"Mining": 12}}})
        assert table.weight("industry", "Mining") == 12
        assert table.weight("industry", "Technology") == 15

    def test_negative_weights_are_accepted(self):
        table = WeightTable.from_mapping({"weights": {"lead_source": {"Spam list": -25}}})
        assert table.weight("lead_source", "Spam list") == -25

    def test_non_integer_weight_rejected(self):
        with pytest.raises(WeightConfigError):
            WeightTable.from_mapping({"weights": {"base_score": "five"}})

    def test_category_must_be_mapping(self):
        with pytest.raises(WeightConfigError):
            WeightTable.from_mapping({"weights": {"industry": [1, 2]}})

    def test_unknown_category_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            table = WeightTable.from_mapping({"weights": {"favourite_color": {"blue": 5}}})
        assert "favourite_color" not in table.categories
        assert "favourite_color" in caplog.text

    def test_target_regions_must_be_list(self):
        with pytest.raises(WeightConfigError):
            WeightTable.from_mapping({"target_regions": "London"})


class TestLoadWeightTable:

    def test_load_from_yaml(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(
            "scoring:\n"
            "  target_regions: [Ontario]\n"
            "  stale_after_days: 14\n"
            "  weights:\n"
            "    role_in_decision:\n"
            "      Decision Maker: 50\n"
            "    status_cold: -20\n",
            encoding="utf-8",
        )
        table = load_weight_table(config)

        assert table.weight("role_in_decision", "Decision Maker") == 50
        assert table.status_cold == -20
        assert table.target_regions == ("Ontario",)
        assert table.stale_after_days == 14

    def test_missing_explicit_file_raises(self, tmp_path):
        with pytest.raises(WeightConfigError):
            load_weight_table(tmp_path / "nope.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("", encoding="utf-8")
        assert load_weight_table(config).to_dict() == WeightTable().to_dict()

    def test_bundled_example_matches_defaults(self):
        assert load_weight_table().to_dict() == WeightTable().to_dict()
