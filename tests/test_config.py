"""
RecommendationConfig validation and JSON loading.

Run:
    pytest tests/test_config.py -v
"""

import json

import pytest
from pydantic import ValidationError

from feed_server.config import ServerConfig
from recommender import InvalidConfiguration, RecommendationConfig


class TestRecommendationConfig:
    def test_defaults_are_valid(self):
        config = RecommendationConfig()
        assert config.feed_size == 5
        assert sum(config.scorer_weights().values()) == pytest.approx(1.0)
        assert list(config.scorer_weights()) == ["similarity", "vote_history", "recency", "source"]

    def test_weights_not_summing_to_one_rejected(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(weight_similarity=0.5)

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(
                weight_similarity=-0.1,
                weight_vote_history=0.6,
                weight_recency=0.4,
                weight_source=0.1,
            )

    def test_feed_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            RecommendationConfig(feed_size=0)

    @pytest.mark.parametrize("field, value", [
        ("favored_source_score", 1.5),
        ("neutral_score", -0.1),
        ("recency_floor", 1.2),
        ("recency_decay_days", 0),
        ("recency_decay_days", -30.0),
        ("second_occurrence_penalty", -0.01),
        ("repeat_occurrence_penalty", -0.05),
    ])
    def test_out_of_range_parameters_rejected(self, field, value):
        with pytest.raises(ValidationError, match=field):
            RecommendationConfig(**{field: value})

    def test_boundary_parameters_accepted(self):
        config = RecommendationConfig(
            favored_source_score=1.0,
            neutral_score=0.0,
            recency_floor=0.0,
            second_occurrence_penalty=0.0,
            repeat_occurrence_penalty=0.0,
        )
        assert config.favored_source_score == 1.0


class TestFromDict:
    def test_nested_sections_merged_with_defaults(self):
        config = RecommendationConfig.from_dict({
            "feed": {"feed_size": 8},
            "weights": {"similarity": 0.25, "vote_history": 0.25, "recency": 0.25, "source": 0.25},
            "diversity": {"max_per_topic": 3, "penalties": {"second": 0.01, "repeat": 0.03}},
            "unknown_section": {"ignored": True},
        })
        assert config.feed_size == 8
        assert config.weight_source == 0.25
        assert config.max_per_topic == 3
        assert config.second_occurrence_penalty == 0.01
        assert config.repeat_occurrence_penalty == 0.03
        assert config.freshness_window_days == 90

    def test_invalid_weights_raise_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            RecommendationConfig.from_dict({"weights": {"similarity": 0.9}})

    def test_out_of_range_source_score_raises_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            RecommendationConfig.from_dict({"source": {"favored_source_score": 2}})

    def test_negative_penalty_raises_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            RecommendationConfig.from_dict({"diversity": {"penalties": {"second": -0.02}}})

    def test_server_config_loads_algorithm_file(self, tmp_path):
        path = tmp_path / "algorithm.json"
        path.write_text(json.dumps({"feed": {"feed_size": 3}}))
        config = ServerConfig(algorithm_config_path=path)
        assert config.load_algorithm_config().feed_size == 3
        assert config.validate() == (True, [])

    def test_server_config_reports_missing_files(self, tmp_path):
        config = ServerConfig(data_source="json", catalog_json_path=tmp_path / "missing.json")
        ok, errors = config.validate()
        assert not ok
        assert any("CATALOG_JSON_PATH" in e for e in errors)
