"""
Tests for deepqa.config: configuration loading, environment settings and overrides.
"""
import pytest

from deepqa.config import (
    ComponentEntry, Config, ComponentKind, QuestionStatus, Settings, StageName,
    apply_overrides, get_config, get_env_settings, load_config, set_env_settings,
)
from deepqa.errors import ConfigurationError


class TestConfigDefaults:
    def test_default_config_creation(self):
        config = Config()
        assert config.search.timeout_seconds == 20.0
        assert config.search.promote_top is None
        assert config.scoring.rank_score == "best_rank"
        assert config.output.directory == "output"
        assert config.knowledge.sparql_url is None

    def test_default_pipeline_order(self):
        pipeline = Config().pipeline
        assert pipeline.searchers == []
        assert [e.name for e in pipeline.early_research] == [
            "markup_trimmer", "qualifier_trimmer", "merge_duplicates",
        ]
        assert [e.name for e in pipeline.scorers] == ["passage_count", "best_rank", "correct"]
        assert [e.name for e in pipeline.late_research] == ["run_statistics"]

    def test_component_entry_from_bare_name(self):
        entry = ComponentEntry.model_validate("merge_duplicates")
        assert entry.name == "merge_duplicates"
        assert entry.cache is False
        assert entry.timeout is None
        assert entry.options == {}

    def test_component_entry_from_mapping(self):
        config = Config(pipeline={"searchers": [{"name": "tavily", "cache": True, "timeout": 5}]})
        (entry,) = config.pipeline.searchers
        assert entry.cache is True
        assert entry.timeout == 5.0


class TestEnums:
    def test_question_status_values(self):
        assert QuestionStatus.PENDING.value == "pending"
        assert QuestionStatus.RUNNING.value == "running"
        assert QuestionStatus.COMPLETE.value == "complete"
        assert QuestionStatus.FAILED.value == "failed"

    def test_stage_names(self):
        assert [s.value for s in StageName] == [
            "search", "early_research", "scoring", "late_research",
        ]

    def test_component_kinds(self):
        assert {k.value for k in ComponentKind} == {"searcher", "researcher", "scorer"}


# ============================================================================
# Loading
# ============================================================================

class TestLoadConfig:
    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "pipeline:\n"
            "  scorers: [best_rank]\n"
            "search:\n"
            "  timeout_seconds: 3\n"
        )
        config = load_config(str(path))
        assert [e.name for e in config.pipeline.scorers] == ["best_rank"]
        assert config.search.timeout_seconds == 3.0
        # Unlisted sections keep their defaults
        assert config.scoring.max_workers == 4

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == Config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Missing configuration file"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("search: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Unreadable"):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("search:\n  timeout_seconds: soon\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(str(path))

    def test_sparql_url_from_environment(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("knowledge:\n  sparql_url: http://file.test/sparql\n")
        set_env_settings(Settings(_env_file=None, sparql_url="http://env.test/sparql"))
        assert load_config(str(path)).knowledge.sparql_url == "http://env.test/sparql"

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("scoring:\n  max_workers: 2\n")
        monkeypatch.setenv("DEEPQA_CONFIG", str(path))
        set_env_settings(None)
        assert get_env_settings().config_path == str(path)
        assert load_config().scoring.max_workers == 2

    def test_example_config_is_valid(self):
        from pathlib import Path
        example = Path(__file__).resolve().parent.parent / "config.example.yaml"
        config = load_config(str(example))
        assert [e.name for e in config.pipeline.searchers] == ["tavily"]
        assert config.pipeline.early_research[3].options["searcher"] == "tavily"
        assert [e.name for e in config.pipeline.late_research] == [
            "combine_scores", "feature_export", "run_statistics",
        ]
        assert config.pipeline.late_research[0].options["weights"]["best_rank"] == 1.0

    def test_global_config_singleton(self, test_config):
        assert get_config() is test_config


# ============================================================================
# Overrides
# ============================================================================

class TestApplyOverrides:
    def test_simple_override(self):
        base = Config()
        result = apply_overrides(base, {"search.results_per_query": 3})
        assert result.search.results_per_query == 3
        # Original unchanged
        assert base.search.results_per_query == 10

    def test_int_coercion(self):
        result = apply_overrides(Config(), {"scoring.max_workers": "8"})
        assert result.scoring.max_workers == 8

    def test_float_coercion(self):
        result = apply_overrides(Config(), {"search.timeout_seconds": "2.5"})
        assert result.search.timeout_seconds == 2.5

    def test_optional_field(self):
        result = apply_overrides(Config(), {"search.promote_top": "3"})
        assert result.search.promote_top == 3

    def test_list_override(self):
        result = apply_overrides(Config(), {"pipeline.scorers": "best_rank, correct"})
        assert [e.name for e in result.pipeline.scorers] == ["best_rank", "correct"]

    def test_multiple_overrides(self):
        result = apply_overrides(Config(), {
            "search.depth": "advanced",
            "output.export_prefix": "train",
            "logging.level": "DEBUG",
        })
        assert result.search.depth == "advanced"
        assert result.output.export_prefix == "train"
        assert result.logging.level == "DEBUG"

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError):
            apply_overrides(Config(), {"scoring.max_workers": [1, 2]})
