"""
Configuration classes, singletons, and loaders for the DeepQA pipeline.
"""
import copy
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from ..errors import ConfigurationError

load_dotenv()

DEFAULT_CONFIG_PATH = "config.yaml"


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================

class ComponentEntry(BaseModel):
    """One declared pipeline component, e.g. ``merge_duplicates`` or
    ``{name: tavily, cache: true, timeout: 5}``."""
    name: str
    cache: bool = False
    timeout: Optional[float] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_name(cls, data):
        if isinstance(data, str):
            return {"name": data}
        return data


class PipelineConfig(BaseModel):
    searchers: List[ComponentEntry] = Field(default_factory=list)
    early_research: List[ComponentEntry] = Field(default_factory=lambda: [
        ComponentEntry(name="markup_trimmer"),
        ComponentEntry(name="qualifier_trimmer"),
        ComponentEntry(name="merge_duplicates"),
    ])
    scorers: List[ComponentEntry] = Field(default_factory=lambda: [
        ComponentEntry(name="passage_count"),
        ComponentEntry(name="best_rank"),
        ComponentEntry(name="correct"),
    ])
    late_research: List[ComponentEntry] = Field(default_factory=lambda: [
        ComponentEntry(name="run_statistics"),
    ])


class SearchConfig(BaseModel):
    timeout_seconds: float = 20.0
    results_per_query: int = 10
    promote_top: Optional[int] = None  # None = promote every hit
    depth: str = "basic"
    include_domains: List[str] = Field(default_factory=list)
    exclude_domains: List[str] = Field(default_factory=lambda: ["pinterest.com", "quora.com"])
    cache_directory: str = "data/search_cache"


class ScoringConfig(BaseModel):
    max_workers: int = 4
    rank_score: str = "best_rank"


class KnowledgeConfig(BaseModel):
    sparql_url: Optional[str] = None
    timeout: int = 10


class OutputConfig(BaseModel):
    directory: str = "output"
    export_prefix: str = "features"


class RateLimitsConfig(BaseModel):
    search_calls_per_minute: int = 60
    knowledge_calls_per_minute: int = 120


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "logs/deepqa.log"
    max_file_size: int = 10
    backup_count: int = 5


class Config(BaseModel):
    """Main configuration model"""
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    rate_limits: RateLimitsConfig = Field(default_factory=RateLimitsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# ENVIRONMENT SETTINGS
# =============================================================================

class Settings(BaseSettings):
    """Environment-based settings"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # API Keys
    tavily_api_key: Optional[str] = Field(default=None, alias="TAVILY_API_KEY")

    # Knowledge endpoint (overrides knowledge.sparql_url when set)
    sparql_url: Optional[str] = Field(default=None, alias="SPARQL_URL")

    config_path: str = Field(default=DEFAULT_CONFIG_PATH, alias="DEEPQA_CONFIG")


# =============================================================================
# CONFIGURATION LOADER
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from a YAML file.

    A missing, unreadable or invalid file is fatal: the pipeline must not
    start serving questions with a half-understood configuration.
    """
    path = Path(config_path or get_env_settings().config_path)

    if not path.exists():
        raise ConfigurationError(
            f"Missing configuration file '{path}'. "
            "Create one by copying config.example.yaml."
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Unreadable configuration file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")

    try:
        config = Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in '{path}': {e}") from e

    _apply_env_overrides(config)
    return config


def get_settings() -> Settings:
    """Get environment settings"""
    return Settings()


# Global instances
_config: Optional[Config] = None
_settings: Optional[Settings] = None
_config_lock = threading.Lock()
_settings_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance, loading it on first use."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_config()
    return _config


def _apply_env_overrides(config: Config) -> None:
    """Override config values with env vars when set."""
    settings = get_env_settings()
    if settings.sparql_url:
        config.knowledge.sparql_url = settings.sparql_url


def get_env_settings() -> Settings:
    """Get global settings instance"""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = get_settings()
    return _settings


def set_config(config: Optional[Config]) -> None:
    """Replace the global config singleton (thread-safe)."""
    global _config
    with _config_lock:
        _config = config


def set_env_settings(settings: Optional[Settings]) -> None:
    """Replace the global settings singleton (thread-safe)."""
    global _settings
    with _settings_lock:
        _settings = settings


def apply_overrides(base: Config, overrides: dict) -> Config:
    """
    Deep-copy *base* config and apply dotted-key overrides.

    Keys use dot notation matching the Config model hierarchy, e.g.
    ``"search.timeout_seconds": 5``.  String values are coerced to
    the target field's type (int / float / bool).
    """
    data = copy.deepcopy(base.model_dump())

    for dotted_key, value in overrides.items():
        parts = dotted_key.split(".")
        target = data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        field_name = parts[-1]

        # Type coercion: inspect the current value to decide target type
        current = target.get(field_name)
        if isinstance(value, str):
            if isinstance(current, bool):
                value = value.lower() in ("true", "1", "yes", "on")
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)
            elif isinstance(current, list):
                value = [v.strip() for v in value.split(",") if v.strip()]

        target[field_name] = value

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid override: {e}") from e
