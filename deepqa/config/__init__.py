"""
Configuration package: settings models, loaders and shared enums.
"""
from .settings import (
    ComponentEntry,
    Config,
    KnowledgeConfig,
    LoggingConfig,
    OutputConfig,
    PipelineConfig,
    RateLimitsConfig,
    ScoringConfig,
    SearchConfig,
    Settings,
    apply_overrides,
    get_config,
    get_env_settings,
    load_config,
    set_config,
    set_env_settings,
)
from .types import ComponentKind, QuestionStatus, StageName
