"""
DeepQA - staged evidence-gathering and scoring pipeline for free-text questions
"""

__version__ = "1.0.0"
__author__ = "DeepQA"

from .config import get_config, get_env_settings, load_config
from .errors import (
    PipelineError,
    ConfigurationError,
    DuplicateScoreError,
    SealedQuestionError,
    StageError,
)
from .graph import Question, Answer, Passage, Score
from .pipeline import (
    QAPipeline,
    PipelineLayout,
    answer_question,
    build_layout,
    register,
    Searcher,
    Researcher,
    Scorer,
    AnswerScorer,
    PassageScorer,
    ScoreSheet,
)
from .logger import get_logger

__all__ = [
    # Config
    "get_config",
    "get_env_settings",
    "load_config",

    # Errors
    "PipelineError",
    "ConfigurationError",
    "DuplicateScoreError",
    "SealedQuestionError",
    "StageError",

    # Document graph
    "Question",
    "Answer",
    "Passage",
    "Score",

    # Pipeline
    "QAPipeline",
    "PipelineLayout",
    "answer_question",
    "build_layout",
    "register",

    # Component bases
    "Searcher",
    "Researcher",
    "Scorer",
    "AnswerScorer",
    "PassageScorer",
    "ScoreSheet",

    # Logger
    "get_logger",
]
