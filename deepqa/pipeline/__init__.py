"""Pipeline package for DeepQA."""
from .orchestrator import QAPipeline, answer_question  # noqa: F401
from .registry import PipelineLayout, build_layout, register  # noqa: F401
from ._stages import (  # noqa: F401
    AnswerScorer,
    PassageScorer,
    Researcher,
    ScoreSheet,
    Scorer,
    Searcher,
)
