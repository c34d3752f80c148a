"""
Pipeline stages, in execution order: search, early research, scoring,
late research. Each module owns one stage's runner and the base class its
components derive from.
"""

from .base import Component, component_name
from .search import Searcher, run_search
from .research import Researcher, run_research, finalize_research
from .scoring import ScoreSheet, Scorer, AnswerScorer, PassageScorer, run_scoring
