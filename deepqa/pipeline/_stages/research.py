"""
Research stages (early and late).

Passes carry no aliasing contract: any pass may read or rewrite any part of
the question. They therefore run one at a time in declared order, and a
failing pass aborts the rest of its stage because later passes rely on the
invariants the earlier ones establish.
"""
from typing import Optional, Sequence

from ...config.types import StageName
from ...errors import DuplicateScoreError, SealedQuestionError, StageError
from ...graph import Question
from ...logger import get_logger
from .base import Component, component_name

logger = get_logger(__name__)


class Researcher(Component):
    """Base class for research passes."""

    def process(self, question: Question) -> None:
        raise NotImplementedError

    def finalize(self) -> None:
        """Called once after every question of a run or batch was processed."""


def run_research(question: Question, researchers: Sequence, stage: StageName) -> None:
    """Run ``process`` of every pass, strictly sequentially."""
    for researcher in researchers:
        name = component_name(researcher)
        logger.debug(f"{stage.value}: {name}")
        try:
            researcher.process(question)
        except (DuplicateScoreError, SealedQuestionError):
            raise
        except Exception as e:
            raise StageError(
                stage.value, name, question,
                f"{stage.value} pass '{name}' failed: {e}",
            ) from e


def finalize_research(researchers: Sequence, stage: StageName,
                      question: Optional[Question] = None) -> None:
    """Run ``finalize`` of every pass, in the same declared order."""
    for researcher in researchers:
        name = component_name(researcher)
        try:
            researcher.finalize()
        except Exception as e:
            raise StageError(
                stage.value, name, question,
                f"{stage.value} pass '{name}' failed to finalize: {e}",
            ) from e
