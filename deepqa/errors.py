"""
Exception hierarchy for the DeepQA pipeline.

Startup problems raise ConfigurationError; research pass failures raise
StageError carrying the failed Question; duplicate score names raise
DuplicateScoreError. Search provider and scorer failures never surface
as exceptions, they are recorded on the Question instead.
"""
from typing import Optional


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(PipelineError):
    """Missing, unreadable or invalid configuration (fatal at startup)."""


class SealedQuestionError(PipelineError):
    """A completed Question (or one of its Answers/Passages) was mutated."""


class DuplicateScoreError(PipelineError):
    """Two different scorers wrote the same score name on one entity."""

    def __init__(self, name: str, existing_scorer: str, new_scorer: str, target: str = ""):
        self.name = name
        self.existing_scorer = existing_scorer
        self.new_scorer = new_scorer
        self.target = target
        where = f" on {target!r}" if target else ""
        super().__init__(
            f"Score {name!r}{where} already written by {existing_scorer!r}; "
            f"refusing overwrite from {new_scorer!r}"
        )


class StageError(PipelineError):
    """A research pass failed; the rest of its stage was aborted."""

    def __init__(self, stage: str, component: str, question=None, message: Optional[str] = None):
        self.stage = stage
        self.component = component
        self.question = question
        super().__init__(message or f"{stage} pass {component!r} failed")
