"""
Question-answering orchestrator for the DeepQA pipeline.

Every question goes through four stages in a fixed order:
  Stage 1: Search          (providers fan out concurrently)
  Stage 2: Early research  (sequential passes, then their finalize)
  Stage 3: Scoring         (scorers fan out concurrently)
  Stage 4: Late research   (sequential passes, then their finalize)

The orchestrator keeps no per-question state beyond the run timestamp, so
independent questions may be asked from several threads at once as long
as the configured components do not share mutable state across runs.
"""
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from ..config.settings import Config, get_config, get_env_settings
from ..config.types import QuestionStatus, StageName
from ..errors import PipelineError, StageError
from ..graph import Question
from ..logger import configure_logging, format_duration, get_logger
from ._stages import finalize_research, run_research, run_scoring, run_search
from .registry import PipelineLayout, build_layout

logger = get_logger(__name__)


class QAPipeline:
    """
    The standard question-answering pipeline.

    Configuration is read once, here; a missing file, an unknown component
    or a missing credential raises ConfigurationError before any question
    is served.
    """

    def __init__(self, config: Optional[Config] = None,
                 layout: Optional[PipelineLayout] = None,
                 run_start: Optional[datetime] = None):
        self.config = config or get_config()
        configure_logging(self.config.logging)
        self.run_start = run_start or datetime.now(timezone.utc)
        self.layout = layout if layout is not None else build_layout(
            self.config, get_env_settings(), self.run_start
        )
        logger.debug(f"Pipeline layout: {self.layout.describe()}")

    def ask(self, question: Union[str, Question]) -> Question:
        """
        Run the full pipeline on one question.

        Args:
            question: The question text, or a pre-built Question (for
                example one carrying a known answer)

        Returns:
            The completed, sealed Question

        Raises:
            StageError: a research pass failed; ``error.question`` is the
                failed Question with ``failed_stage`` set
            DuplicateScoreError: two scorers wrote the same score name
        """
        question = self._prepare(question)
        return self._run(question, finalize=True)

    def ask_batch(self, questions: Iterable[Union[str, Question]]) -> List[Question]:
        """
        Answer several questions, finalizing every research pass once at the end.

        A question whose research stage fails is returned with
        ``status == "failed"`` and the batch moves on to the next one.
        """
        results = []
        for item in questions:
            question = self._prepare(item)
            try:
                self._run(question, finalize=False)
            except StageError as e:
                logger.warning(f"Continuing batch after failed question {question.id[:8]}: {e}")
            results.append(question)

        finalize_research(self.layout.early_research, StageName.EARLY_RESEARCH)
        finalize_research(self.layout.late_research, StageName.LATE_RESEARCH)
        return results

    def _prepare(self, question: Union[str, Question]) -> Question:
        if isinstance(question, str):
            if not question.strip():
                raise PipelineError("Question text must not be empty")
            return Question(raw_text=question, run_start=self.run_start)

        if question.sealed or question.status != QuestionStatus.PENDING:
            raise PipelineError(f"Question {question.id} has already been asked")
        if question.run_start is None:
            question.run_start = self.run_start
        return question

    def _enter(self, question: Question, stage: StageName) -> None:
        question.stage = stage
        logger.debug(f"[{question.id[:8]}] {stage.value}")

    def _run(self, question: Question, finalize: bool) -> Question:
        started = time.perf_counter()
        question.status = QuestionStatus.RUNNING
        layout = self.layout

        try:
            self._enter(question, StageName.SEARCH)
            run_search(question, layout.searchers, self.config.search.timeout_seconds)

            self._enter(question, StageName.EARLY_RESEARCH)
            run_research(question, layout.early_research, StageName.EARLY_RESEARCH)
            if finalize:
                finalize_research(layout.early_research, StageName.EARLY_RESEARCH, question)

            self._enter(question, StageName.SCORING)
            run_scoring(question, layout.scorers, self.config.scoring.max_workers)

            self._enter(question, StageName.LATE_RESEARCH)
            run_research(question, layout.late_research, StageName.LATE_RESEARCH)
            if finalize:
                finalize_research(layout.late_research, StageName.LATE_RESEARCH, question)

        except Exception as e:
            self._fail(question, e)
            raise

        question.stage = None
        question.status = QuestionStatus.COMPLETE
        question.seal()

        logger.info(
            f"Answered '{question.raw_text[:60]}': {len(question.answers)} answers, "
            f"{len(question.passages)} passages in "
            f"{format_duration(time.perf_counter() - started)}"
        )
        return question

    def _fail(self, question: Question, error: Exception) -> None:
        question.failed_stage = question.stage
        question.status = QuestionStatus.FAILED
        question.error = str(error)
        question.seal()
        if isinstance(error, StageError) and error.question is None:
            error.question = question
        stage = question.failed_stage.value if question.failed_stage else "unknown"
        logger.error(f"Question '{question.raw_text[:60]}' failed during {stage}: {error}")


def answer_question(text: str, known_answer: Optional[str] = None) -> Question:
    """
    Convenience entry point: build a pipeline from the global config and ask once.
    """
    pipeline = QAPipeline()
    return pipeline.ask(Question(raw_text=text, known_answer=known_answer))
