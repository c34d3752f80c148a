"""
Scoring stage.

Scorers are independent of one another, so they run concurrently on a
thread pool. Each returns a ScoreSheet instead of writing to the graph;
the sheets are applied one after another in declared order once every
scorer has finished. A scorer that raises contributes nothing and is
recorded on ``question.failed_scorers``. Two scorers claiming the same
score name raise DuplicateScoreError, checked before any sheet is applied.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ...errors import DuplicateScoreError
from ...graph import Answer, Passage, Question, Scored
from ...logger import get_logger
from .base import Component, component_name

logger = get_logger(__name__)


class ScoreSheet:
    """Buffered score writes produced by one scorer."""

    def __init__(self, scorer: str):
        self.scorer = scorer
        self.entries: List[Tuple[Scored, str, float]] = []

    def add(self, target: Scored, name: str, value: float) -> None:
        self.entries.append((target, name, float(value)))

    def apply(self) -> None:
        for target, name, value in self.entries:
            target.add_score(name, value, self.scorer)

    def __iter__(self) -> Iterator[Tuple[Scored, str, float]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class Scorer(Component):
    """Base class for scorers. ``score`` must only read the question."""

    def sheet(self) -> ScoreSheet:
        return ScoreSheet(self.name)

    def score(self, question: Question) -> ScoreSheet:
        raise NotImplementedError


class AnswerScorer(Scorer):
    """Writes one score per Answer, named after the scorer."""

    def score_answer(self, question: Question, answer: Answer) -> Optional[float]:
        raise NotImplementedError

    def score(self, question: Question) -> ScoreSheet:
        sheet = self.sheet()
        for answer in question.answers:
            value = self.score_answer(question, answer)
            if value is not None:
                sheet.add(answer, self.name, value)
        return sheet


class PassageScorer(Scorer):
    """Writes one score per supporting Passage, named after the scorer."""

    def score_passage(self, question: Question, answer: Answer, passage: Passage) -> Optional[float]:
        raise NotImplementedError

    def score(self, question: Question) -> ScoreSheet:
        sheet = self.sheet()
        for answer in question.answers:
            for passage in answer.passages:
                value = self.score_passage(question, answer, passage)
                if value is not None:
                    sheet.add(passage, self.name, value)
        return sheet


def _check_sheets(sheets: Sequence[ScoreSheet]) -> None:
    """Raise DuplicateScoreError before any sheet is applied."""
    owners: Dict[Tuple[int, str], str] = {}
    for sheet in sheets:
        for target, name, _ in sheet:
            key = (id(target), name)
            owner = owners.get(key)
            if owner is None:
                existing = target.scores.get(name)
                owner = existing.scorer if existing is not None else None
            if owner is not None and owner != sheet.scorer:
                raise DuplicateScoreError(name, owner, sheet.scorer, target._label())
            owners[key] = sheet.scorer


def run_scoring(question: Question, scorers: Sequence, max_workers: int = 4) -> None:
    """Run scorers concurrently, then merge their sheets in declared order.

    Scorers may also write through ``add_score`` and return None. A
    DuplicateScoreError is never treated as a scorer failure: the first one
    in declared order is raised once every scorer has finished.
    """
    if not scorers:
        return

    sheets: List[ScoreSheet] = []
    duplicate: Optional[DuplicateScoreError] = None
    workers = max(1, min(max_workers, len(scorers)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="score") as executor:
        futures = [executor.submit(scorer.score, question) for scorer in scorers]
        for scorer, future in zip(scorers, futures):
            name = component_name(scorer)
            try:
                sheet = future.result()
            except DuplicateScoreError as e:
                duplicate = duplicate or e
                continue
            except Exception as e:
                logger.warning(f"Scorer '{name}' failed; its scores are omitted: {e}")
                logger.debug(f"Scorer '{name}' traceback", exc_info=True)
                question.failed_scorers.append(name)
                continue
            if sheet is not None:
                sheets.append(sheet)

    if duplicate is not None:
        raise duplicate

    # All-or-nothing: nothing is written when any sheet conflicts.
    _check_sheets(sheets)
    for sheet in sheets:
        sheet.apply()
