"""Bookkeeping scorers: evidence counts, search ranks and the training label."""
from typing import Optional

from ...graph import Answer, Passage, Question
from .._stages.scoring import AnswerScorer, PassageScorer


class PassageCount(AnswerScorer):
    """Number of supporting passages."""
    name = "passage_count"

    def score_answer(self, question: Question, answer: Answer) -> Optional[float]:
        return float(len(answer.passages))


class BestRank(AnswerScorer):
    """Reciprocal of the best search rank among the answer's passages."""
    name = "best_rank"

    def score_answer(self, question: Question, answer: Answer) -> Optional[float]:
        ranks = [p.rank for p in answer.passages if p.rank > 0]
        if not ranks:
            return None
        return 1.0 / min(ranks)


class Correct(AnswerScorer):
    """1.0 when the answer matches the known answer, else 0.0.

    Writes nothing for questions without a known answer.
    """
    name = "correct"

    def score_answer(self, question: Question, answer: Answer) -> Optional[float]:
        if question.known_answer is None:
            return None
        return 1.0 if question.is_correct(answer) else 0.0


class PassageRank(PassageScorer):
    name = "passage_rank"

    def score_passage(self, question: Question, answer: Answer, passage: Passage) -> Optional[float]:
        if passage.rank <= 0:
            return None
        return 1.0 / passage.rank
