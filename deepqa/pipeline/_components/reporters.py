"""
Late research passes: score combination, training-record export and run
statistics.

CombineScores derives answer-level features from what the scorers wrote,
so it runs before the export. The export and the statistics accumulate
across every question and write or print their output on ``finalize()``.
"""
import csv
import threading
from datetime import datetime
from typing import Dict, List, Optional

from ...graph import Answer, Question
from ...logger import get_logger, print_statistics_table
from ...tools.files import ensure_directory, generate_file_path
from .._stages.research import Researcher

logger = get_logger(__name__)

BASE_COLUMNS = ["question_id", "question", "answer", "label"]


class CombineScores(Researcher):
    """Fold passage scores into answer scores and add a weighted total.

    For every score name N found on an answer's passages the answer gets
    ``N_max`` and ``N_mean``. With ``weights`` set, ``combined`` is the
    weighted sum of the answer's scores, a missing score counting as 0.
    Everything is written under this pass's own scorer name.
    """
    name = "combine_scores"

    def __init__(self, weights: Optional[Dict[str, float]] = None, **kwargs):
        super().__init__(**kwargs)
        self.weights = {k: float(v) for k, v in (weights or {}).items()}

    def _passage_features(self, answer: Answer) -> Dict[str, float]:
        values: Dict[str, List[float]] = {}
        for passage in answer.passages:
            for score_name, value in passage.score_map().items():
                values.setdefault(score_name, []).append(value)
        features = {}
        for score_name, found in values.items():
            features[f"{score_name}_max"] = max(found)
            features[f"{score_name}_mean"] = sum(found) / len(found)
        return features

    def process(self, question: Question) -> None:
        for answer in question.answers:
            for score_name, value in sorted(self._passage_features(answer).items()):
                answer.add_score(score_name, value, self.name)
            if self.weights:
                total = sum(w * answer.score(n, 0.0) for n, w in self.weights.items())
                answer.add_score("combined", total, self.name)


class FeatureExport(Researcher):
    """Write one CSV row per answer with every score as a column.

    ``label`` is 1/0 when the question has a known answer and empty
    otherwise. The file is rewritten in full on each ``finalize()``.
    """
    name = "feature_export"

    def __init__(self, output_dir: str, run_start: datetime, prefix: str = "features", **kwargs):
        super().__init__(**kwargs)
        stamp = run_start.strftime("%Y%m%d_%H%M%S")
        self.path = generate_file_path(f"{prefix}_{stamp}", output_dir, ".csv")
        self.output_dir = output_dir
        self._rows: List[Dict[str, object]] = []
        self._score_names = set()
        self._lock = threading.Lock()

    def process(self, question: Question) -> None:
        rows = []
        for answer in question.answers:
            label = ""
            if question.known_answer is not None:
                label = 1 if question.is_correct(answer) else 0
            row = {
                "question_id": question.id,
                "question": question.raw_text,
                "answer": answer.text,
                "label": label,
            }
            row.update(answer.score_map())
            rows.append(row)
        with self._lock:
            self._rows.extend(rows)
            for row in rows:
                self._score_names.update(k for k in row if k not in BASE_COLUMNS)

    def finalize(self) -> None:
        with self._lock:
            if not self._rows:
                return
            columns = BASE_COLUMNS + sorted(self._score_names)
            ensure_directory(self.output_dir)
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=columns, restval="")
                writer.writeheader()
                writer.writerows(self._rows)
            logger.info(f"Exported {len(self._rows)} training records to {self.path}")


class RunStatistics(Researcher):
    """Count questions, answers and label hits; report them on finalize."""
    name = "run_statistics"

    def __init__(self, rank_score: str = "best_rank", show_table: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.rank_score = rank_score
        self.show_table = show_table
        self.stats: Dict[str, int] = {
            "questions": 0,
            "answers": 0,
            "passages": 0,
            "labeled": 0,
            "correct_found": 0,
            "correct_top": 0,
            "failed_providers": 0,
            "failed_scorers": 0,
        }
        self._lock = threading.Lock()

    def _top(self, question: Question) -> Optional[Answer]:
        ranked = question.ranked(self.rank_score)
        return ranked[0] if ranked else None

    def process(self, question: Question) -> None:
        labeled = question.known_answer is not None
        found = labeled and any(question.is_correct(a) for a in question.answers)
        top = self._top(question)
        with self._lock:
            self.stats["questions"] += 1
            self.stats["answers"] += len(question.answers)
            self.stats["passages"] += len(question.passages)
            self.stats["failed_providers"] += len(question.failed_providers)
            self.stats["failed_scorers"] += len(question.failed_scorers)
            if labeled:
                self.stats["labeled"] += 1
            if found:
                self.stats["correct_found"] += 1
                if top is not None and question.is_correct(top):
                    self.stats["correct_top"] += 1

    def finalize(self) -> None:
        with self._lock:
            stats = dict(self.stats)
        logger.info(
            f"Run statistics: {stats['questions']} questions, {stats['answers']} answers, "
            f"{stats['correct_top']}/{stats['labeled']} labeled questions answered correctly"
        )
        if self.show_table:
            print_statistics_table(stats)
