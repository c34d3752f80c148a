"""
Document graph shared by every pipeline stage.

A Question aggregates Answers and the Passages returned by search.
Answers aggregate Scores and supporting Passages and carry a candidate
text. Passages carry their own Scores plus provenance (engine, reference,
rank). Stages mutate the graph only through the methods below; once the
pipeline returns, ``Question.seal()`` makes the whole graph read-only.
"""
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .config.types import QuestionStatus, StageName
from .errors import DuplicateScoreError, SealedQuestionError
from .tools.text import normalize_text


class Score(BaseModel):
    """A named numeric feature and the scorer that owns it."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    scorer: str


def _refuse(self, *args, **kwargs):
    raise SealedQuestionError(f"Cannot modify a sealed {self._owner}")


class _SealedList(list):
    """List that rejects every in-place change."""
    append = extend = insert = remove = pop = clear = sort = reverse = _refuse
    __setitem__ = __delitem__ = __iadd__ = __imul__ = _refuse

    def __init__(self, items, owner: str):
        super().__init__(items)
        self._owner = owner


class _SealedDict(dict):
    """Dict that rejects every in-place change."""
    __setitem__ = __delitem__ = __ior__ = _refuse
    clear = pop = popitem = setdefault = update = _refuse

    def __init__(self, items, owner: str):
        super().__init__(items)
        self._owner = owner


def _freeze(value, owner: str):
    # Graph entities seal themselves; only plain containers are wrapped here.
    if isinstance(value, list):
        return _SealedList((_freeze(v, owner) for v in value), owner)
    if isinstance(value, dict):
        return _SealedDict(((k, _freeze(v, owner)) for k, v in value.items()), owner)
    return value


class _Node(BaseModel):
    """Base for graph entities: an append lock and a seal flag."""
    _lock: Any = PrivateAttr(default_factory=threading.RLock)
    _sealed: bool = PrivateAttr(default=False)

    def __setattr__(self, name, value):
        if not name.startswith("_") and getattr(self, "_sealed", False):
            raise SealedQuestionError(f"Cannot set {name!r} on a sealed {type(self).__name__}")
        super().__setattr__(name, value)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self):
        if self._sealed:
            raise SealedQuestionError(f"{type(self).__name__} is sealed")

    def _seal(self):
        """Replace every list and dict field with a read-only copy."""
        owner = type(self).__name__
        for name, value in list(self.__dict__.items()):
            if isinstance(value, (list, dict)):
                self.__dict__[name] = _freeze(value, owner)
        self._sealed = True


class Scored(_Node):
    scores: Dict[str, Score] = Field(default_factory=dict)

    def _label(self) -> str:
        return type(self).__name__

    def add_score(self, name: str, value: float, scorer: str) -> None:
        """Record a score owned by *scorer*.

        The same scorer may overwrite its own key; a different scorer
        writing an existing key raises DuplicateScoreError.
        """
        self._check_open()
        with self._lock:
            existing = self.scores.get(name)
            if existing is not None and existing.scorer != scorer:
                raise DuplicateScoreError(name, existing.scorer, scorer, self._label())
            self.scores[name] = Score(name=name, value=float(value), scorer=scorer)

    def score(self, name: str, default: Optional[float] = None) -> Optional[float]:
        entry = self.scores.get(name)
        return entry.value if entry is not None else default

    def score_map(self) -> Dict[str, float]:
        return {name: s.value for name, s in self.scores.items()}


class Passage(Scored):
    """A retrieved text span used as evidence."""
    title: str = ""
    text: str = ""
    reference: str = ""
    engine: str = ""
    rank: int = 0
    top_hit: bool = False

    @property
    def candidate_text(self) -> str:
        return (self.title or self.text).strip()

    def _label(self) -> str:
        return f"passage {self.engine}:{self.reference or self.title}"


class Answer(Scored):
    """A candidate response plus its evidence and scores."""
    text: str
    passages: List[Passage] = Field(default_factory=list)
    annotations: Dict[str, Any] = Field(default_factory=dict)
    aliases: List[str] = Field(default_factory=list)

    @property
    def normalized_text(self) -> str:
        return normalize_text(self.text)

    def _label(self) -> str:
        return f"answer {self.text!r}"

    def add_passages(self, passages: Iterable[Passage]) -> None:
        """Attach supporting evidence without promoting it."""
        self._check_open()
        with self._lock:
            self.passages.extend(passages)

    def matches(self, text: str) -> bool:
        """True when *text* normalizes to this answer's text or an alias."""
        target = normalize_text(text)
        if not target:
            return False
        return target == self.normalized_text or any(
            target == normalize_text(alias) for alias in self.aliases
        )

    def _absorb(self, other: "Answer") -> None:
        # Union of evidence; scores and annotations are last-write-wins per key.
        with self._lock:
            self.passages.extend(other.passages)
            self.scores.update(other.scores)
            self.annotations.update(other.annotations)
            for alias in [other.text, *other.aliases]:
                if alias != self.text and alias not in self.aliases:
                    self.aliases.append(alias)

    def _seal(self):
        for passage in self.passages:
            passage._seal()
        super()._seal()


class Question(_Node):
    """One end-to-end query being answered."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    raw_text: str = Field(frozen=True)
    run_start: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    answers: List[Answer] = Field(default_factory=list)
    passages: List[Passage] = Field(default_factory=list)
    known_answer: Optional[Answer] = None
    annotations: Dict[str, Any] = Field(default_factory=dict)

    # Run bookkeeping
    status: QuestionStatus = QuestionStatus.PENDING
    stage: Optional[StageName] = None
    failed_stage: Optional[StageName] = None
    error: Optional[str] = None
    failed_providers: List[str] = Field(default_factory=list)
    failed_scorers: List[str] = Field(default_factory=list)

    @field_validator("known_answer", mode="before")
    @classmethod
    def _known_answer_from_text(cls, value):
        if isinstance(value, str):
            return {"text": value}
        return value

    def add_passages(self, passages: Iterable[Passage]) -> List[Answer]:
        """Append passages; promote every top hit into a new Answer.

        Returns the promoted Answers, each owning exactly its Passage.
        """
        self._check_open()
        promoted = []
        with self._lock:
            for passage in passages:
                self.passages.append(passage)
                if passage.top_hit and passage.candidate_text:
                    answer = Answer(text=passage.candidate_text, passages=[passage])
                    self.answers.append(answer)
                    promoted.append(answer)
        return promoted

    def merge_answers(self, keep: Answer, absorb: Answer) -> Answer:
        """Fold *absorb* into *keep* and drop it from ``answers``.

        Passages are unioned, and *absorb*'s scores replace *keep*'s on
        colliding names. The absorbed text is kept as an alias.
        """
        self._check_open()
        if keep is absorb:
            return keep
        with self._lock:
            index = next((i for i, a in enumerate(self.answers) if a is absorb), None)
            if index is None or not any(a is keep for a in self.answers):
                raise ValueError("Both answers must belong to this question")
            keep._absorb(absorb)
            del self.answers[index]
        return keep

    def answer_for(self, text: str) -> Optional[Answer]:
        """Find the live Answer whose normalized text (or alias) equals *text*."""
        for answer in self.answers:
            if answer.matches(text):
                return answer
        return None

    def is_correct(self, answer: Answer) -> bool:
        if self.known_answer is None:
            return False
        known = [self.known_answer.text, *self.known_answer.aliases]
        return any(answer.matches(text) for text in known)

    def ranked(self, score_name: str) -> List[Answer]:
        """Answers ordered by *score_name*, highest first, unscored last."""
        def key(answer):
            value = answer.score(score_name)
            return (value is None, -(value or 0.0))
        return sorted(self.answers, key=key)

    def seal(self) -> None:
        """Make the question and everything it owns read-only."""
        with self._lock:
            for answer in self.answers:
                answer._seal()
            for passage in self.passages:
                passage._seal()
            if self.known_answer is not None:
                self.known_answer._seal()
            self._seal()
