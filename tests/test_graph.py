"""
Tests for the document graph (Question, Answer, Passage, Score).
"""
import pytest
from pydantic import ValidationError

from deepqa.config.types import QuestionStatus
from deepqa.errors import DuplicateScoreError, SealedQuestionError
from deepqa.graph import Answer, Passage, Question


def _passage(title, top_hit=True, rank=1, engine="web"):
    return Passage(title=title, text=f"About {title}", engine=engine, rank=rank, top_hit=top_hit)


# ============================================================================
# Question construction
# ============================================================================

class TestQuestion:

    def test_defaults(self):
        q = Question(raw_text="Who wrote Hamlet?")
        assert q.status == QuestionStatus.PENDING
        assert q.answers == []
        assert q.passages == []
        assert q.known_answer is None
        assert q.failed_stage is None
        assert len(q.id) == 32

    def test_ids_are_unique(self):
        assert Question(raw_text="a").id != Question(raw_text="a").id

    def test_known_answer_from_text(self):
        q = Question(raw_text="Capital of France?", known_answer="Paris")
        assert isinstance(q.known_answer, Answer)
        assert q.known_answer.text == "Paris"

    def test_raw_text_is_immutable(self):
        q = Question(raw_text="original")
        with pytest.raises(ValidationError):
            q.raw_text = "changed"


# ============================================================================
# Passages and promotion
# ============================================================================

class TestAddPassages:

    def test_top_hits_are_promoted(self):
        q = Question(raw_text="q")
        promoted = q.add_passages([_passage("Paris"), _passage("Lyon", top_hit=False)])

        assert len(q.passages) == 2
        assert [a.text for a in promoted] == ["Paris"]
        assert q.answers == promoted

    def test_promoted_answer_owns_exactly_its_passage(self):
        q = Question(raw_text="q")
        passage = _passage("Paris")
        (answer,) = q.add_passages([passage])
        assert len(answer.passages) == 1
        assert answer.passages[0] is passage

    def test_title_falls_back_to_text(self):
        q = Question(raw_text="q")
        (answer,) = q.add_passages([Passage(text="  Marseille ", top_hit=True)])
        assert answer.text == "Marseille"

    def test_empty_candidate_is_not_promoted(self):
        q = Question(raw_text="q")
        promoted = q.add_passages([Passage(title="", text="", top_hit=True)])
        assert promoted == []
        assert len(q.passages) == 1


# ============================================================================
# Scores
# ============================================================================

class TestScores:

    def test_add_and_read(self):
        answer = Answer(text="Paris")
        answer.add_score("best_rank", 0.5, "best_rank")
        assert answer.score("best_rank") == 0.5
        assert answer.scores["best_rank"].scorer == "best_rank"
        assert answer.score("missing") is None
        assert answer.score("missing", 0.0) == 0.0

    def test_same_scorer_may_overwrite(self):
        answer = Answer(text="Paris")
        answer.add_score("x", 1.0, "scorer_a")
        answer.add_score("x", 2.0, "scorer_a")
        assert answer.score("x") == 2.0

    def test_different_scorer_raises(self):
        answer = Answer(text="Paris")
        answer.add_score("x", 1.0, "scorer_a")
        with pytest.raises(DuplicateScoreError) as exc_info:
            answer.add_score("x", 2.0, "scorer_b")
        err = exc_info.value
        assert err.name == "x"
        assert err.existing_scorer == "scorer_a"
        assert err.new_scorer == "scorer_b"
        assert answer.score("x") == 1.0

    def test_passage_scores(self):
        passage = _passage("Paris")
        passage.add_score("passage_rank", 1.0, "passage_rank")
        assert passage.score_map() == {"passage_rank": 1.0}


# ============================================================================
# Merging and matching
# ============================================================================

class TestMergeAnswers:

    def test_union_and_last_write_wins(self):
        q = Question(raw_text="q")
        keep, absorb = q.add_passages([_passage("Paris"), _passage("Paris, France", rank=2)])
        keep.add_score("shared", 1.0, "s")
        keep.add_score("only_keep", 3.0, "s")
        absorb.add_score("shared", 9.0, "s")

        result = q.merge_answers(keep, absorb)

        assert result is keep
        assert q.answers == [keep]
        assert len(keep.passages) == 2
        assert keep.score("shared") == 9.0
        assert keep.score("only_keep") == 3.0
        assert "Paris, France" in keep.aliases

    def test_merge_with_self_is_noop(self):
        q = Question(raw_text="q")
        (answer,) = q.add_passages([_passage("Paris")])
        assert q.merge_answers(answer, answer) is answer
        assert len(q.answers) == 1

    def test_foreign_answer_rejected(self):
        q = Question(raw_text="q")
        (answer,) = q.add_passages([_passage("Paris")])
        with pytest.raises(ValueError):
            q.merge_answers(answer, Answer(text="Lyon"))

    def test_alias_matching(self):
        q = Question(raw_text="q", known_answer="paris france")
        keep, absorb = q.add_passages([_passage("Paris"), _passage("Paris, France")])
        q.merge_answers(keep, absorb)
        assert q.answer_for("PARIS") is keep
        assert q.answer_for("paris, france") is keep
        assert q.is_correct(keep)

    def test_is_correct_without_known_answer(self):
        q = Question(raw_text="q")
        (answer,) = q.add_passages([_passage("Paris")])
        assert not q.is_correct(answer)


class TestRanked:

    def test_descending_with_unscored_last(self):
        q = Question(raw_text="q")
        a, b, c = q.add_passages([_passage("A"), _passage("B"), _passage("C")])
        a.add_score("s", 0.2, "s")
        c.add_score("s", 0.9, "s")
        assert q.ranked("s") == [c, a, b]


# ============================================================================
# Sealing
# ============================================================================

class TestSeal:

    @pytest.fixture
    def sealed(self):
        q = Question(raw_text="q", known_answer="Paris")
        q.add_passages([_passage("Paris")])
        q.seal()
        return q

    def test_question_fields_rejected(self, sealed):
        assert sealed.sealed
        with pytest.raises(SealedQuestionError):
            sealed.status = QuestionStatus.PENDING

    def test_add_passages_rejected(self, sealed):
        with pytest.raises(SealedQuestionError):
            sealed.add_passages([_passage("Lyon")])

    def test_answer_mutation_rejected(self, sealed):
        answer = sealed.answers[0]
        with pytest.raises(SealedQuestionError):
            answer.text = "Lyon"
        with pytest.raises(SealedQuestionError):
            answer.add_score("x", 1.0, "s")
        with pytest.raises(SealedQuestionError):
            answer.add_passages([_passage("Lyon")])

    def test_passage_mutation_rejected(self, sealed):
        with pytest.raises(SealedQuestionError):
            sealed.passages[0].title = "Lyon"

    def test_known_answer_sealed(self, sealed):
        with pytest.raises(SealedQuestionError):
            sealed.known_answer.text = "Lyon"

    def test_reads_still_work(self, sealed):
        assert sealed.answer_for("paris") is sealed.answers[0]
        assert sealed.ranked("anything") == sealed.answers

    def test_containers_are_read_only(self, sealed):
        answer = sealed.answers[0]
        with pytest.raises(SealedQuestionError):
            sealed.answers.append(Answer(text="Lyon"))
        with pytest.raises(SealedQuestionError):
            sealed.passages += [_passage("Lyon")]
        with pytest.raises(SealedQuestionError):
            answer.scores.clear()
        with pytest.raises(SealedQuestionError):
            answer.annotations["x"] = 1
        with pytest.raises(SealedQuestionError):
            answer.aliases.append("Paname")
        with pytest.raises(SealedQuestionError):
            del answer.passages[0]
        with pytest.raises(SealedQuestionError):
            sealed.failed_scorers.append("late")
        assert len(sealed.answers) == 1
        assert len(sealed.passages) == 1
        assert answer.annotations == {}

    def test_nested_annotation_values_are_read_only(self):
        q = Question(raw_text="q")
        (answer,) = q.add_passages([_passage("Paris")])
        answer.annotations["types"] = ["city"]
        q.seal()
        with pytest.raises(SealedQuestionError):
            answer.annotations["types"].append("capital")

    def test_sealed_question_still_serializes(self, sealed):
        data = sealed.model_dump()
        assert data["answers"][0]["text"] == "Paris"
        assert data["passages"][0]["title"] == "Paris"
