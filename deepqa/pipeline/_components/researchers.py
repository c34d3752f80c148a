"""
Early research passes.

Typical order: trim markup and qualifiers first so that equal answers
become textually equal, merge duplicates next, then retrieve supporting
passages keyed by the final candidate text.
"""
from typing import Dict, Iterator, List

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ...graph import Answer, Passage, Question
from ...logger import get_logger
from ...tools.search import get_knowledge_limiter
from ...tools.text import strip_markup, strip_qualifiers
from .._stages.research import Researcher

logger = get_logger(__name__)


def _all_passages(question: Question) -> Iterator[Passage]:
    seen = set()
    for passage in question.passages:
        seen.add(id(passage))
        yield passage
    for answer in question.answers:
        for passage in answer.passages:
            if id(passage) not in seen:
                seen.add(id(passage))
                yield passage


class MarkupTrimmer(Researcher):
    """Strip wiki markup and HTML from candidate texts and passages."""
    name = "markup_trimmer"

    def process(self, question: Question) -> None:
        for answer in question.answers:
            cleaned = strip_markup(answer.text)
            if cleaned and cleaned != answer.text:
                answer.text = cleaned
        for passage in _all_passages(question):
            passage.title = strip_markup(passage.title)
            passage.text = strip_markup(passage.text)


class QualifierTrimmer(Researcher):
    """Drop ", qualifier" and "(disambiguation)" suffixes from candidates.

    The untrimmed text is kept as an alias so label matching still sees it.
    """
    name = "qualifier_trimmer"

    def process(self, question: Question) -> None:
        for answer in question.answers:
            trimmed = strip_qualifiers(answer.text)
            if trimmed != answer.text:
                if answer.text not in answer.aliases:
                    answer.aliases.append(answer.text)
                answer.text = trimmed


class MergeDuplicates(Researcher):
    """Merge answers whose normalized candidate texts are equal.

    The first answer in question order survives. Colliding score names
    take the merged-in answer's value.
    """
    name = "merge_duplicates"

    def process(self, question: Question) -> None:
        survivors: Dict[str, Answer] = {}
        merged = 0
        for answer in list(question.answers):
            key = answer.normalized_text
            keep = survivors.get(key)
            if keep is None:
                survivors[key] = answer
                continue
            question.merge_answers(keep, answer)
            merged += 1
        if merged:
            logger.debug(f"Merged {merged} duplicate answers; {len(question.answers)} remain")


class PassageRetrieval(Researcher):
    """Search for supporting evidence for every candidate answer.

    The question text is combined with the candidate text and sent to a
    searcher; the results are attached to that answer, never promoted.
    """
    name = "passage_retrieval"

    def __init__(self, searcher, max_passages: int = 5, **kwargs):
        super().__init__(**kwargs)
        self.searcher = searcher
        self.max_passages = max_passages

    def process(self, question: Question) -> None:
        for answer in question.answers:
            passages = self.searcher.query(f"{question.raw_text} {answer.text}")
            passages = passages[:self.max_passages]
            for passage in passages:
                passage.top_hit = False
            answer.add_passages(passages)


class TypeTagger(Researcher):
    """Look up the ``rdf:type`` of every candidate on a SPARQL endpoint.

    Types are stored in ``answer.annotations["types"]``; an unknown
    resource simply gets an empty list.
    """
    name = "type_tagger"

    QUERY = "SELECT DISTINCT ?type WHERE {{ <{resource}> a ?type }} LIMIT {limit}"

    def __init__(self, sparql_url: str, timeout: int = 10,
                 resource_base: str = "http://dbpedia.org/resource/",
                 limit: int = 50, **kwargs):
        super().__init__(**kwargs)
        self.sparql_url = sparql_url
        self.timeout = timeout
        self.resource_base = resource_base
        self.limit = limit

    def _resource(self, text: str) -> str:
        return self.resource_base + text.strip().replace(" ", "_")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _lookup(self, text: str) -> List[str]:
        get_knowledge_limiter().wait()
        response = requests.get(
            self.sparql_url,
            params={
                "query": self.QUERY.format(resource=self._resource(text), limit=self.limit),
                "format": "application/sparql-results+json",
            },
            headers={"Accept": "application/sparql-results+json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        bindings = response.json().get("results", {}).get("bindings", [])
        return [b["type"]["value"] for b in bindings if "type" in b]

    def process(self, question: Question) -> None:
        for answer in question.answers:
            answer.annotations["types"] = self._lookup(answer.text)
