"""
Search stage: fan the question text out to every provider and merge the
results into the document graph.

Providers run concurrently, each bounded by its own timeout measured from
the start of the stage. A provider that raises or times out is dropped and
reported on ``question.failed_providers``. Results are buffered and
appended in declaration order, so passage order never depends on which
provider finished first.
"""
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Iterable, List, Optional, Sequence

from ...graph import Passage, Question
from ...logger import get_logger
from .base import Component, component_name

logger = get_logger(__name__)


class Searcher(Component):
    """Base class for search providers.

    Subclasses implement ``fetch`` and return hits in rank order; ``query``
    stamps provenance and decides which hits are promoted to Answers.
    """

    def __init__(self, name: Optional[str] = None, timeout: Optional[float] = None,
                 promote_top: Optional[int] = None):
        super().__init__(name)
        self.timeout = timeout
        self.promote_top = promote_top

    def fetch(self, text: str) -> Iterable[Passage]:
        raise NotImplementedError

    def query(self, text: str) -> List[Passage]:
        passages = list(self.fetch(text))
        for rank, passage in enumerate(passages, start=1):
            passage.engine = passage.engine or self.name
            passage.rank = passage.rank or rank
            passage.top_hit = self.promote_top is None or rank <= self.promote_top
        return passages


def run_search(question: Question, searchers: Sequence, default_timeout: float) -> None:
    """Query every provider and append their passages in declared order."""
    if not searchers:
        logger.debug("No search providers configured")
        return

    text = question.raw_text
    buffered = []
    failed = []

    # One worker per provider so every timeout starts with the stage.
    executor = ThreadPoolExecutor(max_workers=len(searchers), thread_name_prefix="search")
    start = time.monotonic()
    try:
        futures = [executor.submit(searcher.query, text) for searcher in searchers]

        for searcher, future in zip(searchers, futures):
            name = component_name(searcher)
            limit = getattr(searcher, "timeout", None) or default_timeout
            remaining = max(0.0, start + limit - time.monotonic())
            try:
                passages = list(future.result(timeout=remaining))
            except FutureTimeout:
                future.cancel()
                logger.warning(f"Search provider '{name}' timed out after {limit:.1f}s; results omitted")
                failed.append(name)
                continue
            except Exception as e:
                logger.warning(f"Search provider '{name}' failed; results omitted: {e}")
                failed.append(name)
                continue
            buffered.append((name, passages))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    for name, passages in buffered:
        promoted = question.add_passages(passages)
        logger.debug(f"{name}: {len(passages)} passages, {len(promoted)} promoted")

    question.failed_providers.extend(failed)
