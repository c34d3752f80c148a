"""Search providers: Tavily web search and an on-disk caching wrapper."""
import hashlib
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tavily import TavilyClient
from tenacity import retry, stop_after_attempt, wait_exponential

from ...graph import Passage
from ...logger import get_logger
from ...tools.files import read_json, write_json
from ...tools.search import get_search_limiter
from .._stages.search import Searcher

logger = get_logger(__name__)


class TavilySearcher(Searcher):
    """Web search through the Tavily API. Each result becomes one Passage."""
    name = "tavily"

    def __init__(self, api_key: str, max_results: int = 10, depth: str = "basic",
                 include_domains: Optional[List[str]] = None,
                 exclude_domains: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.client = TavilyClient(api_key=api_key)
        self.max_results = max_results
        self.depth = depth
        self.include_domains = include_domains or []
        self.exclude_domains = exclude_domains or []

    @retry(stop=stop_after_attempt(2), wait=wait_exponential(multiplier=1, min=1, max=4), reraise=True)
    def _search(self, text: str) -> Dict[str, Any]:
        get_search_limiter().wait()
        logger.debug(f"Searching Tavily: {text}")
        return self.client.search(
            text,
            search_depth=self.depth,
            max_results=self.max_results,
            include_domains=self.include_domains or None,
            exclude_domains=self.exclude_domains or None,
        )

    def fetch(self, text: str) -> Iterable[Passage]:
        response = self._search(text)
        for r in response.get('results', []):
            yield Passage(
                title=r.get('title', ''),
                text=r.get('content', ''),
                reference=r.get('url', ''),
            )


class CachingSearcher(Searcher):
    """Serve repeated queries from JSON files instead of the wrapped provider.

    Entries live under ``<directory>/<provider>/<sha256>.json``; a corrupt
    entry is ignored and refetched.
    """

    def __init__(self, inner: Searcher, directory: str):
        super().__init__(name=inner.name, timeout=inner.timeout, promote_top=inner.promote_top)
        self.inner = inner
        self.directory = Path(directory)

    def _path(self, text: str) -> Path:
        digest = hashlib.sha256(f"{self.inner.name}\n{text}".encode("utf-8")).hexdigest()
        return self.directory / self.inner.name / f"{digest}.json"

    def query(self, text: str) -> List[Passage]:
        path = self._path(text)
        cached = read_json(path)
        if isinstance(cached, list):
            logger.debug(f"Cache hit for {self.inner.name}: {text}")
            return [Passage.model_validate(item) for item in cached]

        passages = self.inner.query(text)
        write_json(path, [p.model_dump(mode="json") for p in passages])
        return passages
