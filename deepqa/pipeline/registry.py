"""
Component registry and pipeline layout.

The order of every stage is a configuration value: ``pipeline.searchers``,
``pipeline.early_research``, ``pipeline.scorers`` and
``pipeline.late_research`` list component names, and ``build_layout``
resolves them through the factories registered here. Unknown names and
missing credentials are configuration errors raised at startup.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from ..config.settings import ComponentEntry, Config, Settings
from ..config.types import ComponentKind, StageName
from ..errors import ConfigurationError
from ._components import (
    BestRank,
    CachingSearcher,
    CombineScores,
    Correct,
    FeatureExport,
    MarkupTrimmer,
    MergeDuplicates,
    PassageCount,
    PassageRank,
    PassageRetrieval,
    QualifierTrimmer,
    RunStatistics,
    TavilySearcher,
    TypeTagger,
)
from ._stages.base import component_name


@dataclass(frozen=True)
class BuildContext:
    """What a factory may consult while building a component."""
    config: Config
    settings: Settings
    run_start: datetime


Factory = Callable[[ComponentEntry, BuildContext], object]

_FACTORIES: Dict[ComponentKind, Dict[str, Factory]] = {kind: {} for kind in ComponentKind}


def register(kind: ComponentKind, name: str):
    """Decorator registering a component factory under *name*."""
    def decorator(factory: Factory) -> Factory:
        _FACTORIES[kind][name] = factory
        return factory
    return decorator


def registered(kind: ComponentKind) -> List[str]:
    return sorted(_FACTORIES[kind])


def build_component(kind: ComponentKind, entry: ComponentEntry, ctx: BuildContext):
    factory = _FACTORIES[kind].get(entry.name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown {kind.value} '{entry.name}'. "
            f"Available: {', '.join(registered(kind)) or '(none)'}"
        )
    return factory(entry, ctx)


# =============================================================================
# LAYOUT
# =============================================================================

@dataclass(frozen=True)
class PipelineLayout:
    """Ordered component tuples for each stage."""
    searchers: Tuple = ()
    early_research: Tuple = ()
    scorers: Tuple = ()
    late_research: Tuple = ()

    def describe(self) -> Dict[str, List[str]]:
        return {
            StageName.SEARCH.value: [component_name(c) for c in self.searchers],
            StageName.EARLY_RESEARCH.value: [component_name(c) for c in self.early_research],
            StageName.SCORING.value: [component_name(c) for c in self.scorers],
            StageName.LATE_RESEARCH.value: [component_name(c) for c in self.late_research],
        }


def build_layout(config: Config, settings: Settings,
                 run_start: Optional[datetime] = None) -> PipelineLayout:
    """Instantiate every configured component, in declared order."""
    ctx = BuildContext(config, settings, run_start or datetime.now(timezone.utc))
    pipeline = config.pipeline
    return PipelineLayout(
        searchers=tuple(build_component(ComponentKind.SEARCHER, e, ctx) for e in pipeline.searchers),
        early_research=tuple(build_component(ComponentKind.RESEARCHER, e, ctx) for e in pipeline.early_research),
        scorers=tuple(build_component(ComponentKind.SCORER, e, ctx) for e in pipeline.scorers),
        late_research=tuple(build_component(ComponentKind.RESEARCHER, e, ctx) for e in pipeline.late_research),
    )


# =============================================================================
# BUILT-IN FACTORIES
# =============================================================================

def _with_cache(searcher, entry: ComponentEntry, ctx: BuildContext):
    if entry.cache:
        return CachingSearcher(searcher, ctx.config.search.cache_directory)
    return searcher


@register(ComponentKind.SEARCHER, "tavily")
def _tavily(entry: ComponentEntry, ctx: BuildContext):
    if not ctx.settings.tavily_api_key:
        raise ConfigurationError("TAVILY_API_KEY not set in environment")
    search = ctx.config.search
    options = entry.options
    searcher = TavilySearcher(
        api_key=ctx.settings.tavily_api_key,
        max_results=options.get("max_results", search.results_per_query),
        depth=options.get("depth", search.depth),
        include_domains=options.get("include_domains", search.include_domains),
        exclude_domains=options.get("exclude_domains", search.exclude_domains),
        timeout=entry.timeout,
        promote_top=options.get("promote_top", search.promote_top),
    )
    return _with_cache(searcher, entry, ctx)


@register(ComponentKind.RESEARCHER, "markup_trimmer")
def _markup_trimmer(entry: ComponentEntry, ctx: BuildContext):
    return MarkupTrimmer()


@register(ComponentKind.RESEARCHER, "qualifier_trimmer")
def _qualifier_trimmer(entry: ComponentEntry, ctx: BuildContext):
    return QualifierTrimmer()


@register(ComponentKind.RESEARCHER, "merge_duplicates")
def _merge_duplicates(entry: ComponentEntry, ctx: BuildContext):
    return MergeDuplicates()


@register(ComponentKind.RESEARCHER, "passage_retrieval")
def _passage_retrieval(entry: ComponentEntry, ctx: BuildContext):
    searcher_name = entry.options.get("searcher")
    if not searcher_name:
        raise ConfigurationError("passage_retrieval requires options.searcher")
    searcher = build_component(
        ComponentKind.SEARCHER,
        ComponentEntry(name=searcher_name, cache=entry.cache, timeout=entry.timeout),
        ctx,
    )
    return PassageRetrieval(searcher, max_passages=entry.options.get("max_passages", 5))


@register(ComponentKind.RESEARCHER, "type_tagger")
def _type_tagger(entry: ComponentEntry, ctx: BuildContext):
    knowledge = ctx.config.knowledge
    if not knowledge.sparql_url:
        raise ConfigurationError("type_tagger requires knowledge.sparql_url (or SPARQL_URL)")
    kwargs = {k: v for k, v in entry.options.items() if k in ("resource_base", "limit")}
    return TypeTagger(knowledge.sparql_url, timeout=knowledge.timeout, **kwargs)


@register(ComponentKind.RESEARCHER, "combine_scores")
def _combine_scores(entry: ComponentEntry, ctx: BuildContext):
    return CombineScores(weights=entry.options.get("weights"))


@register(ComponentKind.RESEARCHER, "feature_export")
def _feature_export(entry: ComponentEntry, ctx: BuildContext):
    output = ctx.config.output
    return FeatureExport(
        output_dir=entry.options.get("directory", output.directory),
        run_start=ctx.run_start,
        prefix=entry.options.get("prefix", output.export_prefix),
    )


@register(ComponentKind.RESEARCHER, "run_statistics")
def _run_statistics(entry: ComponentEntry, ctx: BuildContext):
    return RunStatistics(
        rank_score=entry.options.get("rank_score", ctx.config.scoring.rank_score),
        show_table=entry.options.get("show_table", True),
    )


@register(ComponentKind.SCORER, "passage_count")
def _passage_count(entry: ComponentEntry, ctx: BuildContext):
    return PassageCount()


@register(ComponentKind.SCORER, "best_rank")
def _best_rank(entry: ComponentEntry, ctx: BuildContext):
    return BestRank()


@register(ComponentKind.SCORER, "correct")
def _correct(entry: ComponentEntry, ctx: BuildContext):
    return Correct()


@register(ComponentKind.SCORER, "passage_rank")
def _passage_rank(entry: ComponentEntry, ctx: BuildContext):
    return PassageRank()
