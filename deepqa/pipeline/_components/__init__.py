"""
Built-in pipeline components, grouped by the stage they plug into.
"""

from .searchers import TavilySearcher, CachingSearcher
from .researchers import MarkupTrimmer, QualifierTrimmer, MergeDuplicates, PassageRetrieval, TypeTagger
from .scorers import PassageCount, BestRank, Correct, PassageRank
from .reporters import CombineScores, FeatureExport, RunStatistics
