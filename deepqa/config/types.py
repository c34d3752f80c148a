"""
Enums shared by the document graph and the pipeline stages.
"""
from enum import Enum


class QuestionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


class StageName(str, Enum):
    SEARCH = "search"
    EARLY_RESEARCH = "early_research"
    SCORING = "scoring"
    LATE_RESEARCH = "late_research"


class ComponentKind(str, Enum):
    SEARCHER = "searcher"
    RESEARCHER = "researcher"
    SCORER = "scorer"
