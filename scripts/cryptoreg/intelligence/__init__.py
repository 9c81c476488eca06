"""
Regulatory Intelligence Module

Weekly scan of crypto regulatory events from the CPW tracker search API.

This module provides:
- Event fetching across configured entity/topic queries
- Rule-based severity, jurisdiction and category classification
- Cross-query deduplication
- Rolling 52-week history aggregation
- LLM-powered weekly brief via GitHub Models or Claude
"""

from .aggregator import (
    AggregationResult,
    WeeklySnapshot,
    aggregate,
)
from .classifier import (
    ClassifierRules,
    categorize_event,
    classify_severity,
    extract_jurisdiction,
)
from .dedup import deduplicate_events
from .fetcher import (
    EventFetcher,
    FetchResult,
    MissingCredentialError,
    QuerySpec,
    RegulatoryEvent,
)
from .pipeline import (
    EnrichmentPipeline,
    RunResult,
    analyze_stored_events,
)
from .storage import (
    EventStore,
    StorageError,
)
from .summarizer import (
    AnalysisBrief,
    Summarizer,
    parse_brief,
)

__all__ = [
    # Fetcher
    "RegulatoryEvent",
    "QuerySpec",
    "FetchResult",
    "EventFetcher",
    "MissingCredentialError",
    # Classifier
    "ClassifierRules",
    "classify_severity",
    "extract_jurisdiction",
    "categorize_event",
    # Dedup
    "deduplicate_events",
    # Aggregator
    "WeeklySnapshot",
    "AggregationResult",
    "aggregate",
    # Storage
    "EventStore",
    "StorageError",
    # Summarizer
    "AnalysisBrief",
    "Summarizer",
    "parse_brief",
    # Pipeline
    "EnrichmentPipeline",
    "RunResult",
    "analyze_stored_events",
]
