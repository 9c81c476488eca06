"""
Enrichment pipeline: fetch, aggregate, persist, and optionally summarize.

Runs are strictly sequential with a single writer. Query and summarizer
failures degrade the run; a missing API key or a storage failure aborts it
before anything is overwritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..config import config
from .aggregator import AggregationResult, WeeklySnapshot, aggregate
from .classifier import ClassifierRules
from .fetcher import EventFetcher, QuerySpec, RegulatoryEvent, load_queries
from .storage import EventStore
from .summarizer import AnalysisBrief, Summarizer

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    events: List[RegulatoryEvent] = field(default_factory=list)
    history: List[WeeklySnapshot] = field(default_factory=list)
    raw_count: int = 0
    query_errors: List[str] = field(default_factory=list)
    brief: Optional[AnalysisBrief] = None
    started_at: Optional[datetime] = None

    @property
    def snapshot(self) -> Optional[WeeklySnapshot]:
        return self.history[-1] if self.history else None

    def __str__(self) -> str:
        status = f"Saved {len(self.events)} events ({self.raw_count} raw)"
        if self.query_errors:
            status += f", {len(self.query_errors)} failed queries"
        if self.brief:
            status += f", risk level {self.brief.risk_level}"
        return status


class EnrichmentPipeline:
    """Drives one fetch-classify-dedupe-persist run."""

    def __init__(
        self,
        fetcher: Optional[EventFetcher] = None,
        store: Optional[EventStore] = None,
        summarizer: Optional[Summarizer] = None,
        queries: Optional[List[QuerySpec]] = None,
        rules: Optional[ClassifierRules] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            fetcher: Search API client. Built from config when omitted, which
                raises MissingCredentialError if the API key is not set.
            store: Persistence for events and history.
            summarizer: AI brief generator.
            queries: Entity/topic pairs. Defaults to the configured list.
            rules: Classifier rule tables.
        """
        self.fetcher = fetcher or EventFetcher()
        self.store = store or EventStore()
        self.summarizer = summarizer or Summarizer()
        self.queries = queries if queries is not None else load_queries()
        self.rules = rules
        self.max_weeks = config.max_history_weeks

    def collect(self, days: Optional[int] = None, progress: bool = False) -> AggregationResult:
        """Fetch every query and aggregate against the stored history, without persisting."""
        history = self.store.load_history()
        fetch_result = self.fetcher.fetch(self.queries, days=days, progress=progress)
        result = aggregate(
            fetch_result.batches,
            history=history,
            rules=self.rules,
            max_weeks=self.max_weeks,
        )
        result.errors = fetch_result.errors
        return result

    def run(self, analyze: bool = True, progress: bool = False) -> RunResult:
        """
        Execute a full run.

        Args:
            analyze: Ask the summarizer for a brief after persisting.
            progress: Show a progress bar while querying.

        Returns:
            RunResult describing what was persisted.

        Raises:
            StorageError: If history cannot be read or artifacts cannot be written.
        """
        started_at = datetime.now(timezone.utc)
        logger.info("CryptoReg Pulse - Starting regulatory scan...")

        aggregation = self.collect(progress=progress)
        self.store.save(aggregation.events, aggregation.history)

        result = RunResult(
            events=aggregation.events,
            history=aggregation.history,
            raw_count=aggregation.raw_count,
            query_errors=aggregation.errors,
            started_at=started_at,
        )

        if analyze and config.get("analysis.enabled", True):
            result.brief = self.analyze(aggregation.events)

        logger.info(str(result))
        logger.info("CryptoReg Pulse update complete!")
        return result

    def analyze(self, events: List[RegulatoryEvent]) -> Optional[AnalysisBrief]:
        """Summarize events and wrap the stored event set if a brief comes back."""
        brief = self.summarizer.analyze(events)
        if brief is not None:
            self.store.save_with_analysis(events, brief.to_dict())
        return brief


def analyze_stored_events(
    store: Optional[EventStore] = None,
    summarizer: Optional[Summarizer] = None,
) -> Optional[AnalysisBrief]:
    """Run only the AI step against the persisted event store."""
    store = store or EventStore()
    summarizer = summarizer or Summarizer()

    events, _ = store.load_events()
    brief = summarizer.analyze(events)
    if brief is not None:
        store.save_with_analysis(events, brief.to_dict())
    return brief
