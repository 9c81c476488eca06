"""
Aggregation of per-query event batches and the rolling weekly history.

Flattens batches, deduplicates, classifies, sorts newest-first and appends a
snapshot of the run to the bounded history. Performs no I/O.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .classifier import (
    ClassifierRules,
    categorize_event,
    classify_severity,
    extract_jurisdiction,
)
from .dedup import deduplicate_events
from .fetcher import RegulatoryEvent

logger = logging.getLogger(__name__)

# Weeks of history retained
MAX_HISTORY_WEEKS = 52


@dataclass
class WeeklySnapshot:
    """Aggregate statistics for one run."""

    week: str  # YYYY-MM-DD
    count: int = 0
    critical: int = 0
    high: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklySnapshot":
        return cls(
            week=str(data.get("week", "")),
            count=int(data.get("count", 0)),
            critical=int(data.get("critical", 0)),
            high=int(data.get("high", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"week": self.week, "count": self.count, "critical": self.critical, "high": self.high}


@dataclass
class AggregationResult:
    """Output of one aggregation pass."""

    events: List[RegulatoryEvent] = field(default_factory=list)
    history: List[WeeklySnapshot] = field(default_factory=list)
    raw_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def duplicates_removed(self) -> int:
        return self.raw_count - len(self.events)

    def severity_counts(self) -> Dict[str, int]:
        """Count enriched events per severity label."""
        counts: Dict[str, int] = {}
        for event in self.events:
            counts[event.severity] = counts.get(event.severity, 0) + 1
        return counts

    def __str__(self) -> str:
        return (
            f"Aggregated {len(self.events)} events "
            f"({self.raw_count} raw, {self.duplicates_removed} duplicates)"
        )


def enrich_event(event: RegulatoryEvent, rules: Optional[ClassifierRules] = None) -> RegulatoryEvent:
    """
    Return a copy of the event with severity, jurisdiction and category set.

    A severity supplied by the source is kept. Jurisdiction and category are
    always recomputed.
    """
    return RegulatoryEvent(
        entity=event.entity,
        description=event.description,
        timestamp=event.timestamp,
        severity=event.severity or classify_severity(event, rules),
        jurisdiction=extract_jurisdiction(event, rules),
        category=categorize_event(event, rules),
        extra=dict(event.extra),
    )


def timestamp_key(event: RegulatoryEvent) -> float:
    """Epoch seconds for sorting. Missing or unparseable timestamps are epoch 0."""
    if not event.timestamp:
        return 0.0
    try:
        parsed = datetime.fromisoformat(str(event.timestamp).replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Could not parse timestamp: {event.timestamp}")
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def sort_events(events: List[RegulatoryEvent]) -> List[RegulatoryEvent]:
    """Sort newest-first. Ties keep their relative order."""
    return sorted(events, key=timestamp_key, reverse=True)


def build_snapshot(events: List[RegulatoryEvent], week: Optional[str] = None) -> WeeklySnapshot:
    """Summarize a run's enriched events."""
    week = week or datetime.now(timezone.utc).date().isoformat()
    return WeeklySnapshot(
        week=week,
        count=len(events),
        critical=sum(1 for e in events if e.severity == "critical"),
        high=sum(1 for e in events if e.severity == "high"),
    )


def append_snapshot(
    history: List[WeeklySnapshot],
    snapshot: WeeklySnapshot,
    max_weeks: int = MAX_HISTORY_WEEKS,
) -> List[WeeklySnapshot]:
    """Append a snapshot, dropping the oldest entries beyond max_weeks."""
    updated = list(history) + [snapshot]
    if len(updated) > max_weeks:
        updated = updated[-max_weeks:]
    return updated


def aggregate(
    batches: Iterable[List[RegulatoryEvent]],
    history: Optional[List[WeeklySnapshot]] = None,
    rules: Optional[ClassifierRules] = None,
    week: Optional[str] = None,
    max_weeks: int = MAX_HISTORY_WEEKS,
) -> AggregationResult:
    """
    Merge query batches into the enriched event set and updated history.

    Args:
        batches: One list of raw events per query, in query order.
        history: Previously persisted snapshots, oldest first.
        rules: Classifier rule tables. Defaults to the configured rules.
        week: Run date (YYYY-MM-DD). Defaults to today in UTC.
        max_weeks: History length bound.

    Returns:
        AggregationResult with sorted events and the updated history.
    """
    all_events = [event for batch in batches for event in batch]
    logger.info(f"Raw results: {len(all_events)} events")

    unique = deduplicate_events(all_events)
    logger.info(f"After dedup: {len(unique)} events")

    enriched = sort_events([enrich_event(event, rules) for event in unique])
    snapshot = build_snapshot(enriched, week)
    updated_history = append_snapshot(history or [], snapshot, max_weeks)

    return AggregationResult(events=enriched, history=updated_history, raw_count=len(all_events))
