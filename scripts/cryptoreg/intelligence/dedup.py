"""
Cross-query deduplication for regulatory events.

Overlapping queries often return the same event. Events are collapsed on a
coarse fingerprint: the entity plus the first 80 characters of the
description. Descriptions that diverge only after the prefix are treated as
the same event, and short descriptions that are prefixes of each other
collide.
"""

import logging

from .fetcher import RegulatoryEvent

logger = logging.getLogger(__name__)

# Characters of the description included in the fingerprint
DESCRIPTION_PREFIX_LENGTH = 80


def fingerprint(event: RegulatoryEvent) -> str:
    """Build the duplicate key for an event."""
    return f"{event.entity}-{event.description_text[:DESCRIPTION_PREFIX_LENGTH]}"


def deduplicate_events(events: list[RegulatoryEvent]) -> list[RegulatoryEvent]:
    """Remove duplicate events, keeping the first occurrence in input order."""
    if not events:
        return []

    seen: set[str] = set()
    unique: list[RegulatoryEvent] = []

    for event in events:
        key = fingerprint(event)
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)

    dedup_count = len(events) - len(unique)
    if dedup_count > 0:
        logger.info(
            "Deduplicated %d events (from %d to %d)", dedup_count, len(events), len(unique)
        )

    return unique
