"""Tests for cross-query deduplication."""

from cryptoreg.intelligence.dedup import deduplicate_events, fingerprint
from cryptoreg.intelligence.fetcher import RegulatoryEvent


class TestFingerprint:
    def test_uses_entity_and_prefix(self):
        event = RegulatoryEvent(entity="X", description="A" * 100)
        assert fingerprint(event) == "X-" + "A" * 80

    def test_short_description(self):
        assert fingerprint(RegulatoryEvent(entity="X", description="fine")) == "X-fine"

    def test_missing_description(self):
        assert fingerprint(RegulatoryEvent(entity="X")) == "X-"

    def test_non_string_description(self):
        assert fingerprint(RegulatoryEvent(entity="X", description=12345)) == "X-12345"


class TestDeduplicateEvents:
    def test_empty_list(self):
        assert deduplicate_events([]) == []

    def test_prefix_collision_keeps_first(self):
        first = RegulatoryEvent(entity="X", description="A" * 100)
        second = RegulatoryEvent(entity="X", description="A" * 80 + "Z" * 20)
        result = deduplicate_events([first, second])
        assert result == [first]

    def test_different_entities_retained(self):
        events = [
            RegulatoryEvent(entity="X", description="Same description"),
            RegulatoryEvent(entity="Y", description="Same description"),
        ]
        assert len(deduplicate_events(events)) == 2

    def test_divergence_within_prefix_retained(self):
        events = [
            RegulatoryEvent(entity="X", description="SEC fines exchange"),
            RegulatoryEvent(entity="X", description="SEC sues exchange"),
        ]
        assert len(deduplicate_events(events)) == 2

    def test_preserves_input_order(self):
        events = [
            RegulatoryEvent(entity="C", description="third"),
            RegulatoryEvent(entity="A", description="first"),
            RegulatoryEvent(entity="C", description="third"),
            RegulatoryEvent(entity="B", description="second"),
        ]
        result = deduplicate_events(events)
        assert [e.entity for e in result] == ["C", "A", "B"]

    def test_first_occurrence_wins_regardless_of_other_fields(self):
        first = RegulatoryEvent(entity="X", description="d", timestamp="2024-01-01T00:00:00Z")
        later = RegulatoryEvent(entity="X", description="d", timestamp="2024-02-01T00:00:00Z")
        assert deduplicate_events([first, later])[0] is first

    def test_missing_fields_collapse(self):
        events = [RegulatoryEvent(), RegulatoryEvent()]
        assert len(deduplicate_events(events)) == 1
