"""Tests for the search API fetcher."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests
from cryptoreg.intelligence.fetcher import (
    EventFetcher,
    FetchResult,
    MissingCredentialError,
    QuerySpec,
    RegulatoryEvent,
    get_date_range,
    load_queries,
)

QUERY = QuerySpec(entities="cryptocurrency exchanges", topic="sanctions")


def _ok(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


def _http_error(status_code):
    response = MagicMock()
    response.status_code = status_code
    response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    return response


class TestRegulatoryEvent:
    def test_from_dict_splits_extra(self):
        event = RegulatoryEvent.from_dict(
            {"entity": "Binance", "description": "d", "source": "reuters"}
        )
        assert event.entity == "Binance"
        assert event.timestamp is None
        assert event.extra == {"source": "reuters"}

    def test_to_dict_round_trip(self):
        raw = {"entity": "Binance", "severity": "high", "url": "https://x"}
        assert RegulatoryEvent.from_dict(raw).to_dict() == raw


class TestDateRange:
    def test_seven_day_window(self):
        now = datetime(2024, 1, 15, 12, 30, 45, 123456, tzinfo=timezone.utc)
        start, end = get_date_range(7, now=now)
        assert start == "2024-01-08T12:30:45.123Z"
        assert end == "2024-01-15T12:30:45.123Z"


class TestQueries:
    def test_configured_queries(self):
        queries = load_queries()
        assert len(queries) == 4
        assert queries[0] == QuerySpec("cryptocurrency exchanges", "regulatory action")
        assert str(queries[3]) == "financial regulators / cryptocurrency enforcement"


class TestEventFetcher:
    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("RAPIDAPI_KEY", raising=False)
        with pytest.raises(MissingCredentialError):
            EventFetcher()

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("RAPIDAPI_KEY", "env-key")
        fetcher = EventFetcher()
        assert fetcher.session.headers["x-rapidapi-key"] == "env-key"
        assert fetcher.session.headers["x-rapidapi-host"] == "cpw-tracker.p.rapidapi.com"

    def test_fetch_query_parses_events(self):
        fetcher = EventFetcher(api_key="test")
        payload = [{"entity": "Binance", "description": "SEC fine"}, "not-an-event"]
        with patch.object(fetcher.session, "post", return_value=_ok(payload)) as mock_post:
            events, error = fetcher.fetch_query(QUERY, "start", "end")

        assert error is None
        assert [e.entity for e in events] == ["Binance"]
        body = mock_post.call_args.kwargs["json"]
        assert body == {
            "entities": "cryptocurrency exchanges",
            "topic": "sanctions",
            "startTime": "start",
            "endTime": "end",
        }

    def test_http_error_is_empty_batch(self):
        fetcher = EventFetcher(api_key="test")
        with patch.object(fetcher.session, "post", return_value=_http_error(503)):
            events, error = fetcher.fetch_query(QUERY, "start", "end")
        assert events == []
        assert "503" in error

    def test_timeout_is_empty_batch(self):
        fetcher = EventFetcher(api_key="test")
        with patch.object(fetcher.session, "post", side_effect=requests.exceptions.Timeout()):
            events, error = fetcher.fetch_query(QUERY, "start", "end")
        assert events == []
        assert "Timeout" in error

    def test_non_list_payload_is_empty(self):
        fetcher = EventFetcher(api_key="test")
        with patch.object(fetcher.session, "post", return_value=_ok({"message": "quota"})):
            events, error = fetcher.fetch_query(QUERY, "start", "end")
        assert events == []
        assert error is None

    def test_fetch_keeps_query_order_and_continues_after_failure(self):
        fetcher = EventFetcher(api_key="test")
        queries = [QuerySpec("a", "t"), QuerySpec("b", "t"), QuerySpec("c", "t")]
        responses = [
            _ok([{"entity": "A"}]),
            _http_error(500),
            _ok([{"entity": "C1"}, {"entity": "C2"}]),
        ]
        with patch.object(fetcher.session, "post", side_effect=responses) as mock_post:
            result = fetcher.fetch(queries)

        assert isinstance(result, FetchResult)
        assert mock_post.call_count == 3
        assert [[e.entity for e in batch] for batch in result.batches] == [["A"], [], ["C1", "C2"]]
        assert result.queries_fetched == 2
        assert len(result.errors) == 1
        assert result.total_events == 3
        assert "1 errors" in str(result)
