"""
Regulatory event fetcher for the CPW tracker search API.

Issues one request per configured entity/topic query and returns the raw
event records. A failing query yields an empty batch; it is never retried.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests
from tqdm import tqdm

from ..config import config

logger = logging.getLogger(__name__)

USER_AGENT = "CryptoRegPulse/1.0 (Regulatory Intelligence Agent)"

# Fields the pipeline reasons about; everything else passes through untouched
EVENT_FIELDS = ("entity", "description", "timestamp", "severity", "jurisdiction", "category")


class MissingCredentialError(ValueError):
    """Raised when the search API key is not available."""


@dataclass
class RegulatoryEvent:
    """A single regulatory occurrence reported by the search API."""

    entity: Optional[str] = None
    description: Optional[str] = None
    timestamp: Optional[str] = None
    severity: Optional[str] = None
    jurisdiction: Optional[str] = None
    category: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegulatoryEvent":
        """Build an event from a raw API record, keeping unknown fields."""
        known = {key: data.get(key) for key in EVENT_FIELDS}
        extra = {key: value for key, value in data.items() if key not in EVENT_FIELDS}
        return cls(**known, extra=extra)

    @property
    def description_text(self) -> str:
        """Description as a string, empty when absent. Sources may send numbers."""
        return "" if self.description is None else str(self.description)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the event store. Absent source fields stay absent."""
        data = dict(self.extra)
        for key in EVENT_FIELDS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class QuerySpec:
    """One entity/topic combination sent to the search API."""

    entities: str
    topic: str

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "QuerySpec":
        return cls(entities=data["entities"], topic=data["topic"])

    def __str__(self) -> str:
        return f"{self.entities} / {self.topic}"


@dataclass
class FetchResult:
    """Results from fetching every configured query."""

    batches: List[List[RegulatoryEvent]] = field(default_factory=list)
    queries_fetched: int = 0
    errors: List[str] = field(default_factory=list)
    fetch_time: Optional[datetime] = None

    @property
    def total_events(self) -> int:
        return sum(len(batch) for batch in self.batches)

    def __str__(self) -> str:
        return (
            f"Fetched {self.total_events} events from {self.queries_fetched} queries"
            f"{f' ({len(self.errors)} errors)' if self.errors else ''}"
        )


def get_date_range(days: int = 7, now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Compute the lookback window as ISO-8601 instants.

    Returns:
        Tuple of (start_time, end_time).
    """
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(days=days)
    return _isoformat(start), _isoformat(end)


def _isoformat(value: datetime) -> str:
    """Format a UTC datetime with millisecond precision and a Z suffix."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{value.microsecond // 1000:03d}Z"
    )


class EventFetcher:
    """Fetches raw regulatory events from the search API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Initialize the event fetcher.

        Args:
            api_key: RapidAPI key. Read from the environment when omitted.
            api_url: Search endpoint. Defaults to the configured URL.
            timeout: Request timeout in seconds.

        Raises:
            MissingCredentialError: If no API key is available.
        """
        key_env = config.get("api.key_env", "RAPIDAPI_KEY")
        self.api_key = api_key or os.environ.get(key_env)
        if not self.api_key:
            raise MissingCredentialError(f"{key_env} environment variable is required")

        self.api_url = api_url or config.get("api.url")
        self.timeout = timeout or config.get("api.timeout", 30)
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Content-Type": "application/json",
                "x-rapidapi-host": config.get("api.host"),
                "x-rapidapi-key": self.api_key,
            }
        )

    def _post_query(self, query: QuerySpec, start_time: str, end_time: str) -> Tuple[bool, Any]:
        """
        Send a single search request.

        Returns:
            Tuple of (success, payload_or_error).
        """
        body = {
            "entities": query.entities,
            "topic": query.topic,
            "startTime": start_time,
            "endTime": end_time,
        }
        try:
            response = self.session.post(self.api_url, json=body, timeout=self.timeout)
            response.raise_for_status()
            return True, response.json()
        except requests.exceptions.Timeout:
            return False, f"Timeout fetching {query}"
        except requests.exceptions.HTTPError as e:
            return False, f"Query failed ({e.response.status_code}): {query}"
        except requests.exceptions.RequestException as e:
            return False, f"Request failed for {query}: {str(e)}"
        except ValueError:
            return False, f"Invalid JSON returned for {query}"

    def fetch_query(
        self, query: QuerySpec, start_time: str, end_time: str
    ) -> Tuple[List[RegulatoryEvent], Optional[str]]:
        """
        Fetch one query's batch.

        Returns:
            Tuple of (events, error). Events is empty when the query failed.
        """
        logger.info(f"Fetching: {query}")
        success, payload = self._post_query(query, start_time, end_time)
        if not success:
            logger.warning(payload)
            return [], payload

        if not isinstance(payload, list):
            logger.debug(f"Non-list response for {query}, treating as empty")
            return [], None

        events = [RegulatoryEvent.from_dict(item) for item in payload if isinstance(item, dict)]
        logger.debug(f"Parsed {len(events)} events for {query}")
        return events, None

    def fetch(
        self,
        queries: List[QuerySpec],
        days: Optional[int] = None,
        progress: bool = False,
    ) -> FetchResult:
        """
        Fetch every query sequentially.

        Args:
            queries: Entity/topic pairs to search for.
            days: Number of days to look back (default from config).
            progress: Show a progress bar.

        Returns:
            FetchResult with one batch per query, in query order.
        """
        days = days or config.get("api.lookback_days", 7)
        start_time, end_time = get_date_range(days)
        result = FetchResult(fetch_time=datetime.now(timezone.utc))

        logger.info(f"Fetching events from {start_time} to {end_time}")

        for query in tqdm(queries, desc="Querying", disable=not progress):
            events, error = self.fetch_query(query, start_time, end_time)
            result.batches.append(events)
            if error:
                result.errors.append(error)
            else:
                result.queries_fetched += 1

        logger.info(str(result))
        return result


def load_queries() -> List[QuerySpec]:
    """Build the configured query list."""
    return [QuerySpec.from_dict(q) for q in config.queries]
