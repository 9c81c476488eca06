"""
LLM-powered weekly regulatory brief.

Sends a short digest of the week's events to a language model and extracts a
structured brief from its reply. Any failure (no token, non-success status,
unparseable reply) yields no brief rather than an error.
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import requests

from ..config import config
from .fetcher import RegulatoryEvent

logger = logging.getLogger(__name__)

# Greedy match from the first "{" to the last "}"
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

ANALYSIS_PROMPT = """You are a crypto regulatory analyst. Analyze these regulatory events from the past week and produce a brief intelligence report.

Events:
{events}

Produce a JSON response with:
{{
  "risk_level": "low|elevated|high|critical",
  "summary": "2-3 sentence executive summary",
  "key_developments": [{{"title": "...", "impact": "...", "jurisdiction": "..."}}],
  "trends": ["trend1", "trend2"],
  "outlook": "1-2 sentence forward-looking assessment",
  "recommendations": ["rec1", "rec2"]
}}

Be concise and factual. Focus on regulatory implications for crypto businesses and investors."""


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@dataclass
class AnalysisBrief:
    """Structured weekly brief produced by the language model."""

    risk_level: str = ""
    summary: str = ""
    key_developments: List[Dict[str, Any]] = field(default_factory=list)
    trends: List[str] = field(default_factory=list)
    outlook: str = ""
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisBrief":
        developments = _as_list(data.get("key_developments"))
        return cls(
            risk_level=str(data.get("risk_level") or "").lower(),
            summary=str(data.get("summary") or ""),
            key_developments=[d for d in developments if isinstance(d, dict)],
            trends=[str(t) for t in _as_list(data.get("trends"))],
            outlook=str(data.get("outlook") or ""),
            recommendations=[str(r) for r in _as_list(data.get("recommendations"))],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_event_line(event: RegulatoryEvent) -> str:
    """Format one event for the prompt digest."""
    severity = (event.severity or "unknown").upper()
    return (
        f"[{severity}] {event.entity or 'Unknown'}: "
        f"{event.description or 'No description'} "
        f"({event.jurisdiction or 'Unknown jurisdiction'})"
    )


def build_event_digest(events: List[RegulatoryEvent], limit: int = 20) -> str:
    """Build the text digest of the first `limit` events."""
    return "\n".join(format_event_line(e) for e in events[:limit])


def parse_brief(content: str) -> Optional[AnalysisBrief]:
    """
    Extract a brief from free-text model output.

    Returns:
        AnalysisBrief, or None if no JSON object can be parsed.
    """
    match = JSON_OBJECT_PATTERN.search(content or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("Could not parse AI response")
        return None
    if not isinstance(data, dict):
        return None
    return AnalysisBrief.from_dict(data)


class Summarizer:
    """Generates the weekly brief via GitHub Models or Claude."""

    def __init__(self) -> None:
        """Initialize the summarizer from configuration."""
        self.provider = config.get("analysis.provider", "github")
        self.model = config.get("analysis.model", "gpt-4o-mini")
        self.anthropic_model = config.get("analysis.anthropic_model", "claude-3-5-haiku-latest")
        self.endpoint = config.get("analysis.endpoint")
        self.max_events = config.get("analysis.max_events", 20)
        self.temperature = config.get("analysis.temperature", 0.3)
        self.max_tokens = config.get("analysis.max_tokens", 1000)
        self.timeout = config.get("analysis.timeout", 60)
        self._client = None

    def _get_token(self) -> Optional[str]:
        """Return the credential for the configured provider, if any."""
        if self.provider == "anthropic":
            return os.environ.get("ANTHROPIC_API_KEY")
        for env_name in config.get("analysis.token_envs", ["GITHUB_TOKEN", "GH_TOKEN"]):
            token = os.environ.get(env_name)
            if token:
                return token
        return None

    @property
    def available(self) -> bool:
        """Whether a credential for the configured provider is set."""
        return bool(self._get_token())

    def _get_client(self):
        """Get or create the Anthropic client."""
        if self._client is None:
            try:
                import anthropic
            except ImportError:
                raise ImportError(
                    "anthropic package not installed. "
                    "Install with: pip install anthropic"
                )
            self._client = anthropic.Anthropic(api_key=self._get_token())
        return self._client

    def _ask_github(self, prompt: str) -> Optional[str]:
        """Ask GitHub Models via its OpenAI-compatible chat endpoint."""
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._get_token()}",
        }

        try:
            response = requests.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"AI analysis request failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"AI analysis failed ({response.status_code})")
            return None

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("AI analysis returned an unexpected payload")
            return None

    def _ask_anthropic(self, prompt: str) -> Optional[str]:
        """Ask Claude via the Anthropic SDK."""
        client = self._get_client()
        try:
            response = client.messages.create(
                model=self.anthropic_model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
            return response.content[0].text
        except Exception as e:
            logger.warning(f"AI analysis failed: {e}")
            return None

    def analyze(self, events: List[RegulatoryEvent]) -> Optional[AnalysisBrief]:
        """
        Produce a brief for the week's events.

        Args:
            events: Enriched events, newest first.

        Returns:
            AnalysisBrief, or None when analysis was skipped or failed.
        """
        if not self.available:
            logger.warning("No AI credential set - skipping AI analysis")
            return None

        if not events:
            logger.info("No events to analyze")
            return None

        logger.info("Running AI regulatory analysis...")
        prompt = ANALYSIS_PROMPT.format(events=build_event_digest(events, self.max_events))

        if self.provider == "anthropic":
            content = self._ask_anthropic(prompt)
        else:
            content = self._ask_github(prompt)

        if content is None:
            return None

        brief = parse_brief(content)
        if brief is None:
            logger.warning("AI response contained no usable brief")
            return None

        logger.info(f"AI analysis complete - Risk level: {brief.risk_level}")
        return brief
