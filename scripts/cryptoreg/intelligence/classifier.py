"""
Rule-based classification of regulatory events.

Assigns severity, jurisdiction and category labels from event text. Every
rule table is an ordered sequence of (label, pattern) pairs evaluated
first-match-wins, so more severe or specific rules come first.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from .fetcher import RegulatoryEvent

logger = logging.getLogger(__name__)

Rule = Tuple[str, "re.Pattern[str]"]

SEVERITY_LEVELS = ("low", "medium", "high", "critical")
DEFAULT_SEVERITY = "low"
DEFAULT_JURISDICTION = "Other"
DEFAULT_CATEGORY = "General"

# Severity tiers, most severe first
SEVERITY_PATTERNS: Dict[str, str] = {
    "critical": r"ban|prohibit|criminal|arrest|indictment|shutdown|critical|emergency",
    "high": r"enforcement|fine|penalty|sanction|lawsuit|sec |cftc|doj",
    "medium": r"investigation|probe|warning|guidance|review|compliance",
}

JURISDICTION_PATTERNS: Dict[str, str] = {
    "United States": r"\b(sec|cftc|doj|fincen|ofac|us |united states|american|federal)\b",
    "European Union": r"\b(eu |mica|esma|european|brussels)\b",
    "United Kingdom": r"\b(fca|uk |britain|british|london)\b",
    "China": r"\b(china|chinese|pboc|beijing)\b",
    "Japan": r"\b(japan|jfsa|japanese|tokyo)\b",
    "Singapore": r"\b(singapore|mas )\b",
    "South Korea": r"\b(korea|korean|seoul)\b",
    "Hong Kong": r"\b(hong kong|hkma|sfc)\b",
    "Australia": r"\b(australia|asic|australian)\b",
    "Global": r"\b(global|international|fatf|g20|iosco)\b",
}

CATEGORY_PATTERNS: Dict[str, str] = {
    "Enforcement": r"enforcement|fine|penalty|charged|sued",
    "Sanctions": r"sanction|ofac|blacklist|designat",
    "Policy": r"licens|registr|framework|legislation|bill|law",
    "Investigation": r"investigation|probe|subpoena|inquiry",
    "Guidance": r"guidance|advisory|warning|alert",
}


def _compile(patterns: Dict[str, str]) -> Tuple[Rule, ...]:
    """Compile an ordered label -> regex mapping into a rule table."""
    return tuple((label, re.compile(pattern)) for label, pattern in patterns.items())


@dataclass(frozen=True)
class ClassifierRules:
    """Immutable, ordered rule tables used by the classifiers."""

    severity: Tuple[Rule, ...]
    jurisdiction: Tuple[Rule, ...]
    category: Tuple[Rule, ...]

    @classmethod
    def from_patterns(
        cls,
        severity: Optional[Dict[str, str]] = None,
        jurisdiction: Optional[Dict[str, str]] = None,
        category: Optional[Dict[str, str]] = None,
    ) -> "ClassifierRules":
        """Build rule tables, falling back to the built-in patterns."""
        return cls(
            severity=_compile(severity or SEVERITY_PATTERNS),
            jurisdiction=_compile(jurisdiction or JURISDICTION_PATTERNS),
            category=_compile(category or CATEGORY_PATTERNS),
        )


def _first_match(rules: Sequence[Rule], text: str, default: str) -> str:
    for label, pattern in rules:
        if pattern.search(text):
            return label
    return default


def event_text(event: RegulatoryEvent) -> str:
    """Lowercased description and entity, the text severity and jurisdiction match on."""
    return f"{event.description_text} {event.entity or ''}".lower()


def classify_severity(event: RegulatoryEvent, rules: Optional[ClassifierRules] = None) -> str:
    """Classify severity from description and entity text."""
    rules = rules or default_rules
    return _first_match(rules.severity, event_text(event), DEFAULT_SEVERITY)


def extract_jurisdiction(event: RegulatoryEvent, rules: Optional[ClassifierRules] = None) -> str:
    """Return the first jurisdiction whose keywords appear in the event text."""
    rules = rules or default_rules
    return _first_match(rules.jurisdiction, event_text(event), DEFAULT_JURISDICTION)


def categorize_event(event: RegulatoryEvent, rules: Optional[ClassifierRules] = None) -> str:
    """Categorize an event from its description alone."""
    rules = rules or default_rules
    text = event.description_text.lower()
    return _first_match(rules.category, text, DEFAULT_CATEGORY)


def _load_rules() -> ClassifierRules:
    """Build the rule tables, applying overrides from config.yaml if present."""
    try:
        from ..config import config as app_config

        overrides: Dict[str, Any] = app_config.get("classifier", {}) or {}
        return ClassifierRules.from_patterns(
            severity=overrides.get("severity"),
            jurisdiction=overrides.get("jurisdictions"),
            category=overrides.get("categories"),
        )
    except re.error as e:
        logger.error(f"Invalid classifier pattern in config, using defaults: {e}")
        return ClassifierRules.from_patterns()


# Rule tables built once at import
default_rules = _load_rules()
