"""
JSON persistence for the event store and the weekly history.

Both artifacts are fully rewritten each run. Writes go to temporary files
that are moved into place only once every artifact has been serialized, so a
failed run leaves the previous files intact.
"""

import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import config
from .aggregator import WeeklySnapshot
from .fetcher import RegulatoryEvent

logger = logging.getLogger(__name__)


class StorageError(IOError):
    """Raised when persisted state cannot be read or written."""


class EventStore:
    """Reads and writes the persisted event set and history log."""

    def __init__(self, events_path: Optional[Path] = None, history_path: Optional[Path] = None) -> None:
        """
        Initialize the store.

        Args:
            events_path: Event store file. Defaults to the configured path.
            history_path: History file. Defaults to the configured path.
        """
        self.events_path = Path(events_path or config.events_path)
        self.history_path = Path(history_path or config.history_path)

    def _read_json(self, path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in {path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def _write_all(self, payloads: List[Tuple[Path, Any]]) -> None:
        """
        Serialize every payload first, then move each into place.

        Existing targets are backed up before any replace and restored if a
        later replace fails, so either every artifact is updated or none is.
        """
        staged: List[Tuple[Path, Path]] = []
        try:
            for path, payload in payloads:
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = path.with_name(f".{path.name}.tmp")
                staged.append((tmp_path, path))
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            self._discard(tmp for tmp, _ in staged)
            raise StorageError(f"Failed to write {path}: {e}") from e

        backups: Dict[Path, Path] = {}
        replaced: List[Path] = []
        try:
            for _, path in staged:
                if path.exists():
                    backup = path.with_name(f".{path.name}.bak")
                    shutil.copy2(path, backup)
                    backups[path] = backup
            for tmp_path, path in staged:
                os.replace(tmp_path, path)
                replaced.append(path)
        except OSError as e:
            self._restore(replaced, backups)
            self._discard(tmp for tmp, _ in staged)
            raise StorageError(f"Failed to replace {path}: {e}") from e
        finally:
            self._discard(backups.values())

    def _restore(self, replaced: List[Path], backups: Dict[Path, Path]) -> None:
        """Put back the previous contents of already-replaced targets."""
        for path in replaced:
            backup = backups.get(path)
            if backup is None:
                path.unlink(missing_ok=True)
            else:
                shutil.copy2(backup, path)
        logger.error(f"Rolled back {len(replaced)} partially written files")

    @staticmethod
    def _discard(paths: Iterable[Path]) -> None:
        for path in paths:
            path.unlink(missing_ok=True)

    def load_history(self) -> List[WeeklySnapshot]:
        """
        Load the history log, oldest first.

        Returns:
            Snapshots, or an empty list if no history exists yet.

        Raises:
            StorageError: If the file exists but cannot be read or parsed.
        """
        if not self.history_path.exists():
            logger.debug("No history yet")
            return []

        data = self._read_json(self.history_path)
        if not isinstance(data, list):
            raise StorageError(f"Expected a list in {self.history_path}")
        try:
            return [WeeklySnapshot.from_dict(row) for row in data]
        except (AttributeError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed history row in {self.history_path}: {e}") from e

    def load_events(self) -> Tuple[List[RegulatoryEvent], Optional[Dict[str, Any]]]:
        """
        Load the event store in either of its persisted forms.

        Returns:
            Tuple of (events, analysis). Analysis is None for a plain event list.
        """
        if not self.events_path.exists():
            return [], None

        data = self._read_json(self.events_path)
        if isinstance(data, dict):
            rows, analysis = data.get("events", []), data.get("analysis")
        elif isinstance(data, list):
            rows, analysis = data, None
        else:
            raise StorageError(f"Unexpected event store shape in {self.events_path}")

        try:
            return [RegulatoryEvent.from_dict(row) for row in rows], analysis
        except (AttributeError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed event in {self.events_path}: {e}") from e

    def save(self, events: List[RegulatoryEvent], history: List[WeeklySnapshot]) -> None:
        """Persist the plain event list and the history together."""
        self._write_all(
            [
                (self.events_path, [e.to_dict() for e in events]),
                (self.history_path, [s.to_dict() for s in history]),
            ]
        )
        logger.info(f"Saved {len(events)} regulatory events")

    def save_with_analysis(
        self,
        events: List[RegulatoryEvent],
        analysis: Dict[str, Any],
        generated_at: Optional[datetime] = None,
    ) -> None:
        """Replace the event store with the wrapped {generated_at, analysis, events} form."""
        generated_at = generated_at or datetime.now(timezone.utc)
        payload = {
            "generated_at": generated_at.isoformat().replace("+00:00", "Z"),
            "analysis": analysis,
            "events": [e.to_dict() for e in events],
        }
        self._write_all([(self.events_path, payload)])
