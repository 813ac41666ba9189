"""Append-only history of analysis results.

Each saved result is one JSON file ``<utc-timestamp>-<seq>.json`` in the
history directory, so file names sort in creation order. Only the newest
``max_history`` files are kept.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from flowzone.analysis.types import AnalysisResult
from flowzone.config import FlowConfig
from flowzone.errors import HistoryError

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"^(?P<stamp>.+)-(?P<seq>\d{6})\.json$")
MIN_TREND_ENTRIES = 3
SLOPE_THRESHOLD = 0.5  # seconds of median per run
OUTLIER_Z = 2.0


@dataclass(frozen=True)
class HistoryEntry:
    """One stored snapshot."""

    path: Path
    saved_at: str
    result: dict[str, Any]

    @property
    def name(self) -> str | None:
        return self.result.get("name")

    @property
    def median(self) -> float | None:
        survival = self.result.get("survival") or {}
        value = survival.get("median")
        return float(value) if value is not None else None

    def analysis(self) -> AnalysisResult:
        return AnalysisResult.from_dict(self.result)


@dataclass(frozen=True)
class TrendReport:
    """Direction of the median survival time across saved runs.

    ``entries`` and ``outliers`` are in chronological order.
    """

    slope: float | None
    feedback: str
    outliers: list[HistoryEntry] = field(default_factory=list)
    entries: list[HistoryEntry] = field(default_factory=list)


class HistoryStore:
    """Flat-file history of AnalysisResult snapshots."""

    def __init__(self, history_dir: str | Path | None = None, max_history: int | None = None):
        """Initialize the store.

        Args:
            history_dir: Directory holding snapshot files (created on first save).
                Defaults to FlowConfig.history_dir.
            max_history: Number of newest snapshots to keep.
                Defaults to FlowConfig.max_history.
        """
        if history_dir is None or max_history is None:
            settings = FlowConfig()
            if history_dir is None:
                history_dir = settings.history_dir
            if max_history is None:
                max_history = settings.max_history
        self.history_dir = Path(history_dir)
        self.max_history = max_history

    def save(self, result: AnalysisResult | dict[str, Any]) -> Path | None:
        """Write one snapshot and evict the oldest beyond max_history.

        Write failures are logged and never raised: losing a history entry
        must not fail the run that produced it.

        Returns:
            Path of the new snapshot, or None if it could not be written
        """
        payload = result.to_dict() if isinstance(result, AnalysisResult) else result
        now = datetime.now(timezone.utc)
        entry = {"saved_at": now.isoformat(), "result": payload}
        try:
            self.history_dir.mkdir(parents=True, exist_ok=True)
            files = self._files()
            seq = self._next_seq(files)
            path = self.history_dir / f"{now.strftime('%Y-%m-%dT%H-%M-%S.%fZ')}-{seq:06d}.json"
            path.write_text(json.dumps(entry), encoding="utf-8")
            self._evict()
        except OSError as e:
            logger.warning(f"Could not save history to {self.history_dir}: {e}")
            return None
        logger.debug(f"Saved history snapshot {path.name}")
        return path

    def entries(self, name: str | None = None) -> list[HistoryEntry]:
        """Stored snapshots, newest first. Unreadable files are skipped.

        Args:
            name: Only return results with this name

        Raises:
            HistoryError: history_dir exists but is not a directory
        """
        if not self.history_dir.exists():
            return []
        if not self.history_dir.is_dir():
            raise HistoryError(f"History path {self.history_dir} is not a directory")

        entries = []
        for path in reversed(self._files()):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                entry = HistoryEntry(path, data.get("saved_at", ""), data["result"])
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable history file {path.name}: {e}")
                continue
            if name is None or entry.name == name:
                entries.append(entry)
        return entries

    def trend(self, name: str | None = None) -> TrendReport:
        """Least-squares trend of the median over stored runs.

        Fewer than three entries yields ``slope=None``. Outliers are entries
        whose median lies more than two population standard deviations from
        the mean.
        """
        chronological = [e for e in reversed(self.entries(name)) if e.median is not None]
        n = len(chronological)
        if n < MIN_TREND_ENTRIES:
            return TrendReport(
                slope=None,
                feedback=f"Insufficient data: {n} run(s) saved, at least "
                f"{MIN_TREND_ENTRIES} needed for a trend.",
                entries=chronological,
            )

        medians = [e.median for e in chronological]
        x_mean = (n - 1) / 2
        y_mean = sum(medians) / n
        numerator = sum((i - x_mean) * (y - y_mean) for i, y in enumerate(medians))
        denominator = sum((i - x_mean) ** 2 for i in range(n))
        slope = numerator / denominator

        sigma = math.sqrt(sum((y - y_mean) ** 2 for y in medians) / n)
        outliers = []
        if sigma > 0:
            outliers = [e for e in chronological if abs(e.median - y_mean) / sigma > OUTLIER_Z]

        if slope > SLOPE_THRESHOLD:
            feedback = f"Rising trend: median survival grows {slope:.2f}s per run (getting easier)."
        elif slope < -SLOPE_THRESHOLD:
            feedback = (
                f"Falling trend: median survival drops {-slope:.2f}s per run (getting harder)."
            )
        else:
            feedback = f"Stable trend: median survival changes {slope:+.2f}s per run."
        if outliers:
            feedback += f" {len(outliers)} outlier run(s) detected."

        return TrendReport(
            slope=round(slope, 4), feedback=feedback, outliers=outliers, entries=chronological
        )

    def compare_latest(self, name: str | None = None) -> dict[str, Any] | None:
        """Differences between the two newest snapshots, or None."""
        entries = self.entries(name)
        if len(entries) < 2:
            return None
        newest, previous = entries[0], entries[1]
        return {
            "newest": newest.saved_at,
            "previous": previous.saved_at,
            "median_delta": (newest.median or 0.0) - (previous.median or 0.0),
            "timeout_rate_delta": newest.result.get("timeout_rate", 0.0)
            - previous.result.get("timeout_rate", 0.0),
            "zone_changed": newest.result.get("zone") != previous.result.get("zone"),
            "zones": (previous.result.get("zone"), newest.result.get("zone")),
        }

    def _files(self) -> list[Path]:
        """Snapshot files, oldest first."""
        return sorted(
            (p for p in self.history_dir.glob("*.json") if p.is_file()),
            key=lambda p: p.name,
        )

    def _next_seq(self, files: list[Path]) -> int:
        seqs = []
        for path in files:
            match = FILENAME_PATTERN.match(path.name)
            if match:
                seqs.append(int(match.group("seq")))
        return max(seqs, default=-1) + 1

    def _evict(self) -> None:
        files = self._files()
        for path in files[: max(0, len(files) - self.max_history)]:
            path.unlink()
            logger.debug(f"Evicted history snapshot {path.name}")
