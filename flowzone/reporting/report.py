"""Report generation for analysis results."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from flowzone.analysis.types import AnalysisResult
from flowzone.errors import ConfigError

RULE = "─" * 50

ZONE_TITLES = {
    "FLOW": "Flow Zone (likely fun)",
    "TOO_HARD": "Too hard",
    "TOO_EASY": "Too easy",
}


class ReportGenerator:
    """Generates reports in various formats.

    Supports a console summary, markdown, CSV (one row per trial) and JSON.
    """

    def render_text(self, result: AnalysisResult) -> str:
        """Human-readable console summary."""
        s = result.survival
        mode = " [level mode]" if result.level_mode else ""
        lines = [f"Result: {result.name} ({result.runs} runs){mode}", RULE]

        lines.append("Survival time")
        lines.append(f"  mean:    {s.mean:.1f}s  (sd={s.stddev:.1f}s)")
        lines.append(f"  median:  {s.median:.1f}s")
        lines.append(f"  range:   {s.min:.1f}s - {s.max:.1f}s")
        lines.append(f"  p25/p75/p90: {s.p25:.1f}s / {s.p75:.1f}s / {s.p90:.1f}s")

        lines.append("")
        lines.append("Distribution")
        for bucket in result.histogram:
            label = f"{bucket.start:.1f}-{bucket.end:.1f}s".ljust(14)
            lines.append(f"  {label} {bucket.bar} ({bucket.count})")

        lines.append("")
        lines.append("Score")
        lines.append(f"  mean:    {round(result.avg_score)}")
        lines.append(f"  max:     {result.max_score:g}")

        if result.level_stats:
            ls = result.level_stats
            lines.append("")
            lines.append("Level")
            lines.append(f"  mean:    {ls.mean:.1f}")
            lines.append(f"  median:  {ls.median:.1f}")
            lines.append(f"  range:   p25={ls.p25:.1f} / p75={ls.p75:.1f} / max={ls.max:g}")

        c = result.confidence
        lines.append("")
        lines.append(f"Timeouts: {result.timeout_rate * 100:.0f}%")
        lines.append(
            f"Median 95% CI: [{c.low:.1f}s, {c.high:.1f}s] (width {c.ci_width:.1f}s, "
            f"{c.sample_size_adequacy}, recommended runs {c.recommended_runs})"
        )
        d = result.death_pattern
        lines.append(f"Deaths: {d.cluster} (skewness {d.skewness:.2f}, kurtosis {d.kurtosis:.2f})")
        if result.score_curve:
            sc = result.score_curve
            lines.append(
                f"Score curve: {sc.pattern} ({sc.growth_first_half:.1f}/s first half, "
                f"{sc.growth_second_half:.1f}/s second half)"
            )

        lines.append(RULE)
        lines.append(f"{result.emoji} {ZONE_TITLES.get(result.zone, result.zone)}")
        lines.append(result.advice)
        if result.suggestions:
            lines.append("")
            lines.append("Suggestions")
            for suggestion in result.suggestions:
                lines.append(f"  - {suggestion}")
        return "\n".join(lines)

    def to_markdown(self, result: AnalysisResult, output_path: str) -> None:
        """Generate markdown report with tables.

        Args:
            result: Analysis result
            output_path: Path to output markdown file
        """
        s = result.survival
        c = result.confidence
        lines = [f"# {result.name}", ""]
        lines.append(f"**Verdict:** {result.emoji} {result.zone}")
        lines.append("")
        lines.append(f"**Runs:** {result.runs}")
        if result.genre:
            lines.append(f"**Genre:** {result.genre}")
        lines.append("")

        lines.append("## Survival time")
        lines.append("")
        lines.append("| Mean | Median | Std | Min | Max | p25 | p75 | p90 | p95 |")
        lines.append("|------|--------|-----|-----|-----|-----|-----|-----|-----|")
        lines.append(
            f"| {s.mean:.2f} | {s.median:.2f} | {s.stddev:.2f} | {s.min:.2f} | {s.max:.2f} | "
            f"{s.p25:.2f} | {s.p75:.2f} | {s.p90:.2f} | {s.p95:.2f} |"
        )
        lines.append("")
        lines.append(f"- Timeout rate: {result.timeout_rate * 100:.1f}%")
        lines.append(
            f"- Median 95% CI: [{c.low:.2f}, {c.high:.2f}] "
            f"({c.sample_size_adequacy}, recommended runs: {c.recommended_runs})"
        )
        lines.append(
            f"- Death cluster: {result.death_pattern.cluster} "
            f"(skewness {result.death_pattern.skewness:.3f})"
        )
        if result.score_curve:
            lines.append(f"- Score curve: {result.score_curve.pattern}")
        if result.level_stats:
            lines.append(f"- Median level: {result.level_stats.median:.1f}")
        lines.append("")

        lines.append("## Histogram")
        lines.append("")
        lines.append("| Range (s) | Count |")
        lines.append("|-----------|-------|")
        for bucket in result.histogram:
            lines.append(f"| {bucket.start:.1f} - {bucket.end:.1f} | {bucket.count} |")
        lines.append("")

        lines.append("## Suggestions")
        lines.append("")
        lines.append(result.advice)
        lines.append("")
        for suggestion in result.suggestions:
            lines.append(f"- {suggestion}")

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def to_csv(self, result: AnalysisResult, output_path: str) -> None:
        """Generate flat CSV with one row per trial.

        Args:
            result: Analysis result (must carry raw vectors)
            output_path: Path to output CSV file
        """
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["run", "survival_seconds", "score"])
            writer.writeheader()
            for i, (seconds, score) in enumerate(zip(result.times, result.scores), start=1):
                writer.writerow({"run": i, "survival_seconds": seconds, "score": score})

    def to_json(self, result: AnalysisResult, output_path: str) -> None:
        """Generate machine-readable JSON.

        Args:
            result: Analysis result
            output_path: Path to output JSON file
        """
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    def save(self, result: AnalysisResult, output_path: str) -> str:
        """Write result in the format implied by the file extension.

        Returns:
            The format written ("json", "markdown" or "csv")

        Raises:
            ConfigError: Unsupported extension
        """
        suffix = Path(output_path).suffix.lower()
        if suffix == ".json":
            self.to_json(result, output_path)
            return "json"
        if suffix in (".md", ".markdown"):
            self.to_markdown(result, output_path)
            return "markdown"
        if suffix == ".csv":
            self.to_csv(result, output_path)
            return "csv"
        raise ConfigError(f"Unsupported report format '{suffix}' (use .json, .md or .csv)")
