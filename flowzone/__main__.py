"""Command-line interface for flowzone.

Usage:
    python -m flowzone run --game example --runs 200 --genre action
    python -m flowzone run --config job.yaml --workers 4 --output report.md
    python -m flowzone optimize --game stack-tower --runs 50
    python -m flowzone history --name ExampleGame
    python -m flowzone trend --name ExampleGame
    python -m flowzone games
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from functools import partial
from pathlib import Path
from typing import Any

from flowzone.analysis.analyzer import BatchAnalyzer, with_parameter_suggestion
from flowzone.config import FlowConfig
from flowzone.errors import BatchError, ConfigError, FlowzoneError
from flowzone.experiments.batch import BatchOptions, ProgressEvent, run_batch
from flowzone.experiments.jobs import MAX_ITERATIONS, MAX_RUNS, JobConfig
from flowzone.experiments.parallel import run_batch_parallel
from flowzone.games import GAMES
from flowzone.history.store import HistoryStore
from flowzone.optimizer.optimizer import DEFAULT_PARAMS, IterationRecord, Optimizer
from flowzone.reporting.report import ReportGenerator
from flowzone.strategies import STRATEGIES
from flowzone.zone.params import ParamSpec
from flowzone.zone.policy import GENRE_PRESETS, ZonePolicyConfig

MIN_PORT = 1024
MAX_PORT = 65535


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "run": run_command,
        "optimize": optimize_command,
        "history": history_command,
        "trend": trend_command,
        "games": games_command,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except (FlowzoneError, FileNotFoundError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowzone",
        description="Simulate games with bots and check whether difficulty sits in the Flow Zone",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: warning)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Run one batch
    run_parser = subparsers.add_parser("run", help="Run a batch and classify it")
    _add_job_arguments(run_parser)
    run_parser.add_argument("--serve", action="store_true", help="Start the live dashboard")
    run_parser.add_argument("--port", type=int, help="Dashboard port (default: 4567)")
    run_parser.add_argument(
        "--no-history", action="store_true", help="Do not save the result to history"
    )

    # Optimize one parameter
    optimize_parser = subparsers.add_parser(
        "optimize", help="Search a parameter value that lands in the Flow Zone"
    )
    _add_job_arguments(optimize_parser)
    optimize_parser.add_argument(
        "--iterations", type=int, help=f"Maximum search iterations (1-{MAX_ITERATIONS}, default 20)"
    )

    # History
    history_parser = subparsers.add_parser("history", help="List saved results")
    history_parser.add_argument("--name", help="Only show results with this name")
    history_parser.add_argument("--history-dir", help="History directory")
    history_parser.add_argument("--limit", type=int, default=10, help="Entries to show")

    # Trend
    trend_parser = subparsers.add_parser("trend", help="Median survival trend across saved results")
    trend_parser.add_argument("--name", help="Only consider results with this name")
    trend_parser.add_argument("--history-dir", help="History directory")

    subparsers.add_parser("games", help="List bundled games and strategies")

    return parser


def _add_job_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to job YAML (flags override its values)")
    parser.add_argument("--game", choices=sorted(GAMES), help="Bundled game (default: example)")
    parser.add_argument(
        "--strategy", choices=sorted(STRATEGIES), help="Decision strategy (default: random)"
    )
    parser.add_argument("--runs", type=int, help=f"Trials per batch (1-{MAX_RUNS})")
    parser.add_argument("--workers", type=int, help="Worker processes (default: 1)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--max-seconds", type=float, help="Trial time limit in seconds")
    parser.add_argument("--genre", choices=sorted(GENRE_PRESETS), help="Genre preset")
    parser.add_argument("--min-median", type=float, help="Minimum median survival seconds")
    parser.add_argument("--max-timeout-rate", type=float, help="Maximum timeout rate (0-1)")
    parser.add_argument("--level-mode", action="store_true", help="Classify by median level")
    parser.add_argument("--min-level", type=float, help="Minimum median level (level mode)")
    parser.add_argument("--max-level", type=float, help="Maximum median level (level mode)")
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Game config value (repeatable)",
    )
    parser.add_argument(
        "--strategy-option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Strategy option (repeatable)",
    )
    parser.add_argument(
        "--param",
        metavar="NAME:MIN:MAX[:higher|lower]",
        help="Tunable parameter (value suggestions for run, search target for optimize)",
    )
    parser.add_argument("--output", help="Report path (.json, .md or .csv)")
    parser.add_argument("--history-dir", help="History directory")


def load_job(args: argparse.Namespace, default_runs: int = 100) -> JobConfig:
    """Merge the YAML job (if any) with command-line overrides."""
    data: dict[str, Any] = {"runs": default_runs}
    if args.config:
        data = _job_to_dict(JobConfig.from_yaml(args.config))

    for key in ("game", "strategy", "runs", "workers", "seed", "max_seconds", "genre", "output"):
        value = getattr(args, key, None)
        if value is not None:
            data[key] = value
    if getattr(args, "iterations", None) is not None:
        data["max_iterations"] = args.iterations

    data["game_config"] = {**data.get("game_config", {}), **parse_assignments(args.set)}
    data["strategy_options"] = {
        **data.get("strategy_options", {}),
        **parse_assignments(args.strategy_option),
    }
    policy = dict(data.get("policy", {}))
    flag_policy = {
        "min_median_seconds": args.min_median,
        "max_timeout_rate": args.max_timeout_rate,
        "min_median_level": args.min_level,
        "max_median_level": args.max_level,
    }
    policy.update({k: v for k, v in flag_policy.items() if v is not None})
    if args.level_mode:
        policy["level_mode"] = True
    data["policy"] = policy
    if args.param:
        data["param"] = parse_param(args.param)

    job = JobConfig.from_dict(data)
    if job.game not in GAMES:
        raise ConfigError(f"Unknown game '{job.game}'. Available: {', '.join(sorted(GAMES))}")
    if job.strategy not in STRATEGIES:
        raise ConfigError(
            f"Unknown strategy '{job.strategy}'. Available: {', '.join(sorted(STRATEGIES))}"
        )
    return job


def _job_to_dict(job: JobConfig) -> dict[str, Any]:
    data = dict(vars(job))
    if job.param is not None:
        data["param"] = {
            "name": job.param.name,
            "min": job.param.min,
            "max": job.param.max,
            "hard_direction": job.param.hard_direction.value,
            "strategy_options": job.param.strategy_options,
            "policy_overrides": job.param.policy_overrides,
        }
    return data


def parse_assignments(items: list[str]) -> dict[str, float]:
    """Parse KEY=VALUE pairs into finite numbers."""
    values = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise ConfigError(f"Invalid assignment '{item}', expected KEY=VALUE")
        try:
            value = float(raw)
        except ValueError as err:
            raise ConfigError(f"Value for '{key}' must be a number, got '{raw}'") from err
        if not math.isfinite(value):
            raise ConfigError(f"Value for '{key}' must be finite, got '{raw}'")
        values[key] = value
    return values


def parse_param(text: str) -> dict[str, Any]:
    """Parse NAME:MIN:MAX[:higher|lower]."""
    parts = text.split(":")
    if len(parts) not in (3, 4):
        raise ConfigError(f"Invalid parameter '{text}', expected NAME:MIN:MAX[:higher|lower]")
    try:
        low, high = float(parts[1]), float(parts[2])
    except ValueError as err:
        raise ConfigError(f"Invalid bounds in parameter '{text}'") from err
    return {
        "name": parts[0],
        "min": low,
        "max": high,
        "hard_direction": parts[3] if len(parts) == 4 else "higher",
    }


def resolve_output(path: str) -> Path:
    """Resolve a report path, refusing paths outside the working directory."""
    cwd = Path.cwd().resolve()
    resolved = (cwd / path).resolve()
    if not resolved.is_relative_to(cwd):
        raise ConfigError(f"Output path '{path}' must stay inside {cwd}")
    return resolved


def build_settings(job: JobConfig) -> FlowConfig:
    config = FlowConfig()
    updates: dict[str, Any] = {}
    if job.max_seconds is not None:
        updates["max_seconds"] = job.max_seconds
    if job.seed is not None:
        updates["seed"] = job.seed
    return config.model_copy(update=updates) if updates else config


def build_policy(job: JobConfig) -> ZonePolicyConfig:
    return ZonePolicyConfig.from_genre(job.genre, **job.policy)


def run_command(args: argparse.Namespace) -> None:
    """Run one batch, print the analysis and store it."""
    job = load_job(args)
    settings = build_settings(job)
    policy = build_policy(job)
    output = resolve_output(job.output) if job.output else None
    history = HistoryStore(args.history_dir or settings.history_dir, settings.max_history)

    server = None
    if args.serve:
        port = args.port if args.port is not None else settings.dashboard_port
        if not MIN_PORT <= port <= MAX_PORT:
            raise ConfigError(f"Port must be between {MIN_PORT} and {MAX_PORT}, got {port}")
        from flowzone.visualization.live import LiveServer

        server = LiveServer(port=port, history=history)
        server.start()
        server.wait_until_ready()

    def on_progress(event: ProgressEvent) -> None:
        print(f"\r  {event.run}/{event.total} runs ({event.elapsed:.1f}s)", end="", flush=True)
        if server is not None:
            server.send_progress(event)

    entity_factory = partial(GAMES[job.game], job.game_config)
    strategy_factory = partial(STRATEGIES[job.strategy], job.strategy_options)
    options = BatchOptions.from_config(settings, progress_callback=on_progress)

    print(f"Running {job.runs} trials of {job.game} with the {job.strategy} strategy")
    try:
        if job.workers > 1:
            outcome = run_batch_parallel(
                entity_factory,
                strategy_factory,
                job.runs,
                settings.tick_budget,
                job.workers,
                options,
            )
        else:
            outcome = run_batch(
                entity_factory, strategy_factory, job.runs, settings.tick_budget, options
            )
    except BatchError as e:
        if server is not None:
            server.send_error(str(e))
        raise
    finally:
        print()

    result = BatchAnalyzer(settings, policy, bootstrap_seed=settings.seed).analyze(outcome)
    if job.param is not None and job.param.name in job.game_config:
        result = with_parameter_suggestion(result, job.param, job.game_config[job.param.name])

    print(ReportGenerator().render_text(result))

    if not args.no_history:
        history.save(result)
    if output is not None:
        fmt = ReportGenerator().save(result, str(output))
        print(f"\nSaved {fmt} report to {output}")
    if server is not None:
        server.send_result(result)
        print(f"\nDashboard running at {server.url} (Ctrl+C to exit)")
        try:
            server.wait_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.stop()


def optimize_command(args: argparse.Namespace) -> None:
    """Search one parameter for a Flow Zone value."""
    job = load_job(args, default_runs=50)
    settings = build_settings(job)
    output = resolve_output(job.output) if job.output else None
    history = HistoryStore(args.history_dir or settings.history_dir, settings.max_history)

    param = job.param or DEFAULT_PARAMS.get(job.game)
    if param is None:
        raise ConfigError(
            f"No default parameter for game '{job.game}'. Pass --param NAME:MIN:MAX[:direction]"
        )
    policy = param.tuning_policy(job.genre, **job.policy)
    level_mode = policy.level_mode

    def on_iteration(record: IterationRecord) -> None:
        if level_mode and record.median_level is not None:
            stat = f"median level {record.median_level:.1f}"
        else:
            stat = f"median {record.median_seconds:.1f}s, timeouts {record.timeout_rate * 100:.0f}%"
        print(
            f"  iter {record.iteration:2d}: {param.name}={record.value:8.3f} -> "
            f"{record.verdict.value:<10} ({stat})"
        )

    optimizer = Optimizer(
        runs=job.runs,
        max_iterations=job.max_iterations,
        policy=policy,
        config=settings,
        workers=job.workers,
        iteration_callback=on_iteration,
    )

    print(f"Optimizing {param.name} in [{param.min:g}, {param.max:g}] for {job.game}")
    opt = optimizer.optimize(
        GAMES[job.game],
        STRATEGIES[job.strategy],
        job.strategy_options,
        param,
        base_config=job.game_config,
    )

    value = opt.config[param.name]
    if opt.found:
        print(f"\nFlow Zone found: {param.name} = {value:.4f}")
    else:
        print(f"\nNo Flow Zone value found. Closest probe: {param.name} = {value:.4f}")
    print(ReportGenerator().render_text(opt.result))

    history.save(opt.result)
    if output is not None:
        fmt = ReportGenerator().save(opt.result, str(output))
        print(f"\nSaved {fmt} report to {output}")


def history_command(args: argparse.Namespace) -> None:
    """List saved results, newest first."""
    settings = FlowConfig()
    store = HistoryStore(args.history_dir or settings.history_dir, settings.max_history)
    entries = store.entries(args.name)[: args.limit]
    if not entries:
        print(f"No history found in {store.history_dir}")
        return

    print(f"Found {len(entries)} result(s):\n")
    for entry in entries:
        median = f"{entry.median:.1f}s" if entry.median is not None else "n/a"
        runs = entry.result.get("runs", "?")
        print(f"{entry.saved_at}  {entry.name}")
        print(f"  Runs: {runs}  Median: {median}  Zone: {entry.result.get('zone')}")

    change = store.compare_latest(args.name)
    if change:
        summary = (
            f"\nLatest vs previous: median {change['median_delta']:+.1f}s, "
            f"timeouts {change['timeout_rate_delta'] * 100:+.0f}%"
        )
        if change["zone_changed"]:
            summary += f", zone {change['zones'][0]} -> {change['zones'][1]}"
        print(summary)


def trend_command(args: argparse.Namespace) -> None:
    """Print the median survival trend."""
    settings = FlowConfig()
    store = HistoryStore(args.history_dir or settings.history_dir, settings.max_history)
    report = store.trend(args.name)
    print(report.feedback)
    if report.slope is not None:
        print(f"Slope: {report.slope:+.3f}s per run over {len(report.entries)} runs")
    for entry in report.outliers:
        print(f"  Outlier: {entry.saved_at} median {entry.median:.1f}s")


def games_command(args: argparse.Namespace) -> None:
    """List bundled games, their default search parameter and strategies."""
    print("Games:")
    for name in sorted(GAMES):
        param: ParamSpec | None = DEFAULT_PARAMS.get(name)
        if param:
            detail = (
                f"{param.name} in [{param.min:g}, {param.max:g}], "
                f"harder when {param.hard_direction.value}"
            )
        else:
            detail = "no default parameter"
        print(f"  {name:<12} {detail}")
    print("Strategies:")
    for name in sorted(STRATEGIES):
        print(f"  {name}")


if __name__ == "__main__":
    main()
