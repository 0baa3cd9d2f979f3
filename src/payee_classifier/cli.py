"""CLI for the payee classifier.

Commands:
- classify: Classify one or more payee names and print the decisions
- batch: Classify the payee column of a CSV, realtime or as an async batch job
- jobs list/refresh/wait/download/cancel/remove: Manage submitted batch jobs
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .application.batch_processing import BatchJobHandle, BatchOrchestrator, ProcessingMode
from .application.classify import PayeeClassifier
from .application.export import BatchStatistics, export_results, summarize_results
from .application.job_lifecycle import JobLifecycleTracker
from .config import ClassifierConfig, NonNegativeNumberEnvVarError, PositiveIntegerEnvVarError
from .config_file import load_classifier_config_file
from .domain.batch_job import BatchJobStatus, StoredBatchJob
from .domain.classification import BatchProcessingResult
from .exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
    LogLevelError,
    NerProviderError,
    PayeeClassifierError,
)
from .infrastructure.filesystem import frame_to_rows, records_to_frame
from .observability.logging import set_log_level
from .protocols import ProgressReporter, TableIO

_CONFIG_ERRORS = (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
    NerProviderError,
    NonNegativeNumberEnvVarError,
    PositiveIntegerEnvVarError,
)


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: ClassifierConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    classifier: PayeeClassifier
    tracker: JobLifecycleTracker
    orchestrator: BatchOrchestrator
    table_io: TableIO
    progress: ProgressReporter


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: ClassifierConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: ClassifierConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the payee-classifier entry point.")


class MissingPayeeColumnError(typer.BadParameter):
    """Raised when the input CSV has no payee name column."""

    def __init__(self, column: str, available: list[str]) -> None:
        super().__init__(
            f"Column '{column}' not found. Available columns: {', '.join(available)}",
            param_hint="--column",
        )


DEFAULT_BATCH_OUT = Path("data/out/classified_payees.csv")
DEFAULT_PAYEE_COLUMN = "Payee_Name"


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _config_with_exclusions(
    config: ClassifierConfig, exclude: list[str] | None
) -> ClassifierConfig:
    if not exclude:
        return config
    return config.with_overrides(exclusion_keywords=(*config.exclusion_keywords, *exclude))


@contextmanager
def _exit_on_error() -> Iterator[None]:
    try:
        yield
    except PayeeClassifierError as exc:
        rprint(f"[red]✗ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def _format_timestamp(seconds: int | None) -> str:
    if seconds is None:
        return "-"
    return datetime.fromtimestamp(seconds, UTC).strftime("%Y-%m-%d %H:%M:%S")


def _print_job(stored: StoredBatchJob) -> None:
    counts = stored.job.request_counts
    rprint(
        f"  {stored.id}: [bold]{stored.status.value}[/bold] "
        f"({counts.completed}/{counts.total} completed, {counts.failed} failed)"
    )


def _print_statistics(stats: BatchStatistics) -> None:
    rprint(
        f"  {stats.total:,} payees → {stats.business_count:,} business, "
        f"{stats.individual_count:,} individual"
    )
    rprint(
        f"  Excluded: {stats.excluded_count:,}  Failed: {stats.failed_count:,}  "
        f"Average confidence: {stats.average_confidence}%"
    )
    for tier, count in sorted(stats.tier_counts.items()):
        rprint(f"  {tier}: {count:,}")


def _write_export(
    deps: CliDependencies,
    result: BatchProcessingResult,
    output: Path,
    *,
    include_all_columns: bool,
    payee_column: str | None,
) -> None:
    records = export_results(
        result, include_all_columns=include_all_columns, payee_column=payee_column
    )
    deps.table_io.write_csv(records_to_frame(records), output)
    rprint(f"[green]✓ Wrote {len(records):,} rows:[/green] {output}")
    _print_statistics(summarize_results(result.results))


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Payee classifier: business vs individual, realtime or as async batch jobs",
    )
    jobs_app = typer.Typer(add_completion=False, help="Manage submitted batch jobs")
    app.add_typer(jobs_app, name="jobs")

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                help="TOML config file overriding environment settings",
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option(
                "--log-level",
                help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            ),
        ] = None,
    ) -> None:
        """Initialise CLI context."""
        try:
            if log_level is not None:
                set_log_level(log_level)
        except LogLevelError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        try:
            config = ClassifierConfig.from_env()
            if config_path is not None:
                config = config.with_file_overrides(load_classifier_config_file(config_path))
        except _CONFIG_ERRORS as exc:
            raise typer.BadParameter(str(exc)) from exc
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def classify(
        ctx: typer.Context,
        names: Annotated[list[str], typer.Argument(help="Payee names to classify")],
        exclude: Annotated[
            list[str] | None,
            typer.Option(
                "--exclude",
                "-x",
                help="Extra exclusion keyword (repeatable)",
            ),
        ] = None,
    ) -> None:
        """Classify payee names with the deterministic pipeline."""
        state = _get_context(ctx)
        deps = state.build_dependencies(config=_config_with_exclusions(state.config, exclude))
        table = Table(title="Payee classification")
        table.add_column("Payee")
        table.add_column("Classification")
        table.add_column("Confidence", justify="right")
        table.add_column("Tier")
        table.add_column("Reasoning")
        for name in names:
            result = deps.classifier.classify(name)
            table.add_row(
                escape(name),
                result.classification.value,
                f"{result.confidence}%",
                result.processing_tier.value,
                escape(result.reasoning),
            )
        Console().print(table)

    @app.command()
    def batch(
        ctx: typer.Context,
        input_path: Annotated[Path, typer.Argument(help="CSV file with a payee name column")],
        column: Annotated[
            str,
            typer.Option(
                "--column",
                "-c",
                help="Column holding payee names",
            ),
        ] = DEFAULT_PAYEE_COLUMN,
        mode: Annotated[
            ProcessingMode,
            typer.Option(
                "--mode",
                "-m",
                help="realtime: classify now; batch: submit an async job",
            ),
        ] = ProcessingMode.REALTIME,
        output: Annotated[
            Path,
            typer.Option(
                "--output",
                "-o",
                help="Output CSV path (realtime mode)",
            ),
        ] = DEFAULT_BATCH_OUT,
        all_columns: Annotated[
            bool,
            typer.Option(
                "--all-columns/--classification-only",
                help="Keep every original column in the export",
            ),
        ] = True,
        exclude: Annotated[
            list[str] | None,
            typer.Option(
                "--exclude",
                "-x",
                help="Extra exclusion keyword (repeatable)",
            ),
        ] = None,
    ) -> None:
        """Classify the payee column of a CSV file.

        Batch mode stores the job and returns immediately; use `jobs wait` and
        `jobs download` to collect the results.
        """
        state = _get_context(ctx)
        deps = state.build_dependencies(config=_config_with_exclusions(state.config, exclude))
        df = deps.table_io.read_csv(input_path)
        if column not in df.columns:
            raise MissingPayeeColumnError(column, [str(c) for c in df.columns])
        rows = frame_to_rows(df)
        names = ["" if row.get(column) is None else str(row.get(column)) for row in rows]

        deps.progress.start(f"Classifying {len(names):,} payees", len(names))
        try:
            with _exit_on_error():
                outcome = asyncio.run(
                    deps.orchestrator.process_batch(
                        names,
                        mode,
                        on_progress=deps.progress.update,
                        original_file_data=rows,
                        description=f"{input_path.name}: {len(names)} payees",
                    )
                )
        finally:
            deps.progress.finish()

        if isinstance(outcome, BatchJobHandle):
            rprint(f"[green]✓ Submitted batch job:[/green] {outcome.id}")
            rprint(f"  Payees: {outcome.payee_count:,}  Status: {outcome.job.status.value}")
            rprint(f"  Next: payee-classifier jobs wait {outcome.id}")
            return
        _write_export(
            deps, outcome, output, include_all_columns=all_columns, payee_column=column
        )

    @jobs_app.command(name="list")
    def list_jobs(ctx: typer.Context) -> None:
        """List stored batch jobs, newest first."""
        deps = _get_context(ctx).build_dependencies()
        with _exit_on_error():
            jobs = asyncio.run(deps.tracker.list_jobs())
        if not jobs:
            rprint("[yellow]No stored batch jobs[/yellow]")
            return
        table = Table(title="Batch jobs")
        table.add_column("Job ID")
        table.add_column("Status")
        table.add_column("Payees", justify="right")
        table.add_column("Created (UTC)")
        table.add_column("Description")
        for stored in jobs:
            table.add_row(
                stored.id,
                stored.status.value,
                f"{len(stored.payee_names):,}",
                _format_timestamp(stored.job.created_at),
                escape(stored.job.metadata.get("description", "")),
            )
        Console().print(table)

    @jobs_app.command()
    def refresh(
        ctx: typer.Context,
        job_id: Annotated[str, typer.Argument(help="Batch job id")],
    ) -> None:
        """Poll a job once and store its latest status."""
        deps = _get_context(ctx).build_dependencies()
        with _exit_on_error():
            stored = asyncio.run(deps.tracker.refresh(job_id))
        _print_job(stored)

    @jobs_app.command()
    def wait(
        ctx: typer.Context,
        job_id: Annotated[str, typer.Argument(help="Batch job id")],
        interval: Annotated[
            float | None,
            typer.Option(
                "--interval",
                help="Seconds between polls (default: POLL_INTERVAL_SECONDS)",
            ),
        ] = None,
    ) -> None:
        """Poll a job until it completes, fails, expires or is cancelled."""
        state = _get_context(ctx)
        config = state.config
        if interval is not None:
            config = config.with_overrides(poll_interval_seconds=interval)
        deps = state.build_dependencies(config=config)
        with _exit_on_error():
            stored = asyncio.run(deps.tracker.poll_until_terminal(job_id, on_update=_print_job))
        colour = "green" if stored.status is BatchJobStatus.COMPLETED else "yellow"
        rprint(f"[{colour}]✓ Job {stored.id} finished: {stored.status.value}[/{colour}]")

    @jobs_app.command()
    def download(
        ctx: typer.Context,
        job_id: Annotated[str, typer.Argument(help="Batch job id")],
        output: Annotated[
            Path,
            typer.Option(
                "--output",
                "-o",
                help="Output CSV path",
            ),
        ] = DEFAULT_BATCH_OUT,
        column: Annotated[
            str | None,
            typer.Option(
                "--column",
                "-c",
                help="Payee column in the stored rows, for name-based reconciliation",
            ),
        ] = None,
        all_columns: Annotated[
            bool,
            typer.Option(
                "--all-columns/--classification-only",
                help="Keep every original column in the export",
            ),
        ] = True,
    ) -> None:
        """Download a completed job's results and merge them onto the stored rows."""
        deps = _get_context(ctx).build_dependencies()
        with _exit_on_error():
            result = asyncio.run(deps.tracker.complete(job_id))
        _write_export(
            deps, result, output, include_all_columns=all_columns, payee_column=column
        )

    @jobs_app.command()
    def cancel(
        ctx: typer.Context,
        job_id: Annotated[str, typer.Argument(help="Batch job id")],
    ) -> None:
        """Cancel a running job."""
        deps = _get_context(ctx).build_dependencies()
        with _exit_on_error():
            stored = asyncio.run(deps.tracker.cancel(job_id))
        _print_job(stored)

    @jobs_app.command()
    def remove(
        ctx: typer.Context,
        job_id: Annotated[str, typer.Argument(help="Batch job id")],
    ) -> None:
        """Remove a job from local (and remote) storage."""
        deps = _get_context(ctx).build_dependencies()
        with _exit_on_error():
            asyncio.run(deps.tracker.remove(job_id))
        rprint(f"[green]✓ Removed job:[/green] {job_id}")

    _ = (main, classify, batch, list_jobs, refresh, wait, download, cancel, remove)

    return app
