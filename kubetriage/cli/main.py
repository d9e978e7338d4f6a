"""kubetriage command-line interface.

Commands:
    kubetriage triage FILE [--namespace NS] [--selector S] [--release R]
                           [--limit-events N] [--json]
                                           Triage a ``kubectl get -o json`` List document.
    kubetriage version                     Print version and exit.

``FILE`` may be ``-`` to read from stdin. Exit status is 0 for PASS/WARN and
2 for FAIL/UNKNOWN, so the command can gate a deployment pipeline.
"""

from __future__ import annotations

import json
from typing import TextIO

import click

from kubetriage import __version__
from kubetriage.analyst.coordinator import TriageCoordinator
from kubetriage.api.schemas import TriageReportSchema
from kubetriage.collector.snapshot_builder import SnapshotError, snapshot_from_list
from kubetriage.config import load_config
from kubetriage.detection import build_pipeline
from kubetriage.models.analysis import TriageReport
from kubetriage.models.config import TriageConfig
from kubetriage.models.findings import Finding, OverallStatus
from kubetriage.models.snapshot import DetectionContext
from kubetriage.observability.logging import setup_logging

_FAILING_EXIT_CODE = 2

# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

_STATUS_COLORS: dict[str, str] = {
    "PASS": "green",
    "WARN": "yellow",
    "FAIL": "red",
    "UNKNOWN": "magenta",
}

_SEVERITY_COLORS: dict[str, str] = {
    "INFO": "green",
    "WARN": "yellow",
    "ERROR": "red",
}


def _styled_status(status: str) -> str:
    return click.style(status, fg=_STATUS_COLORS.get(status, "white"), bold=True)


def _styled_severity(severity: str) -> str:
    color = _SEVERITY_COLORS.get(severity.upper(), "white")
    return click.style(severity.upper(), fg=color, bold=True)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """kubetriage: Kubernetes deployment triage CLI."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.ClickException(f"Configuration error: {exc}") from exc
    setup_logging(config.log.level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# kubetriage version
# ---------------------------------------------------------------------------


@cli.command("version")
def cmd_version() -> None:
    """Print the kubetriage version and exit."""
    click.echo(f"kubetriage {__version__}")


# ---------------------------------------------------------------------------
# kubetriage triage
# ---------------------------------------------------------------------------


@cli.command("triage")
@click.argument("snapshot_file", metavar="FILE", type=click.File("r"))
@click.option("--namespace", "-n", default=None, metavar="NS", help="Namespace the snapshot was taken from.")
@click.option("--selector", "-l", default=None, metavar="S", help="Label selector the snapshot was scoped by.")
@click.option("--release", default=None, metavar="R", help="Helm release the snapshot was scoped by.")
@click.option(
    "--limit-events",
    type=click.IntRange(1, 500),
    default=None,
    help="Maximum events kept in the snapshot.  [default: from config]",
)
@click.option("--json", "output_json", is_flag=True, default=False, help="Print the report as JSON.")
@click.pass_context
def cmd_triage(
    ctx: click.Context,
    snapshot_file: TextIO,
    namespace: str | None,
    selector: str | None,
    release: str | None,
    limit_events: int | None,
    output_json: bool,
) -> None:
    """Triage a Kubernetes List document (``kubectl get pods,deploy,events -o json``)."""
    config: TriageConfig = ctx.obj["config"]
    limit = limit_events or config.snapshot.limit_events

    try:
        doc = json.load(snapshot_file)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON in {snapshot_file.name}: {exc}") from exc

    try:
        snapshot = snapshot_from_list(doc, limit_events=limit)
    except SnapshotError as exc:
        raise click.ClickException(f"Invalid snapshot: {exc}") from exc

    detection_ctx = DetectionContext(
        namespace=namespace or config.snapshot.default_namespace,
        selector=selector,
        release=release,
        limit_events=limit,
    )
    pipeline = build_pipeline(
        disabled=config.pipeline.disabled_detectors,
        max_workers=config.pipeline.max_workers,
    )
    report = TriageCoordinator(pipeline).triage(snapshot, detection_ctx)

    if output_json:
        schema = TriageReportSchema.from_report(report, include_debug=config.output.debug_scores)
        click.echo(schema.model_dump_json(indent=2))
    else:
        _print_report(report, debug_scores=config.output.debug_scores)

    if report.health.overall in (OverallStatus.FAIL, OverallStatus.UNKNOWN):
        ctx.exit(_FAILING_EXIT_CODE)


def _print_finding(label: str, finding: Finding) -> None:
    click.echo(
        click.style(f"{label}:", bold=True)
        + f" {_styled_severity(finding.severity.value)} {finding.code.value}  {finding.title}"
    )


def _print_report(report: TriageReport, *, debug_scores: bool) -> None:
    """Pretty-print a TriageReport."""
    health = report.health
    click.echo(
        click.style("Health", bold=True)
        + f"  {_styled_status(health.overall.value)}"
        + f"  deployments ready: {health.deployments_ready}"
    )
    if health.pods:
        counts = "  ".join(f"{k}={v}" for k, v in health.pods.items())
        click.echo(f"  pods: {counts}")
    click.echo("")

    if report.primary_failure is not None:
        _print_finding("Primary failure", report.primary_failure)
    if report.top_warning is not None:
        _print_finding("Top warning", report.top_warning)

    if not report.findings:
        click.echo(click.style("No findings.", fg="green"))
        return

    click.echo("")
    click.echo(click.style(f"Findings ({len(report.findings)}):", bold=True))
    for finding in report.findings:
        click.echo(
            f"  [{_styled_severity(finding.severity.value)}] {finding.code.value}"
            f"  owner={finding.owner.value}  {finding.title}"
        )
        click.echo(f"      {finding.explanation}")
        for ev in finding.evidence:
            suffix = f": {ev.message}" if ev.message else ""
            click.echo(f"      - {ev.kind}/{ev.name}{suffix}")
        for i, step in enumerate(finding.next_steps, start=1):
            click.echo(f"      {i}. {step}")

    debug = report.primary_failure_debug
    if debug_scores and debug is not None:
        click.echo("")
        click.echo(click.style("Score debug:", bold=True) + f" chosen_by={debug.chosen_by} score={debug.score}")
        breakdown = "  ".join(f"{k}={v}" for k, v in debug.score_breakdown.items())
        click.echo(f"  {breakdown}")
        click.echo(f"  candidates: {', '.join(debug.competing_findings)}")

    if report.meta.warnings:
        click.echo("")
        click.echo(click.style("Pipeline warnings:", fg="yellow", bold=True))
        for warning in report.meta.warnings:
            click.echo(f"  {warning}")
