#!/usr/bin/env python3
"""
Inspect quota settings and simulate traffic against the tracker.

Usage:
    python scripts/quota_report.py show
    python scripts/quota_report.py show --config configs/quota.yaml
    python scripts/quota_report.py simulate 203.0.113.7 --requests 20 --tokens 1500
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from vagatrack.contexts.quota.config import load_quota_config
from vagatrack.contexts.quota.logger import setup_quota_logger
from vagatrack.contexts.quota.responses import build_rejection
from vagatrack.contexts.quota.tracker import QuotaTracker
from vagatrack.utils.logger import session_log_dir

app = typer.Typer(
    help="Inspect and exercise AI endpoint quotas",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load(config: Optional[Path]):
    try:
        return load_quota_config(config)
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Quota YAML file"),
    ] = None,
):
    """Print the effective quota configuration."""
    settings = _load(config)

    typer.echo("=== Effective quota ===")
    typer.echo(f"  Requests: {settings.max_requests} per {settings.request_window_seconds}s")
    typer.echo(f"  Tokens:   {settings.max_tokens} per {settings.token_window_seconds}s")
    typer.echo(f"  Cleanup:  every {settings.cleanup_interval_seconds}s")


@app.command()
def simulate(
    client_id: Annotated[
        str,
        typer.Argument(help="Client identifier (e.g., an IP address)"),
    ],
    requests: Annotated[
        int,
        typer.Option("--requests", "-n", help="Number of calls to attempt", min=1),
    ] = 20,
    tokens: Annotated[
        int,
        typer.Option("--tokens", "-t", help="Tokens charged per allowed call", min=0),
    ] = 1000,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Quota YAML file"),
    ] = None,
    log: Annotated[
        bool,
        typer.Option("--log", help="Write a detailed log under LOGS_PATH"),
    ] = False,
):
    """Fire a burst of calls for one client and report where it gets limited."""
    if log:
        log_file = setup_quota_logger(session_log_dir("quota"))
        typer.echo(f"Log file: {log_file}")

    tracker = QuotaTracker(_load(config))

    allowed = 0
    for attempt in range(1, requests + 1):
        result = tracker.check(client_id)
        if not result.allowed:
            rejection = build_rejection(result, tracker.clock())
            typer.secho(
                f"  #{attempt}: denied ({rejection.body['error']}), "
                f"retry after {rejection.retry_after}s",
                fg=typer.colors.YELLOW,
            )
            continue

        tracker.consume_request(client_id)
        tracker.consume_tokens(client_id, tokens)
        allowed += 1

    final = tracker.check(client_id)
    typer.echo(f"\n=== {client_id} ===")
    typer.echo(f"  Allowed: {allowed}/{requests}")
    typer.echo(f"  Remaining requests: {final.remaining.requests}/{final.limit.requests}")
    typer.echo(f"  Remaining tokens:   {final.remaining.tokens}/{final.limit.tokens}")


if __name__ == "__main__":
    app()
