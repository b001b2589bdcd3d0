"""cf-user-migration CLI: Typer app with export/import subcommands."""

from __future__ import annotations

import logging
import sys
import traceback
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cf_user_migration import __version__
from cf_user_migration.cc_client import CloudControllerClient
from cf_user_migration.cf_config import CfConfig, derive_uaa_url
from cf_user_migration.errors import GuardError, MigrationError, NotLoggedInError
from cf_user_migration.io import write_json
from cf_user_migration.orchestrator import MigrationOrchestrator
from cf_user_migration.report import MigrationReport, Outcome
from cf_user_migration.settings import Settings, load_settings
from cf_user_migration.snapshot import MigrationSnapshot
from cf_user_migration.uaa_client import UaaClient

logger = logging.getLogger(__name__)

console = Console(stderr=True)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FAILURES = 2
EXIT_GUARD = 3

app = typer.Typer(
    name="cf-user-migration",
    help=(
        "Pulls all org and space users from a Cloud Foundry deployment and migrates them to another.\n\n"
        "Exit codes: 0=OK, 1=ERROR, 2=COMPLETED_WITH_FAILURES, 3=SELF_IMPORT_REFUSED."
    ),
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog=(
        "Typical run:\n"
        "  cf login -a https://api.source.example.com\n"
        "  cf-user-migration export users.json\n"
        "  cf login -a https://api.target.example.com\n"
        "  cf-user-migration import users.json\n\n"
        "UAA client credentials come from UAA_CLIENTID and UAA_CLIENTSECRET."
    ),
)

_VERBOSE = typer.Option(False, "--verbose", help="Enable DEBUG logging.")
_CONFIG = typer.Option(None, "--config", "-c", help="YAML settings file overriding the environment.")
_REPORT_FILE = typer.Option(None, "--report-file", help="Also write the run report as JSON to this file.")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
        stream=sys.stderr,
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"cf-user-migration v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit.",
        callback=_version_callback, is_eager=True,
    ),
) -> None:
    """Migrate UAA users and their org/space roles between Cloud Foundry deployments."""
    pass


# ── export ───────────────────────────────────────────────────────

@app.command()
def export(
    file: str = typer.Argument(..., help="Snapshot file to write, or - for stdout."),
    config: Optional[str] = _CONFIG,
    report_file: Optional[str] = _REPORT_FILE,
    verbose: bool = _VERBOSE,
) -> None:
    """Export users and roles of the targeted deployment to a snapshot file.

    Example:
      cf-user-migration export users.json
    """
    _setup_logging(verbose)
    _run_safe(lambda: _export_impl(file, config, report_file), verbose=verbose)


@app.command()
def report(
    config: Optional[str] = _CONFIG,
    report_file: Optional[str] = _REPORT_FILE,
    verbose: bool = _VERBOSE,
) -> None:
    """Print the snapshot of the targeted deployment to stdout."""
    _setup_logging(verbose)
    _run_safe(lambda: _export_impl("-", config, report_file), verbose=verbose)


def _export_impl(file: str, config: Optional[str], report_file: Optional[str] = None) -> None:
    cf, settings = _login_and_settings(config)
    cc, uaa = _connect(cf, settings)
    with cc, uaa:
        orchestrator = MigrationOrchestrator(cc, uaa, cf.target, origin=settings.uaa_origin)
        snapshot, result = orchestrator.export_snapshot()
    snapshot.save(file)
    _print_report(result, report_file)
    if file != "-":
        console.print(f"Snapshot written to [bold]{file}[/bold]")


# ── import ───────────────────────────────────────────────────────

@app.command("import")
def import_(
    file: str = typer.Argument(..., help="Snapshot file to replay, or - for stdin."),
    config: Optional[str] = _CONFIG,
    report_file: Optional[str] = _REPORT_FILE,
    verbose: bool = _VERBOSE,
) -> None:
    """Recreate the users and roles of a snapshot on the targeted deployment.

    Example:
      cf-user-migration import users.json
    """
    _setup_logging(verbose)
    _run_safe(lambda: _import_impl(file, config, report_file), verbose=verbose)


def _import_impl(file: str, config: Optional[str], report_file: Optional[str] = None) -> None:
    cf, settings = _login_and_settings(config)
    snapshot = MigrationSnapshot.load(file)
    cc, uaa = _connect(cf, settings)
    with cc, uaa:
        orchestrator = MigrationOrchestrator(cc, uaa, cf.target, origin=settings.uaa_origin)
        try:
            result = orchestrator.import_snapshot(snapshot)
        except GuardError as e:
            console.print(f"[red bold]Refusing to import:[/red bold] {escape(str(e))}")
            raise SystemExit(EXIT_GUARD)
    _print_report(result, report_file)
    if result.has_failures:
        raise SystemExit(EXIT_FAILURES)


# ── Helpers ──────────────────────────────────────────────────────

def _login_and_settings(config: Optional[str]) -> Tuple[CfConfig, Settings]:
    cf = CfConfig.load()
    try:
        cf.require_login()
    except NotLoggedInError as e:
        console.print(str(e))
        raise SystemExit(EXIT_ERROR)
    settings = load_settings(config)
    logger.debug("settings: %r", settings)
    return cf, settings


def _connect(cf: CfConfig, settings: Settings) -> Tuple[CloudControllerClient, UaaClient]:
    verify = not (settings.skip_ssl_validation or cf.ssl_disabled)
    uaa_url = settings.uaa_server_url or cf.uaa_endpoint or derive_uaa_url(cf.target)
    logger.info("API endpoint %s, UAA endpoint %s", cf.target, uaa_url)
    cc = CloudControllerClient(
        cf.target,
        access_token=cf.access_token,
        timeout=settings.timeout,
        retries=settings.retries,
        verify=verify,
    )
    uaa = UaaClient(
        uaa_url,
        settings.uaa_client_id,
        settings.uaa_client_secret,
        timeout=settings.timeout,
        retries=settings.retries,
        verify=verify,
    )
    try:
        uaa.connect()
    except MigrationError:
        cc.close()
        uaa.close()
        raise
    return cc, uaa


_OUTCOME_STYLE = {
    Outcome.SUCCESS: "green",
    Outcome.PARTIAL: "yellow",
    Outcome.SKIPPED: "dim",
    Outcome.FAILED: "red",
}


def _print_report(result: MigrationReport, report_file: Optional[str] = None) -> None:
    table = Table(title=f"User migration ({result.operation})")
    table.add_column("User")
    table.add_column("Outcome")
    table.add_column("Detail")
    for record in result.records:
        if record.reason:
            detail = record.reason
        else:
            detail = "; ".join(f"{r.role}: {r.reason}" for r in record.failed_roles)
        style = _OUTCOME_STYLE[record.outcome]
        table.add_row(escape(record.username), f"[{style}]{record.outcome.value}[/{style}]", escape(detail))
    console.print(table)
    console.print(
        f"Processed: {result.processed}  Skipped: {result.skipped}  Failed: {result.failed}"
    )
    if report_file:
        write_json(report_file, result.to_dict())


def _run_safe(fn, verbose: bool = False) -> None:
    """Run a function with clean error handling."""
    try:
        fn()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise SystemExit(130)
    except Exception as e:
        console.print(f"\n[red bold]Error:[/red bold] {escape(str(e))}")
        if verbose:
            console.print(traceback.format_exc())
        else:
            console.print("[dim]Run with --verbose for full traceback.[/dim]")
        raise SystemExit(EXIT_ERROR)
