"""
uca — CLI entrypoint.

Usage:
    uca                      update every installed agent
    uca --only claude,codex  update a subset
    uca -n --explain         show what would run and why
    python -m uca.main --help
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click

from uca import __version__
from uca.core.config.loader import ConfigError, find_config_file, load_options
from uca.core.models.options import RunOptions, parse_name_list
from uca.core.observability.logging_config import resolve_level, setup_logging

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


@contextmanager
def cancel_on_signals(cancel: threading.Event) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a run-scoped cancellation.

    Running children are terminated by the runner and their agents are
    reported as ``canceled``; completed results still print. A second
    Ctrl-C falls through to the default handler.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, _frame: object) -> None:
        if cancel.is_set() and signum == signal.SIGINT:
            signal.signal(signal.SIGINT, signal.default_int_handler)
        logger.warning("interrupted; stopping running updates")
        cancel.set()

    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    for sig in previous:
        signal.signal(sig, _handler)
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def merge_options(base: RunOptions, **flags: object) -> RunOptions:
    """Apply CLI flags on top of config-file options.

    ``None`` means "flag not given"; boolean flags only ever switch a
    setting on (``--parallel`` switches ``serial`` off).
    """
    update: dict[str, object] = {}
    for key in ("serial", "safe", "verbose", "quiet", "dry_run", "explain"):
        if flags.get(key):
            update[key] = True
    if flags.get("parallel"):
        update["serial"] = False
    for key in ("timeout", "concurrency"):
        if flags.get(key) is not None:
            update[key] = flags[key]
    for key in ("only", "skip"):
        raw = flags.get(key)
        if raw is not None:
            update[key] = parse_name_list(str(raw))
    return RunOptions.model_validate({**base.model_dump(), **update})


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="uca")
@click.option("--parallel", "-p", is_flag=True, help="Run updates in parallel (default).")
@click.option("--serial", is_flag=True, help="Run updates sequentially.")
@click.option("--safe", is_flag=True, help="Safer execution (limits concurrency).")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=None,
    metavar="SECONDS",
    help="Timeout per update command (0 disables, default 900).",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=0),
    default=None,
    metavar="N",
    help="Max concurrent update commands (0 = no limit).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show update command output for each agent.")
@click.option("--quiet", "-q", is_flag=True, help="Summary only.")
@click.option("--dry-run", "-n", "dry_run", is_flag=True, help="Print commands that would run, do not execute.")
@click.option("--explain", is_flag=True, help="Show detection details and chosen update method.")
@click.option("--only", default=None, metavar="LIST", help="Comma-separated agents to include.")
@click.option("--skip", default=None, metavar="LIST", help="Comma-separated agents to exclude.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run report as JSON.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to config.yml (default: $UCA_CONFIG or ~/.config/uca/config.yml).",
)
def cli(
    parallel: bool,
    serial: bool,
    safe: bool,
    timeout: float | None,
    concurrency: int | None,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
    explain: bool,
    only: str | None,
    skip: str | None,
    as_json: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """uca — update multiple coding-agent CLIs."""
    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(level=resolve_level(debug=debug))

    # ── Options: config file, then flags ────────────────────────
    try:
        base = load_options(find_config_file(Path(config_path) if config_path else None))
    except ConfigError as e:
        click.secho(f"error: {e}", fg="red", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    options = merge_options(
        base,
        parallel=parallel,
        serial=serial,
        safe=safe,
        timeout=timeout,
        concurrency=concurrency,
        verbose=verbose,
        quiet=quiet,
        dry_run=dry_run,
        explain=explain,
        only=only,
        skip=skip,
    )
    logger.debug("options: %s", options.model_dump())

    from uca.core.services.agent_update.data.catalog import default_agents
    from uca.core.services.agent_update.detection.environment import EnvironmentProbe
    from uca.core.services.event_bus import EventBus
    from uca.core.use_cases.update import filter_agents, run_update
    from uca.ui.cli.dashboard import LiveDashboard
    from uca.ui.cli.report import print_report

    cancel = threading.Event()
    bus = EventBus()
    probe = EnvironmentProbe(cancel=cancel)
    use_dashboard = not as_json and not options.quiet and sys.stdout.isatty()

    dashboard = None
    if use_dashboard:
        selected, _ = filter_agents(default_agents(), options.only, options.skip)
        dashboard = LiveDashboard(bus, [a.name for a in selected], options)
        dashboard.start()
        # Warm the probe while the first frame is up.
        threading.Thread(target=probe.prefetch, name="uca-prefetch", daemon=True).start()

    with cancel_on_signals(cancel):
        try:
            report = run_update(options, bus=bus, probe=probe, cancel=cancel)
        finally:
            if dashboard is not None:
                dashboard.join()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report, options, dashboard=use_dashboard)

    sys.exit(report.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
