import asyncio, os, signal
import click
from rich.console import Console
from rich.table import Table

from .adapters.console_reporter import LoggingReporter
from .adapters.rpc_httpx import HttpxRPC
from .application.worker import MonitorWorker
from .config import ConfigError, MonitorConfig, load_config, parse_gaps
from .domain.models import SyncStatus
from .domain.tracker import SyncTracker
from .logging_config import setup_logging

console = Console()


def _common_options(f):
    opts = [
        click.option("--rpc", "provider_url", default=None, help="RPC endpoint URL [env: PROVIDER_URL]"),
        click.option("--contract", default=None, help="Updater contract address [env: SYNCMON_CONTRACT]"),
        click.option("--start-block", type=int, default=None, help="First block to scan on startup"),
        click.option("--gap-tolerance", type=int, default=None, help="Blocks behind head not yet reported (default 192)"),
        click.option("--finality-offset", type=int, default=None, help="Blocks subtracted from the node head (default 6)"),
        click.option("--retries", type=int, default=None, help="Attempts per RPC call (default 3)"),
        click.option("--step", "log_chunk_size", type=int, default=None, help="Blocks per eth_getLogs request"),
        click.option("--concurrency", type=int, default=None, help="Max parallel eth_getLogs requests"),
        click.option("--accept-gaps", "accepted_gaps", default=None,
                     help="Comma separated origins whose leading gap is accepted [env: SYNCMON_ACCEPTED_GAPS]"),
        click.option("--inclusive-boundary/--exclusive-boundary", "inclusive_boundary", default=None,
                     help="Report the safe boundary block itself as missing (default inclusive)"),
        click.option("--log-level", default=None, help="Logging level (default INFO)"),
    ]
    for opt in reversed(opts):
        f = opt(f)
    return f


def _load(**overrides) -> MonitorConfig:
    try:
        if overrides.get("accepted_gaps") is not None:
            overrides["accepted_gaps"] = parse_gaps(overrides["accepted_gaps"])
        cfg = load_config(os.environ, **overrides)
    except ConfigError as e:
        raise click.UsageError(str(e))
    setup_logging(cfg.log_level, console=console)
    return cfg


def _build(cfg: MonitorConfig, rpc: HttpxRPC) -> MonitorWorker:
    tracker = SyncTracker(cfg.gap_tolerance, accepted_gaps=cfg.accepted_gaps,
                          inclusive_boundary=cfg.inclusive_boundary)
    return MonitorWorker(
        rpc, tracker, LoggingReporter(),
        address=cfg.contract, start_block=cfg.start_block,
        finality_offset=cfg.finality_offset, retries=cfg.retries,
        log_chunk_size=cfg.log_chunk_size, concurrency=cfg.concurrency,
    )


@click.group()
def cli():
    """syncmon: watch an updater contract and report uncovered block ranges."""


@cli.command("monitor")
@_common_options
@click.option("--interval", "interval_s", type=float, default=None, help="Seconds between checks (default 20)")
def monitor_cmd(**options):
    """Poll the chain forever, logging sync status transitions and gaps."""
    cfg = _load(**options)

    async def run():
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:  # windows
                pass
        async with HttpxRPC(cfg.provider_url) as rpc:
            worker = _build(cfg, rpc)
            console.print(f"[bold]monitoring[/] {cfg.contract} every {cfg.interval_s:g}s "
                          f"(tolerance={cfg.gap_tolerance}, finality offset={cfg.finality_offset})")
            await worker.run(stop, interval_s=cfg.interval_s)

    asyncio.run(run())


@cli.command("gaps")
@_common_options
@click.option("--at-block", type=int, default=None,
              help="Evaluate coverage at this height instead of the node head")
def gaps_cmd(at_block, **options):
    """Run a single check and print the missing block ranges."""
    if at_block is not None and at_block < 0:
        raise click.UsageError(f"--at-block must be >= 0, got {at_block}")
    cfg = _load(**options)

    async def run():
        async with HttpxRPC(cfg.provider_url) as rpc:
            return await _build(cfg, rpc).check_once(at_block=at_block)

    try:
        res = asyncio.run(run())
    except Exception as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")

    _, status, missing = res.transition
    table = Table(title=f"missing blocks up to {res.to_block:,} (tolerance {cfg.gap_tolerance})")
    table.add_column("from (incl)", justify="right")
    table.add_column("to (excl)", justify="right")
    table.add_column("blocks", justify="right")
    for s, e in missing:
        table.add_row(f"{s:,}", f"{e:,}", f"{e - s:,}")
    console.print(table)
    colour = "green" if status is SyncStatus.IN_SYNC else "red"
    console.print(f"[bold]status[/]: [{colour}]{status.value}[/]  events={res.fetched}")
    if status is SyncStatus.OUT_OF_SYNC:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
