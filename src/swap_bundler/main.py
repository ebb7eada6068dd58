"""CLI entrypoint for swap-bundler."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from .bundle import BundleError
from .cache import PriceCache
from .logger import setup_logging
from .settings import BundlerSettings, DryRunFormat, Network
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Swap several Safe-held tokens into one target token in a single transaction.",
)


def _build_logger() -> logging.Logger:
    return logging.getLogger("swap_bundler")


def parse_swap(value: str) -> tuple[str, str]:
    """Parse a ``SYMBOL=AMOUNT`` option value."""
    asset, sep, amount = value.partition("=")
    if not sep or not asset.strip() or not amount.strip():
        raise typer.BadParameter(
            f"Expected SYMBOL=AMOUNT (e.g. HONEY=10 or BERA=max), got '{value}'",
            param_hint="--swap",
        )
    return asset.strip(), amount.strip()


@app.callback(invoke_without_command=True)
def bundle(
    target: Annotated[
        str | None, typer.Argument(help="Symbol or address of the asset to receive.")
    ] = None,
    swaps: Annotated[
        list[str] | None,
        typer.Option(
            "--swap",
            "-s",
            help="Asset to sell as SYMBOL=AMOUNT; AMOUNT may be 'max'. Repeatable.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [swap_bundler] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use."),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint; overrides the network default."),
    ] = None,
    safe_address: Annotated[
        str | None,
        typer.Option("--safe-address", help="Safe that holds the assets."),
    ] = None,
    slippage: Annotated[
        float | None,
        typer.Option("--slippage", help="Slippage tolerance in percent, in (0, 100]."),
    ] = None,
    dry_run: Annotated[
        bool | None,
        typer.Option("--dry-run/--no-dry-run", help="Do not propose to the Safe."),
    ] = None,
    output_format: Annotated[
        DryRunFormat | None,
        typer.Option("--format", help="Dry run output format."),
    ] = None,
    global_timeout_seconds: Annotated[
        float | None,
        typer.Option(
            "--global-timeout-seconds",
            help="Abort the whole run after this many seconds (0 disables).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Quote every --swap into TARGET and bundle the swaps into one Safe transaction."""
    if config_path:
        os.environ["SWAP_BUNDLER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if safe_address is not None:
        init_kwargs["safe_address"] = safe_address
    if slippage is not None:
        init_kwargs["slippage_tolerance"] = slippage
    if dry_run is not None:
        init_kwargs["dry_run"] = dry_run
    if output_format is not None:
        init_kwargs["dry_run_format"] = output_format
    if global_timeout_seconds is not None:
        init_kwargs["global_timeout_seconds"] = global_timeout_seconds
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = BundlerSettings(**init_kwargs)

    setup_logging(settings.log_level)
    state = AppState(
        settings=settings,
        logger=_build_logger(),
        price_cache=PriceCache(ttl_seconds=settings.price_cache_ttl_seconds),
    )

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not target:
        raise typer.BadParameter("TARGET asset must be given", param_hint="TARGET")
    if not swaps:
        raise typer.BadParameter("at least one --swap is required", param_hint="--swap")
    if not settings.api_key:
        raise typer.BadParameter(
            "api_key is required to request quotes.",
            param_hint=["SWAP_BUNDLER_API_KEY"],
        )
    if not settings.dry_run:
        if not settings.safe_address:
            raise typer.BadParameter(
                "safe_address is required when running with --no-dry-run.",
                param_hint=["--safe-address", "SWAP_BUNDLER_SAFE_ADDRESS"],
            )
        if not settings.private_key:
            raise typer.BadParameter(
                "private_key is required when running with --no-dry-run.",
                param_hint=["SWAP_BUNDLER_PRIVATE_KEY"],
            )

    requested = [parse_swap(value) for value in swaps]

    from .pipeline.run import run_bundle

    try:
        asyncio.run(run_bundle(state, requested, target))
    except BundleError as e:
        console = Console(stderr=True)
        console.print(f"[bold red]Error:[/] {e}", highlight=False)
        for failure in e.failures:
            console.print(
                f"  - {failure.asset.symbol}: {failure.reason}",
                highlight=False,
            )
        raise typer.Exit(code=1) from e


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
