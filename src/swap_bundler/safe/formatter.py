"""Rich console formatter for dry run bundles."""

from __future__ import annotations

from decimal import Decimal

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..domain import Bundle, PermissionGrant, SafeTransaction


def _truncate_address(address: str) -> str:
    return f"{address[:10]}...{address[-4:]}"


def _format_amount(value: Decimal, places: int = 6) -> str:
    return f"{value:,.{places}f}"


def format_bundle_table(
    bundle: Bundle, transactions: list[SafeTransaction], network: str
) -> None:
    """Print a rich dashboard describing the bundle to stdout."""
    console = Console()

    overview_table = Table(show_header=False, box=None, padding=(0, 1))
    overview_table.add_column("Key", style="dim")
    overview_table.add_column("Value", style="cyan")
    overview_table.add_row("Network", network)
    overview_table.add_row("Target", bundle.target.symbol)
    overview_table.add_row("Operations", str(len(bundle.operations)))
    overview_panel = Panel(
        overview_table, title="[bold]Bundle[/]", border_style="blue"
    )

    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Input Value", f"${_format_amount(bundle.total_input_value, 2)}")
    summary_table.add_row(
        "Expected Output",
        f"{_format_amount(bundle.total_estimated_output)} {bundle.target.symbol}",
    )
    summary_table.add_row(
        "Minimum Output",
        f"{_format_amount(bundle.total_min_output)} {bundle.target.symbol}",
    )
    summary_panel = Panel(summary_table, title="[bold]Summary[/]", border_style="green")

    top_row = Columns([overview_panel, summary_panel], equal=True, expand=True)

    swap_table = Table(expand=True)
    swap_table.add_column("Asset", style="cyan", no_wrap=True)
    swap_table.add_column("Amount", justify="right")
    swap_table.add_column("Router", style="dim")
    swap_table.add_column("Approval", justify="center")
    swap_table.add_column("Price Impact", justify="right", style="yellow")
    approved = {
        op.asset.address.lower()
        for op in bundle.operations
        if isinstance(op, PermissionGrant)
    }
    for entry, quote in bundle.quoted:
        swap_table.add_row(
            entry.asset.symbol,
            entry.amount + (" (max)" if entry.is_max else ""),
            _truncate_address(quote.router_address),
            "yes" if entry.asset.address.lower() in approved else "-",
            f"{quote.price_impact}%",
        )
    swap_panel = Panel(swap_table, title="[bold]Swaps[/]", border_style="cyan")

    sections: list = [top_row, "", swap_panel]

    if bundle.failures:
        skipped_table = Table(expand=True)
        skipped_table.add_column("Asset", style="cyan")
        skipped_table.add_column("Reason", style="red")
        skipped_table.add_column("Detail", style="dim", overflow="fold")
        for failure in bundle.failures:
            skipped_table.add_row(
                failure.asset.symbol, failure.reason, Text(failure.detail)
            )
        sections += [
            "",
            Panel(
                skipped_table,
                title=f"[bold]Skipped ({len(bundle.failures)} of {bundle.requested_count})[/]",
                border_style="yellow",
            ),
        ]

    calls = Text(overflow="fold", style="dim")
    for index, tx in enumerate(transactions):
        calls.append(f"{index}. to={tx.to} value={tx.value} data=0x{tx.data.hex()}\n")
    sections += ["", Panel(calls, title="[bold]Calls[/]", border_style="dim")]

    console.print()
    console.print(
        Panel(
            Group(*sections),
            title="[bold white]Swap Bundle Dry Run[/]",
            border_style="white",
            padding=(1, 2),
        )
    )
    console.print()
