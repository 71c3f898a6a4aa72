"""
barflow command line.

Commands:
  barflow run --graph graph.yml --bars bars.csv [--last N] [--num-type decimal]
  barflow types

The CLI is a thin shell: it parses arguments, loads inputs, calls
build_context / run_context, and prints results.
"""

from __future__ import annotations

import argparse
import json
import sys

import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .engine import run_context
from .graph import build_context, get_node_info, list_node_types
from .num import get_num_factory
from .series import bars_from_frame
from .utils.logger import setup_logger

console = Console()


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for barflow."""
    parser = argparse.ArgumentParser(
        prog="barflow",
        description="barflow - incremental indicator graphs over OHLCV bars",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  barflow run --graph graph.yml --bars bars.csv
  barflow run --graph graph.yml --bars bars.csv --last 20 --num-type decimal
  barflow types
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Evaluate a graph over a CSV of bars")
    run_parser.add_argument("--graph", required=True, help="Graph definition YAML file")
    run_parser.add_argument("--bars", required=True, help="OHLCV CSV file")
    run_parser.add_argument("--time-column", default="timestamp", help="Timestamp column (default: timestamp)")
    run_parser.add_argument("--last", type=int, default=10, help="Number of final bars to show (default: 10)")
    run_parser.add_argument("--num-type", choices=["double", "decimal"], help="Override numeric type")
    run_parser.add_argument("--json", action="store_true", dest="json_output", help="Output results as JSON")

    types_parser = subparsers.add_parser("types", help="List registered node types")
    types_parser.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    return parser.parse_args(argv)


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "[green]true[/]" if value else "[dim]false[/]"
    text = str(value)
    return "[dim]nan[/]" if text.lower() == "nan" else text


def handle_run(args) -> int:
    """Handle `run` subcommand."""
    try:
        num_factory = get_num_factory(args.num_type) if args.num_type else None
        context = build_context(args.graph, num_factory=num_factory)
        frame = pd.read_csv(args.bars)
        bars = bars_from_frame(frame, time_column=args.time_column)
        snapshots = run_context(context, bars)
    except (OSError, ValueError, KeyError, TypeError) as e:
        if args.json_output:
            print(json.dumps({"status": "fail", "message": str(e)}, indent=2))
        else:
            console.print(f"\n[bold red]FAIL[/] {e}")
        return 1

    shown = snapshots[-args.last:] if args.last > 0 else snapshots

    if args.json_output:
        output = {
            "status": "pass",
            "bars": len(snapshots),
            "stable": context.is_stable,
            "snapshots": [
                {"begin_time": s.begin_time, "stable": s.stable, "values": s.values}
                for s in shown
            ],
        }
        print(json.dumps(output, indent=2, default=str))
        return 0

    console.print(Panel(
        f"[bold cyan]GRAPH RUN[/]\n"
        f"Graph: {args.graph} | Bars: {len(snapshots)} | Time frame: {context.time_frame}",
        border_style="cyan",
    ))

    names = [identity.name for identity, _ in context]
    table = Table(title=f"Last {len(shown)} bars", show_header=True)
    table.add_column("Begin", style="cyan")
    table.add_column("Stable", justify="center")
    for name in names:
        table.add_column(name, justify="right")

    for snapshot in shown:
        table.add_row(
            str(snapshot.begin_time),
            "[green]✓[/]" if snapshot.stable else "[yellow]…[/]",
            *(_format_value(snapshot.values.get(name)) for name in names),
        )

    console.print(table)
    status = "[green]stable[/]" if context.is_stable else "[yellow]warming up[/]"
    console.print(f"\n[dim]Context:[/] {status}")
    return 0


def handle_types(args) -> int:
    """Handle `types` subcommand."""
    types = list_node_types()

    if args.json_output:
        output = {
            name: {k: v for k, v in get_node_info(name).items() if k != "docstring"}
            for name in types
        }
        print(json.dumps(output, indent=2, default=str))
        return 0

    table = Table(title="Node Types", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Operands")
    table.add_column("Required")
    table.add_column("Optional")
    table.add_column("Output")
    table.add_column("Description", style="dim")

    for name in types:
        info = get_node_info(name)
        operands = list(info["inputs"])
        if info["variadic"]:
            operands.append(f"{info['variadic']}[]")
        table.add_row(
            name,
            ", ".join(operands) or "-",
            ", ".join(info["required_params"]) or "-",
            ", ".join(f"{k}={v}" for k, v in info["optional_params"].items()) or "-",
            info["output"],
            (info["docstring"] or "").strip().splitlines()[0] if info["docstring"] else "",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(types)} node types[/]")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_cli_args(argv)

    log_cfg = get_config().log
    setup_logger(log_cfg.log_dir, log_cfg.log_level)

    if args.command == "run":
        return handle_run(args)
    if args.command == "types":
        return handle_types(args)

    console.print("[yellow]Usage: barflow {run|types} --help[/]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
