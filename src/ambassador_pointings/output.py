"""Rendering helpers for pointing tables and raw payloads."""

from __future__ import annotations

import json
from typing import Any

import yaml
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .pointings import PointingMap


def pointings_table(pointings: PointingMap, title: str = "Service Pointings") -> Table:
    """Build a two-column table of service → URL."""

    table = Table(
        title=Text(title, justify="center"),
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
    )
    table.add_column("Service", style="cyan", no_wrap=True)
    table.add_column("URL", style="white", overflow="fold")
    for service, url in pointings.items():
        table.add_row(Text(service), Text(url))
    return table


def format_data(data: Any, output: str) -> str:
    if output == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")
    return json.dumps(data, indent=2, ensure_ascii=False)


def print_data(console: Console, data: Any, output: str) -> None:
    """Print `data` as pretty JSON, or YAML when `output` is 'yaml'."""

    console.print(format_data(data, output), markup=False, highlight=False)


def print_pointings(console: Console, pointings: PointingMap, output: str, title: str = "Service Pointings") -> None:
    if output in ("json", "yaml"):
        print_data(console, pointings, output)
        return
    if not pointings:
        console.print("[yellow]No services found[/]")
        return
    console.print(pointings_table(pointings, title))
    console.print(f"[dim]Total: {len(pointings)} service(s)[/]")
