"""
Typer-powered CLI for exploring a relationship graph built from exported collections.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.table import Table

from .config import configure_logging
from .controller import RefreshController
from .errors import GraphError
from .sources import load_collections
from .stats import compute_stats

app = typer.Typer(add_completion=False, help="PARA relationship graph CLI")


def _load(file: Path) -> RefreshController:
    data = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise typer.BadParameter("expected a JSON object keyed by collection name", param_hint="FILE")
    controller = RefreshController()
    try:
        controller.deliver_all(load_collections(data))
    except GraphError as exc:
        raise typer.BadParameter(str(exc), param_hint="FILE") from exc
    return controller


@app.callback()
def main(log_level: str = typer.Option("WARNING", help="Logging level")):
    configure_logging(log_level)


@app.command()
def stats(file: Path = typer.Argument(..., help="JSON file with the six collections"), top_k: int = 5):
    """
    Show totals, counts by kind and the most connected items.
    """
    controller = _load(file)
    summary = compute_stats(controller.snapshot, top_k)
    print(f"[bold]{summary.total_nodes}[/bold] items, [bold]{summary.total_edges}[/bold] connections")
    print(
        f"{summary.orphaned_nodes} orphaned, {summary.clusters} clusters, "
        f"{summary.dangling_references} dangling references"
    )
    kinds = Table("Kind", "Count")
    for kind, count in summary.counts_by_kind.items():
        kinds.add_row(kind.value, str(count))
    print(kinds)
    ranked = Table("Rank", "Node ID", "Kind", "Title", "Connections")
    for idx, node in enumerate(summary.top_connected, start=1):
        ranked.add_row(str(idx), node.id, node.kind.value, node.title[:60], str(node.degree))
    print(ranked)


@app.command()
def search(
    file: Path = typer.Argument(..., help="JSON file with the six collections"),
    query: str = typer.Argument("", help="Substring to look for in titles"),
    kind: str = typer.Option("all", help="Restrict to one node kind"),
):
    """
    List items whose title contains the query.
    """
    controller = _load(file)
    try:
        results = controller.search(query, kind)
    except GraphError as exc:
        raise typer.BadParameter(str(exc), param_hint="--kind") from exc
    table = Table("Node ID", "Kind", "Title", "Status", "Connections")
    for node in results:
        table.add_row(node.id, node.kind.value, node.title[:60], node.status or "", str(node.degree))
    print(table)


@app.command()
def neighbors(
    file: Path = typer.Argument(..., help="JSON file with the six collections"),
    node_id: str = typer.Argument(...),
    limit: int = 5,
):
    """
    Show the items a node links to.
    """
    controller = _load(file)
    node = controller.get(node_id)
    if not node:
        print(f"[red]Node {node_id} not found[/red]")
        raise typer.Exit(code=1)
    result = controller.neighbors(node_id, limit=limit)
    table = Table("Node ID", "Kind", "Title")
    for neighbor in result.nodes:
        table.add_row(neighbor.id, neighbor.kind.value, neighbor.title[:60])
    print(table)
    if result.remaining:
        print(f"+{result.remaining} more connections")


@app.command()
def export(
    file: Path = typer.Argument(..., help="JSON file with the six collections"),
    output: Optional[Path] = typer.Option(None, help="Write to this file instead of stdout"),
):
    """
    Dump the built graph as JSON.
    """
    controller = _load(file)
    document = json.dumps(controller.snapshot.export(), indent=2)
    if output is None:
        typer.echo(document)
        return
    output.write_text(document, encoding="utf-8")
    print(f"[green]Exported {len(controller.snapshot.nodes)} nodes to {output}[/green]")


if __name__ == "__main__":
    app()
