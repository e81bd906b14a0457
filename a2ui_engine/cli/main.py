"""Developer commands (validate, replay)"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ..client import A2UIClient
from ..config.loader import load_config
from ..protocol.jsonl import parse_a2ui_jsonl, validate_a2ui_jsonl
from ..surface.render import RenderedNode

console = Console()
app = typer.Typer(help="A2UI surface protocol tools")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """A2UI surface protocol tools"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _read(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]Error:[/red] {path} not found")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


@app.command("validate")
def validate(
    file: Path = typer.Argument(..., help="JSONL stream of A2UI messages"),
):
    """Check every line of a JSONL stream"""
    ok, errors = validate_a2ui_jsonl(_read(file))
    if ok:
        console.print(f"[green]✓[/green] {file} is valid")
        return

    for error in errors:
        console.print(f"[red]✗[/red] {escape(error)}")
    console.print(f"\n[yellow]{len(errors)} problem(s) found[/yellow]")
    raise typer.Exit(1)


def _add_node(branch: Tree, node: RenderedNode) -> None:
    label = f"[cyan]{node.type}[/cyan] [dim]#{node.id}[/dim]"
    if node.is_unknown:
        label = f"[red]{node.type}[/red] ({node.requested_type}) [dim]#{node.id}[/dim]"
    if node.props:
        label += " " + escape(json.dumps(node.props, default=str))
    child_branch = branch.add(label)
    for child in node.children:
        _add_node(child_branch, child)


@app.command("replay")
def replay(
    file: Path = typer.Argument(..., help="JSONL stream of A2UI messages"),
    surface: Optional[str] = typer.Option(None, "--surface", "-s", help="Only show this surface"),
    as_batch: bool = typer.Option(False, "--batch", help="Apply the whole stream as one sorted batch"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file"),
):
    """Route and apply a JSONL stream, then print each ready surface"""
    client = A2UIClient(config=load_config(config_path))
    messages = parse_a2ui_jsonl(_read(file))
    if as_batch:
        client.handle_a2ui_batch(messages)
    else:
        for message in messages:
            client.handle_a2ui_message(message)

    surface_ids = [surface] if surface else client.engine.surface_ids()
    rendered = {sid: client.render(sid) for sid in surface_ids}
    errors = client.engine.drain_errors()

    if json_output:
        output = {
            "surfaces": {sid: tree.to_dict() if tree else None for sid, tree in rendered.items()},
            "errors": [error.to_wire() for error in errors],
        }
        console.print_json(json.dumps(output))
        return

    if not rendered:
        console.print("[yellow]No surfaces[/yellow]")
        return

    for sid, tree in rendered.items():
        if tree is None:
            console.print(f"[yellow]Surface {sid} is not ready[/yellow]")
            continue
        root = Tree(f"[bold]{sid}[/bold]")
        _add_node(root, tree)
        console.print(root)

    for error in errors:
        detail = error.error
        console.print(f"[red]{detail.code}[/red] {error.surfaceId}: {escape(detail.message)}")


__all__ = [
    "app",
]
