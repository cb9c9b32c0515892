"""CLI entry point for fsmerkle."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from fsmerkle.display import format_report_plain, render_report, render_tree, summary_line
from fsmerkle_core.client import MerkleClient, subject_for
from fsmerkle_core.config import FsMerkleConfig, configure_logging, load_config
from fsmerkle_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from fsmerkle_core.merkle import MerkleError, Snapshot, SnapshotNotFoundError
from fsmerkle_core.storage import CsvSnapshotStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="fsmerkle",
    help="Fingerprint directories with Merkle trees and report what changed.",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Manage fsmerkle configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: FsMerkleConfig | None = None


def _get_config() -> FsMerkleConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to fsmerkle.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Config error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2)
    configure_logging(_config)


def _client(storage_dir: str | None = None) -> MerkleClient:
    cfg = _get_config()
    store = CsvSnapshotStore(storage_dir or cfg.storage.directory)
    return MerkleClient(cfg, store=store)


def _fail(msg: str, err: Exception) -> typer.Exit:
    logger.debug("%s", msg, exc_info=err)
    rprint(f"[red]{msg}:[/red] {escape(str(err))}")
    return typer.Exit(code=1)


StorageDirOption = Annotated[
    str | None,
    typer.Option("--storage-dir", "-s", help="Snapshot directory (overrides config)"),
]


@app.command()
def tree(
    path: Annotated[str, typer.Argument(help="Folder to fingerprint")] = ".",
) -> None:
    """Print the Merkle root hash and tree structure of a folder."""
    client = _client()
    try:
        merkle_tree = client.get_tree(path)
    except MerkleError as e:
        raise _fail("Error creating Merkle tree", e)

    rprint(f"[dim]Merkle Tree Root Hash:[/dim] {merkle_tree.root_hash.hex()}")
    rprint(f"[dim]Files:[/dim] {merkle_tree.leaf_count}  [dim]Depth:[/dim] {merkle_tree.depth}")
    rprint(render_tree(merkle_tree))


@app.command()
def snapshot(
    path: Annotated[str, typer.Argument(help="Folder to fingerprint")] = ".",
    compare: Annotated[bool, typer.Option("--compare", help="Compare with the most recent saved state")] = False,
    show_tree: Annotated[bool, typer.Option("--show-tree", help="Print the tree structure")] = False,
    storage_dir: StorageDirOption = None,
) -> None:
    """Create a snapshot of a folder, optionally compare it, then save it."""
    client = _client(storage_dir)
    try:
        merkle_tree = client.get_tree(path)
    except MerkleError as e:
        raise _fail("Error creating Merkle tree", e)

    rprint(f"[dim]Merkle Tree Root Hash:[/dim] {merkle_tree.root_hash.hex()}")
    if show_tree:
        rprint(render_tree(merkle_tree))

    current = Snapshot.from_tree(merkle_tree)

    if compare:
        try:
            latest = client.find_latest_snapshot(path)
            rprint(f"[dim]Loading previous state from:[/dim] {latest}")
            previous = client.load_snapshot(latest)
        except SnapshotNotFoundError as e:
            rprint(f"[yellow]No previous state to compare with:[/yellow] {escape(str(e))}")
        except MerkleError as e:
            rprint(f"[red]Error loading previous state:[/red] {escape(str(e))}")
        else:
            rprint(render_report(client.compare_snapshots(previous, current)))

    try:
        saved = client.save_snapshot(current, path)
    except MerkleError as e:
        raise _fail("Error saving tree state", e)
    rprint(f"[green]Tree state saved[/green] to {saved}")


@app.command()
def check(
    path: Annotated[str, typer.Argument(help="Folder to check")] = ".",
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
    fail_on_change: Annotated[bool, typer.Option("--fail-on-change", help="Exit 1 if changes are found")] = False,
    storage_dir: StorageDirOption = None,
) -> None:
    """Compare a folder against its latest snapshot and record a new one."""
    client = _client(storage_dir)
    try:
        current = client.create_snapshot(path)
        previous = client.load_latest_snapshot(path)
    except MerkleError as e:
        raise _fail("Check failed", e)

    if previous is None:
        try:
            saved = client.save_snapshot(current, path)
        except MerkleError as e:
            raise _fail("Error saving tree state", e)
        msg = f"First scan complete - {current.file_count} files indexed, baseline saved to {saved}"
        if ci:
            typer.echo(msg)
            typer.echo(f"root_hash={current.root_hash.hex()}")
        else:
            rprint(f"[yellow]{escape(msg)}[/yellow]")
            rprint(f"[dim]Root hash:[/dim] {current.root_hash.hex()}")
        return

    report = client.compare_snapshots(previous, current)
    if ci:
        for line in format_report_plain(report):
            typer.echo(line)
    else:
        rprint(render_report(report))

    try:
        client.save_snapshot(current, path)
    except MerkleError as e:
        raise _fail("Error saving tree state", e)

    if fail_on_change and report.has_changes:
        raise typer.Exit(code=1)


@app.command()
def diff(
    old: Annotated[Path, typer.Argument(help="Older snapshot file")],
    new: Annotated[Path, typer.Argument(help="Newer snapshot file")],
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Compare two stored snapshot files."""
    client = _client()
    try:
        old_snapshot = client.load_snapshot(old)
        new_snapshot = client.load_snapshot(new)
    except MerkleError as e:
        raise _fail("Error loading snapshot", e)

    report = client.compare_snapshots(old_snapshot, new_snapshot)
    if ci:
        for line in format_report_plain(report):
            typer.echo(line)
    else:
        rprint(render_report(report))


@app.command()
def history(
    path: Annotated[str, typer.Argument(help="Folder whose snapshots to list")] = ".",
    storage_dir: StorageDirOption = None,
) -> None:
    """List stored snapshots for a folder, oldest first."""
    client = _client(storage_dir)
    files = client.list_snapshots(path)
    if not files:
        rprint(f"[yellow]No snapshots stored for[/yellow] {escape(subject_for(path))}")
        return

    table = Table(title=f"Snapshots: {subject_for(path)} ({len(files)})")
    table.add_column("File", style="cyan")
    table.add_column("Timestamp", style="green")
    table.add_column("Files", justify="right")
    table.add_column("Root hash", style="dim")
    table.add_column("Changes", style="yellow")

    previous = None
    for f in files:
        try:
            snap = client.load_snapshot(f)
        except MerkleError as e:
            table.add_row(f.name, "-", "-", "-", f"[red]unreadable: {escape(str(e))}[/red]")
            continue
        changes = summary_line(client.compare_snapshots(previous, snap)) if previous else "baseline"
        table.add_row(
            f.name,
            snap.timestamp.isoformat(timespec="seconds"),
            str(snap.file_count),
            snap.root_hash.hex()[:16],
            changes,
        )
        previous = snap
    rprint(table)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default fsmerkle.yaml in current directory."""
    target = Path("fsmerkle.yaml")
    if target.exists() and not force:
        rprint("[yellow]fsmerkle.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
