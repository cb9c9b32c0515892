"""Rich and plain-text renderers for trees and change reports."""

from __future__ import annotations

from datetime import datetime

from rich.console import Group, RenderableType
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from fsmerkle_core.merkle import ChangeKind, ChangeReport, Digest, Internal, MerkleTree

_KIND_STYLE = {
    ChangeKind.modified: "yellow",
    ChangeKind.added: "green",
    ChangeKind.deleted: "red",
}


def short_hash(digest: Digest | None, n: int = 16) -> str:
    """Hex of the first *n* bytes of a digest, '-' if absent."""
    if digest is None:
        return "-"
    return digest[:n].hex()


def _fmt_ts(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def _node_label(tree: MerkleTree, index: int) -> str:
    node = tree.nodes[index]
    if isinstance(node, Internal):
        suffix = " [dim](self-paired)[/dim]" if node.left == node.right else ""
        return f"[bold][NODE][/bold] {short_hash(node.digest, 8)}{suffix}"
    return f"[green][FILE][/green] {escape(node.path)}: [dim]{short_hash(node.digest, 8)}[/dim]"


def render_tree(tree: MerkleTree) -> Tree:
    """Rich tree dump, root first, left child before right."""
    root_index = len(tree) - 1
    rich_root = Tree(_node_label(tree, root_index))
    stack: list[tuple[int, Tree]] = [(root_index, rich_root)]
    while stack:
        index, branch = stack.pop()
        node = tree.nodes[index]
        if not isinstance(node, Internal):
            continue
        # Build children in order, then push right first so left is expanded first
        left = branch.add(_node_label(tree, node.left))
        right = branch.add(_node_label(tree, node.right))
        stack.append((node.right, right))
        stack.append((node.left, left))
    return rich_root


def summary_line(report: ChangeReport) -> str:
    counts = report.counts()
    return (
        f"{counts[ChangeKind.modified]} modified, "
        f"{counts[ChangeKind.added]} added, "
        f"{counts[ChangeKind.deleted]} deleted"
    )


def _changes_table(report: ChangeReport, kind: ChangeKind) -> RenderableType:
    records = [c for c in report.changes if c.kind is kind]
    title = f"{kind.value.capitalize()} files"
    if not records:
        return Text(f"{title}: None", style="dim")

    table = Table(title=f"{title} ({len(records)})", title_justify="left")
    table.add_column("File", style=_KIND_STYLE[kind])
    if kind is not ChangeKind.added:
        table.add_column("Old hash", style="dim")
    if kind is not ChangeKind.deleted:
        table.add_column("New hash", style="dim")

    for record in records:
        row = [escape(record.path)]
        if kind is not ChangeKind.added:
            row.append(short_hash(record.old_hash))
        if kind is not ChangeKind.deleted:
            row.append(short_hash(record.new_hash))
        table.add_row(*row)
    return table


def render_report(report: ChangeReport) -> Group:
    """Full change report: header, root hash status, per-kind tables, summary."""
    parts: list[RenderableType] = [
        Text("=== Change Detection Report ===", style="bold"),
        Text(f"Comparing states from {_fmt_ts(report.old_timestamp)} to {_fmt_ts(report.new_timestamp)}"),
    ]

    if not report.root_changed:
        parts.append(Text("No changes detected - root hash is identical", style="green"))
        return Group(*parts)

    parts.append(Text.from_markup(
        "[yellow]Root hash changed - files have been modified[/yellow]\n"
        f"[dim]Old root:[/dim] {short_hash(report.old_root_hash)}\n"
        f"[dim]New root:[/dim] {short_hash(report.new_root_hash)}"
    ))
    for kind in ChangeKind:
        parts.append(_changes_table(report, kind))
    parts.append(Text(f"Summary: {summary_line(report)}", style="bold"))
    return Group(*parts)


def format_report_plain(report: ChangeReport) -> list[str]:
    """One line per change plus the new root hash, for CI logs."""
    lines = [f"{c.kind.value.upper()} {c.path}" for c in report.changes]
    if not lines:
        lines.append("OK - no changes")
    lines.append(f"root_hash={report.new_root_hash.hex()}")
    return lines
