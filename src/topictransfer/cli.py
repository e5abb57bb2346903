"""topictransfer CLI - typer application entry point.

The CLI works on snapshot files. Merging loads the base snapshot into a
fresh in-memory graph, imports the incoming snapshot into it, and exports
the result; no live graph is persisted between commands.
"""

from __future__ import annotations

import atexit
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from topictransfer.config import ConfigError, TransferConfig, load_transfer_config
from topictransfer.graph import UNIQUE_KEY_SEPARATOR, TopicGraphError
from topictransfer.interchange import (
    ImportStrategy,
    InterchangeParseError,
    InterchangeWriteError,
    export_topic,
    import_topic,
    materialize,
    read_snapshot,
    write_snapshot,
)
from topictransfer.interchange.scope import is_in_scope
from topictransfer.observability import close_file_logging, configure_logging, get_logger

if TYPE_CHECKING:
    from topictransfer.interchange import ImportReport
    from topictransfer.models.interchange import InterchangeTopic

app = typer.Typer(
    name="topictransfer",
    help="topictransfer: export and merge hierarchical topic snapshots.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log",
            help="Also write every log event to this JSONL file.",
        ),
    ] = None,
) -> None:
    """topictransfer: export and merge hierarchical topic snapshots."""
    configure_logging(verbosity=verbose, log_file=log_file)
    if log_file is not None:
        atexit.register(close_file_logging)


@app.command()
def version() -> None:
    """Show version information."""
    from topictransfer import __version__

    console.print(f"topictransfer v{__version__}")


def _load_snapshot(path: Path) -> InterchangeTopic:
    """Read a snapshot, exiting with an error message on failure."""
    try:
        return read_snapshot(path)
    except InterchangeParseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


# -----------------------------------------------------------------------------
# inspect
# -----------------------------------------------------------------------------


def _topic_label(topic_data: InterchangeTopic) -> str:
    counts = (
        f"{len(topic_data.attributes)} attrs, "
        f"{len(topic_data.relationships)} rels, "
        f"{len(topic_data.references)} refs"
    )
    return (
        f"[bold]{topic_data.key}[/bold] [cyan]{topic_data.content_type}[/cyan] [dim]{counts}[/dim]"
    )


def _add_branch(tree: Tree, topic_data: InterchangeTopic, depth: int | None) -> None:
    if depth is not None and depth <= 0:
        if topic_data.children:
            tree.add(f"[dim]... {len(topic_data.children)} more[/dim]")
        return
    next_depth = depth - 1 if depth is not None else None
    for child in topic_data.children:
        branch = tree.add(_topic_label(child))
        _add_branch(branch, child, next_depth)


def _count_topics(topic_data: InterchangeTopic) -> int:
    return 1 + sum(_count_topics(child) for child in topic_data.children)


@app.command()
def inspect(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file.")],
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", min=0, help="Maximum depth of children to show."),
    ] = None,
) -> None:
    """Show the topic tree of a snapshot."""
    topic_data = _load_snapshot(snapshot)

    tree = Tree(f"{_topic_label(topic_data)} [dim]{topic_data.unique_key}[/dim]")
    _add_branch(tree, topic_data, depth)

    console.print()
    console.print(tree)
    console.print()
    console.print(f"Topics: [bold]{_count_topics(topic_data)}[/bold]")


# -----------------------------------------------------------------------------
# validate
# -----------------------------------------------------------------------------


def _find_violations(topic_data: InterchangeTopic, parent_key: str | None = None) -> list[str]:
    """Check unique keys and sibling keys throughout a snapshot tree."""
    violations: list[str] = []

    if parent_key is None:
        last_segment = topic_data.unique_key.rsplit(UNIQUE_KEY_SEPARATOR, 1)[-1]
        if last_segment != topic_data.key:
            violations.append(
                f"{topic_data.unique_key}: unique key does not end with key '{topic_data.key}'"
            )
    else:
        expected = f"{parent_key}{UNIQUE_KEY_SEPARATOR}{topic_data.key}"
        if topic_data.unique_key != expected:
            violations.append(f"{topic_data.unique_key}: expected unique key '{expected}'")

    if UNIQUE_KEY_SEPARATOR in topic_data.key:
        violations.append(f"{topic_data.unique_key}: key '{topic_data.key}' contains ':'")

    seen: set[str] = set()
    for child in topic_data.children:
        folded = child.key.casefold()
        if folded in seen:
            violations.append(f"{topic_data.unique_key}: duplicate child key '{child.key}'")
        seen.add(folded)
        violations.extend(_find_violations(child, topic_data.unique_key))

    return violations


@app.command()
def validate(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot JSON file.")],
) -> None:
    """Check that every unique key in a snapshot matches its position."""
    topic_data = _load_snapshot(snapshot)
    violations = _find_violations(topic_data)

    if violations:
        console.print(f"[red]✗[/red] {snapshot} has {len(violations)} problem(s)")
        for violation in violations:
            console.print(f"  [red]•[/red] {violation}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {snapshot} is valid ({_count_topics(topic_data)} topics)")


# -----------------------------------------------------------------------------
# merge
# -----------------------------------------------------------------------------


def _load_profile(profile: Path | None) -> TransferConfig:
    if profile is None:
        return TransferConfig()
    try:
        return load_transfer_config(profile)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _print_report(report: ImportReport) -> None:
    table = Table(title="Import Report")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Topics created", str(report.topics_created))
    table.add_row("Topics deleted", str(report.topics_deleted))
    table.add_row("Associations deferred", str(report.associations_deferred))
    table.add_row("Associations resolved", str(report.associations_resolved))
    table.add_row("Associations dropped", str(len(report.dropped)))
    console.print(table)

    for association in report.dropped:
        console.print(
            f"  [yellow]![/yellow] {association.source.unique_key} "
            f"{association.kind.value} '{association.key}' -> {association.target_key}"
        )


@app.command()
def merge(
    base: Annotated[Path, typer.Argument(help="Snapshot to merge into.")],
    incoming: Annotated[Path, typer.Argument(help="Snapshot to import.")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the merged snapshot."),
    ],
    strategy: Annotated[
        str | None,
        typer.Option(
            "--strategy",
            "-s",
            help="Import strategy: add, merge, overwrite or replace.",
        ),
    ] = None,
    profile: Annotated[
        Path | None,
        typer.Option("--profile", "-p", help="Transfer profile YAML file."),
    ] = None,
    current_user: Annotated[
        str | None,
        typer.Option("--current-user", help="Acting user for LastModifiedBy."),
    ] = None,
) -> None:
    """Import INCOMING into BASE and write the merged snapshot."""
    config = _load_profile(profile)
    import_options = config.to_import_options()
    if strategy is not None:
        try:
            import_options = replace(import_options, strategy=ImportStrategy.parse(strategy))
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--strategy") from e
    if current_user:
        import_options = replace(import_options, current_user=current_user)

    base_data = _load_snapshot(base)
    incoming_data = _load_snapshot(incoming)

    if not is_in_scope(incoming_data.unique_key, base_data.unique_key):
        console.print(
            f"[red]Error:[/red] {incoming_data.unique_key} is outside the base snapshot "
            f"{base_data.unique_key}"
        )
        raise typer.Exit(1)

    try:
        graph, base_topic = materialize(base_data)
        target = graph.ensure_path(incoming_data.unique_key, incoming_data.content_type)
        report = import_topic(target, incoming_data, import_options)
    except TopicGraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    export_options = replace(
        config.to_export_options(),
        include_child_topics=True,
        include_external_associations=True,
    )
    merged = export_topic(base_topic, export_options)

    try:
        write_snapshot(merged, output)
    except InterchangeWriteError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    log.info("merge_written", output=str(output), strategy=import_options.strategy.name.lower())
    console.print()
    _print_report(report)
    console.print()
    console.print(f"[green]✓[/green] Merged snapshot written to [cyan]{output}[/cyan]")


if __name__ == "__main__":
    app()
