"""docindex CLI — query implementor and sidebar indexes of a generated doc bundle."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from docindex import __version__
from docindex.config import ConfigError, load_config

console = Console()


def _docs_options(fn):
    fn = click.option("--config", "-c", "config_path", default=None, help="YAML config file")(fn)
    fn = click.option("--docs", "-d", default=None, help="Doc bundle directory (overrides config)")(fn)
    return fn


def _load_index(docs: str | None, config_path: str | None):
    from docindex.utils.docs_loader import build_index
    from docindex.utils.logging_setup import configure_logging

    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        raise SystemExit(2)
    if docs:
        config.docs_root = Path(docs)
    configure_logging(config.log_level)
    return build_index(config)


@click.group()
@click.version_option(version=__version__)
def main():
    """docindex — merged implementor and sidebar indexes for generated crate docs.

    Loads every implementor fragment of a doc bundle, in whatever order the
    files turn up, and answers "who implements this trait?" queries.
    """


# ── Implementors ─────────────────────────────────────────────────────


@main.command()
@click.argument("trait_name")
@click.option("--crate", "crate_name", default=None, help="Only implementors owned by this crate")
@_docs_options
def implementors(trait_name: str, crate_name: str | None, docs: str | None, config_path: str | None):
    """List the implementors of TRAIT_NAME.

    TRAIT_NAME may be a full path (core::fmt::Display) or a short name
    (Display) if that is unambiguous.
    """
    index = _load_index(docs, config_path)
    registry = index.registry

    matches = registry.resolve_trait(trait_name)
    if len(matches) > 1:
        console.print(f"[yellow]'{trait_name}' is ambiguous:[/] {', '.join(matches)}")
        return
    full_name = matches[0] if matches else trait_name

    records = [r for r in registry.query(full_name) if not crate_name or r.owning_crate == crate_name]
    if not records:
        console.print(f"[yellow]No implementors recorded for {full_name}.[/]")
        return

    table = Table(title=f"{full_name} ({len(records)} implementors)")
    table.add_column("Crate", style="cyan")
    table.add_column("Type")
    table.add_column("Impl")
    table.add_column("Synthetic", justify="center")

    for record in records:
        table.add_row(
            escape(record.owning_crate),
            escape(record.implementing_type),
            escape(record.constraint_text[:80]),
            "[dim]Y[/]" if record.synthetic else "",
        )

    console.print(table)


@main.command()
@_docs_options
def traits(docs: str | None, config_path: str | None):
    """List every trait with recorded implementors."""
    registry = _load_index(docs, config_path).registry

    names = registry.traits()
    if not names:
        console.print("[yellow]No implementor fragments found.[/]")
        return

    table = Table(title=f"Traits ({len(names)})")
    table.add_column("Trait", style="cyan")
    table.add_column("Implementors", justify="right")
    table.add_column("Crates", justify="right")
    for name in names:
        table.add_row(escape(name), str(len(registry.query(name))), str(len(registry.crates_for(name))))
    console.print(table)


# ── Sidebar ──────────────────────────────────────────────────────────


@main.command()
@click.argument("crate_name")
@click.argument("kind", required=False)
@_docs_options
def sidebar(crate_name: str, kind: str | None, docs: str | None, config_path: str | None):
    """Show sidebar items of CRATE_NAME, optionally only those of KIND (fn, struct, ...)."""
    catalog = _load_index(docs, config_path).sidebars

    index = catalog.get(crate_name)
    if index is None:
        console.print(f"[yellow]No sidebar index for crate '{crate_name}'.[/]")
        return

    for k in [kind] if kind else index.kinds:
        items = catalog.lookup_by_crate_and_kind(crate_name, k)
        console.print(f"\n[bold]{k}[/] ({len(items)})")
        for item in items:
            desc = f" [dim]— {escape(item.description[:70])}[/]" if item.description else ""
            console.print(f"  [cyan]{escape(item.symbol_name)}[/]{desc}")


# ── Stats ────────────────────────────────────────────────────────────


@main.command()
@click.option("--expected", type=int, default=None, help="Number of fragment files expected")
@_docs_options
def stats(expected: int | None, docs: str | None, config_path: str | None):
    """Show merge counters and whether all expected fragments arrived."""
    index = _load_index(docs, config_path)
    s = index.registry.stats
    readiness = index.registry.readiness(expected if expected is not None else index.expected_fragments)

    lines = [
        f"Fragments merged:   {s.fragments_merged} ({s.distinct_sources} distinct)",
        f"Records:            {s.records}",
        f"Duplicates skipped: {s.duplicates}",
        f"Records dropped:    {s.dropped}",
        f"Sidebar crates:     {len(index.sidebars)}",
        "",
        readiness.summary(),
    ]
    console.print(Panel("\n".join(lines), title="Index Stats"))

    if index.load_report.failed:
        console.print("\n[red]Unreadable fragment files:[/]")
        for path, reason in index.load_report.failed.items():
            console.print(f"  [red]x[/] {path}: {reason}")


# ── Convert ──────────────────────────────────────────────────────────


@main.command()
@click.argument("fragment_path")
@click.option("--trait", "trait_name", default="", help="Trait for descriptors that name none")
@click.option("--output", "-o", default=None, help="Write the legacy script here instead of stdout")
def convert(fragment_path: str, trait_name: str, output: str | None):
    """Convert a structured (JSON/YAML) fragment to the legacy script format."""
    import yaml

    from docindex.formats.legacy import FragmentFormatError, render_implementors
    from docindex.formats.structured import fragment_from_data

    path = Path(fragment_path)
    try:
        with open(path) as f:
            data = json.load(f) if path.suffix == ".json" else yaml.safe_load(f)
        fragment = fragment_from_data(data, source=path.name, default_trait=trait_name)
    except (OSError, json.JSONDecodeError, yaml.YAMLError, FragmentFormatError) as e:
        console.print(f"  [red]Failed to parse:[/] {e}")
        raise SystemExit(1)

    script = render_implementors(fragment)
    if output:
        Path(output).write_text(script + "\n", encoding="utf-8")
        console.print(f"[green]Legacy fragment written to:[/] {output}")
    else:
        click.echo(script)


if __name__ == "__main__":
    main()
