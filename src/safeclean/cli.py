"""CLI interface for safeclean."""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Callable

import click

from safeclean.core import cleaner
from safeclean.core.registry import rules_by_category
from safeclean.core.scanner import scan as scan_tree
from safeclean.core.scanner import total_size
from safeclean.core.selector import GroupedSelector
from safeclean.core.tracker import Tracker
from safeclean.demo import generate_demo
from safeclean.models.category import Category
from safeclean.models.found_entry import FoundEntry
from safeclean.settings import Settings
from safeclean.utils import bytes_to_human, format_elapsed, format_relative_time

_CATEGORY_FLAGS: tuple[tuple[Category, tuple[str, ...], str], ...] = (
    (Category.RUST, ("--rust",), "Rust target/ directories"),
    (Category.NODE, ("--node", "--js", "--npm"), "Node.js node_modules/"),
    (Category.PYTHON, ("--python", "--py"), "Python venvs and caches"),
    (Category.JAVA, ("--java", "--maven"), "Java Maven target/"),
    (Category.GRADLE, ("--gradle",), "Gradle build/ directories"),
    (Category.DOTNET, ("--dotnet", "--csharp"), ".NET bin/ and obj/ directories"),
    (Category.NEXT, ("--next",), "Next.js .next/ directories"),
    (Category.NUXT, ("--nuxt",), "Nuxt.js .nuxt/ directories"),
)

_PATH_ARG = click.Path(exists=True, file_okay=False, resolve_path=True, path_type=Path)

log = logging.getLogger(__name__)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _category_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach one boolean flag per category, named after the category id."""
    for category, flags, help_text in reversed(_CATEGORY_FLAGS):
        func = click.option(*flags, category.value, is_flag=True, help=f"Only {help_text}")(func)
    return func


def _enabled_categories(flags: dict[str, bool]) -> set[Category]:
    """Categories picked on the command line, else from settings. Empty means all."""
    chosen = {Category.from_id(cid) for cid, enabled in flags.items() if enabled}
    if chosen:
        return chosen
    return Settings.instance().enabled_categories()


def _entry_to_dict(entry: FoundEntry) -> dict[str, Any]:
    return {
        "path": str(entry.path),
        "category": entry.category.value,
        "size_bytes": entry.size_bytes,
    }


def _run_scan(path: Path, categories: set[Category], quiet: bool) -> list[FoundEntry]:
    if quiet:
        return scan_tree(path, categories)

    click.echo(f"{click.style('Scanning', fg='cyan', bold=True)} {path}...")
    count = 0
    size = 0

    def on_found(entry: FoundEntry) -> None:
        nonlocal count, size
        count += 1
        size += entry.size_bytes
        click.echo(f"\r  {count} found so far ({bytes_to_human(size)})", nl=False, err=True)

    started = time.monotonic()
    found = scan_tree(path, categories, on_found=on_found)
    if count:
        click.echo(err=True)
    click.echo()
    log.info("Scan finished in %s", format_elapsed(time.monotonic() - started))
    return found


def _report_deletion(entry: FoundEntry, exc: OSError | None) -> None:
    if exc is None:
        click.echo(f"  {click.style('✓', fg='green')} {entry.path}  {entry.size_human}")
    else:
        click.echo(f"  {click.style('✗', fg='red')} {entry.path}")


def _print_entries(entries: list[FoundEntry]) -> None:
    width = max(len(str(e.path)) for e in entries)
    for entry in entries:
        tag = click.style(f"[{entry.category.display_name}]", dim=True)
        click.echo(f"  {str(entry.path):<{width}}  {entry.size_human:>10}  {tag}")


def _print_found_summary(entries: list[FoundEntry]) -> None:
    click.echo(
        f"Found {click.style(str(len(entries)), fg='green', bold=True)} cleanable directories "
        f"({click.style(bytes_to_human(total_size(entries)), fg='green', bold=True)})\n"
    )


@click.group()
@click.version_option(package_name="safeclean")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """safeclean: reclaim disk space from build artifacts and dependency caches."""
    _setup_logging(verbose)


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(as_json: bool) -> None:
    """List the directory names safeclean looks for."""
    grouped = rules_by_category()

    if as_json:
        data = [
            {
                "category": category.value,
                "name": category.display_name,
                "directories": [
                    {"basename": rule.basename, "requires": rule.marker or None} for rule in rules
                ],
            }
            for category, rules in grouped.items()
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for category, rules in grouped.items():
        click.echo(f"\n  {click.style(category.display_name, fg='blue', bold=True)} ({category.value})")
        for rule in rules:
            requires = f"next to {rule.marker}" if rule.marker else "anywhere"
            click.echo(f"    {click.style(rule.basename + '/', fg='cyan'):30s}  {requires}")
    click.echo()


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default=".", type=_PATH_ARG)
@_category_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(path: Path, as_json: bool, **flags: bool) -> None:
    """Find cleanable directories (preview only, never deletes)."""
    found = _run_scan(path, _enabled_categories(flags), quiet=as_json)

    if as_json:
        click.echo(json.dumps([_entry_to_dict(e) for e in found], indent=2))
        return

    if not found:
        click.echo(click.style("No cleanable directories found.", fg="yellow"))
        return

    _print_found_summary(found)
    _print_entries(found)
    click.echo(f"\nTotal reclaimable: {click.style(bytes_to_human(total_size(found)), fg='green', bold=True)}\n")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default=".", type=_PATH_ARG)
@_category_options
@click.option("--yes", "-y", is_flag=True, help="Skip selection, delete everything found")
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be deleted without deleting")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(path: Path, yes: bool, dry_run: bool, as_json: bool, **flags: bool) -> None:
    """Scan, pick directories interactively and delete them."""
    found = _run_scan(path, _enabled_categories(flags), quiet=as_json)

    if not found:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "deleted": [], "failed": []}))
        else:
            click.echo(click.style("No cleanable directories found.", fg="yellow"))
        return

    if dry_run:
        if as_json:
            data = {"status": "dry_run", "would_free_bytes": total_size(found),
                    "entries": [_entry_to_dict(e) for e in found]}
            click.echo(json.dumps(data, indent=2))
        else:
            _print_found_summary(found)
            click.echo(click.style("Dry run - nothing will be deleted:\n", fg="yellow"))
            _print_entries(found)
            click.echo(f"\n{click.style('Total:', bold=True)} "
                       f"{click.style(bytes_to_human(total_size(found)), fg='green', bold=True)}")
        return

    if yes or as_json:
        selected: list[FoundEntry] | None = found
    else:
        selected = GroupedSelector(found).run()

    # Cancelling and confirming an empty selection end the same way.
    if not selected:
        click.echo(click.style("Nothing selected.", fg="yellow"))
        return

    if not as_json:
        click.echo(f"{click.style('Deleting', fg='red', bold=True)} {len(selected)} directories...")

    result = cleaner.clean(selected, on_progress=None if as_json else _report_deletion)

    settings = Settings.instance()
    if settings.history_enabled():
        tracker = Tracker()
        tracker.record(result)
        tracker.save_session()

    if as_json:
        data = {
            "status": "cleaned",
            "freed_bytes": result.total_cleaned,
            "deleted": [_entry_to_dict(e) for e in result.deleted],
            "failed": [dict(_entry_to_dict(e), error=str(exc)) for e, exc in result.failed],
        }
        click.echo(json.dumps(data, indent=2))
        return

    if result.failed:
        click.echo(f"\n{click.style('Failed to delete:', fg='red')}")
        for error in result.errors:
            click.echo(f"  {error}")

    if result.deleted:
        click.echo(
            f"\n{click.style('Done!', fg='green', bold=True)} Cleaned "
            f"{click.style(bytes_to_human(result.total_cleaned), fg='green', bold=True)} in "
            f"{click.style(str(len(result.deleted)), fg='green')} directories"
        )


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show space freed statistics."""
    tracker = Tracker()
    data = tracker.get_stats(period)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{click.style('Statistics', bold=True)} ({period})\n")
    click.echo(f"  Bytes freed:    {click.style(bytes_to_human(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Dirs removed:   {data['dirs_removed']:,}")
    click.echo(f"  Sessions:       {data['session_count']}")
    click.echo(f"  Lifetime total: {click.style(bytes_to_human(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")

    last = tracker.get_last_clean_time()
    if last:
        click.echo(f"  Last clean:     {format_relative_time(last)}")

    if data["per_category"]:
        click.echo("\n  Per-category breakdown:")
        for cid, cstats in sorted(data["per_category"].items(), key=lambda x: x[1]["bytes_freed"], reverse=True):
            click.echo(f"    {cid:12s} {bytes_to_human(cstats['bytes_freed']):>10s}  ({cstats['dirs_removed']:,} dirs)")
    click.echo()


# ── demo ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
def demo(path: Path) -> None:
    """Create a sample project tree to try safeclean on."""
    expected = generate_demo(path)
    click.echo(f"Created {len(expected)} disposable directories under {path}")
    click.echo(f"Try: {click.style(f'safeclean clean {path}', fg='cyan')}")


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Read and change settings."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print a setting, e.g. 'scan.categories'."""
    value = Settings.instance().get(key)
    if value is None:
        click.echo(f"Setting '{key}' is not set.", err=True)
        sys.exit(1)
    click.echo(json.dumps(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store a setting. VALUE is parsed as JSON when possible."""
    try:
        parsed: Any = json.loads(value)
    except json.JSONDecodeError:
        parsed = value

    if key == "scan.categories":
        ids = parsed if isinstance(parsed, list) else [parsed]
        parsed = ids
        for cid in ids:
            try:
                Category.from_id(str(cid))
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="VALUE") from None
    elif key == "history.enabled" and not isinstance(parsed, bool):
        raise click.BadParameter("history.enabled must be true or false", param_hint="VALUE")

    settings = Settings.instance()
    settings.set(key, parsed)
    click.echo(f"{key} = {json.dumps(parsed)}  ({settings.path})")
