"""CLI entry point for SmartCart Standardizer."""

import logging

import click

from . import __version__
from .ai_service import AIProviderKind, AIServiceError, create_provider
from .config import ConfigError
from .export import export_results, smart_list_text
from .frequency import build_frequency_index, most_purchased
from .history import HistoryError, load_purchase_history
from .matcher import MatchResult, get_unmatched_terms
from .session import AnalysisFailedError, ShoppingSession, ValidationError
from .tui import interactive_review


def display_results(results: list[MatchResult], show_alternatives: bool = False) -> None:
    """Display match results in a formatted way."""
    click.echo()
    click.echo("=" * 60)
    click.echo("SMART MATCHES")
    click.echo("=" * 60)

    for i, result in enumerate(results, 1):
        click.echo(f"\n{i}. {result.term}")
        if result.matched:
            click.echo(f"   → {result.product_name} (bought {result.count}x)")
            if result.product_link:
                click.echo(f"   {result.product_link}")

            if show_alternatives and result.alternatives:
                click.echo("   Alternatives:")
                for j, alt in enumerate(result.alternatives, 1):
                    click.echo(f"     {j}. {alt.product_name} ({alt.count}x)")
        else:
            click.echo("   ✗ No match found in purchase history")

    unmatched = get_unmatched_terms(results)
    click.echo()
    click.echo("-" * 60)
    click.echo(f"Matched: {len(results) - len(unmatched)} | Unmatched: {len(unmatched)}")
    click.echo("-" * 60)


def parse_override(value: str) -> tuple[str, str]:
    """Parse a TERM=PRODUCT override option."""
    term, sep, product = value.partition("=")
    if not sep or not term.strip() or not product.strip():
        raise click.BadParameter(f"Expected TERM=PRODUCT, got '{value}'")
    return term.strip(), product.strip()


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="smartcart")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """SmartCart Standardizer.

    Match a free-text shopping list against your purchase history and pick
    the product you most likely mean for each item.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# History Commands
# ============================================================================


@cli.command("history")
@click.argument("history_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--top", "-n", default=10, help="Number of top products to show")
def history_cmd(history_file: str, top: int):
    """Summarize a purchase history file (CSV, XLSX or XLS)."""
    try:
        records = load_purchase_history(history_file)
    except HistoryError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    index = build_frequency_index(records)

    click.echo()
    click.echo("PURCHASE HISTORY")
    click.echo("=" * 60)
    click.echo(f"  Records: {len(records)}")
    click.echo(f"  Distinct products: {len(index)}")
    click.echo()

    if index:
        click.echo(f"Most purchased (top {min(top, len(index))}):")
        for i, product in enumerate(most_purchased(index, top), 1):
            click.echo(f"  {i}. {product.product_name} ({product.count}x)")
        click.echo()


# ============================================================================
# Matching Commands
# ============================================================================


@cli.command("match")
@click.argument("history_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--text", "-t", "input_text", help="Shopping list as inline text")
@click.option("--file", "-f", "file_path", type=click.Path(exists=True), help="Load list from file")
@click.option(
    "--provider",
    "-p",
    type=click.Choice([kind.value for kind in AIProviderKind]),
    help="AI provider for list cleanup (default: AI_PROVIDER or gemini)",
)
@click.option(
    "--override",
    "overrides",
    multiple=True,
    help="Choose a product for an item: TERM=PRODUCT (repeatable)",
)
@click.option("--alternatives", "-a", is_flag=True, help="Show other candidates")
@click.option("--interactive", "-i", is_flag=True, help="Interactive review with TUI")
@click.option("--output", "-o", type=click.Path(), help="Export results to a file")
@click.option("--format", "export_format", type=click.Choice(["json", "md", "txt"]))
def match_cmd(
    history_file: str,
    input_text: str | None,
    file_path: str | None,
    provider: str | None,
    overrides: tuple[str, ...],
    alternatives: bool,
    interactive: bool,
    output: str | None,
    export_format: str | None,
):
    """Match a shopping list against a purchase history file.

    Examples:

        smartcart match orders.csv --text "milk, eggs, bananas"

        smartcart match orders.xlsx -f list.txt --provider openrouter -a
    """
    if input_text and file_path:
        click.echo("✗ Use either --text or --file, not both", err=True)
        raise SystemExit(1)

    if file_path:
        try:
            with open(file_path, encoding="utf-8") as f:
                input_text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            click.echo(f"✗ Could not read list file: {e}", err=True)
            raise SystemExit(1) from None

    parsed_overrides = [parse_override(value) for value in overrides]

    try:
        kind = AIProviderKind(provider) if provider else None
        session = ShoppingSession(provider=create_provider(kind))
        count = session.load_history(history_file)
        click.echo(f"Loaded {count} purchase records ({len(session.index)} products)")

        session.set_list_text(input_text or "")
        click.echo("Analyzing shopping list...")
        session.analyze()
    except (HistoryError, ValidationError, AnalysisFailedError, AIServiceError, ConfigError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    for term, product_name in parsed_overrides:
        session.apply_override(term, product_name)

    if interactive:
        review = interactive_review(session)
        if not review.confirmed:
            click.echo("Cancelled.")
            return

    display_results(session.results, show_alternatives=alternatives)

    click.echo()
    click.echo("SMART LIST")
    click.echo(smart_list_text(session.results))

    if output:
        try:
            used = export_results(
                session.results,
                output,
                export_format,
                include_candidates=alternatives,
                expansions=session.expansions,
            )
        except (OSError, ValueError) as e:
            click.echo(f"✗ Export failed: {e}", err=True)
            raise SystemExit(1) from None
        click.echo(f"\n✓ Exported {used.upper()} to {output}")


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
