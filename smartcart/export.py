"""Match result export in various formats."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .matcher import MatchResult


def smart_list_text(results: list[MatchResult]) -> str:
    """
    Format results as a newline-separated list of matched product names.

    Lines without a match keep the original term.
    """
    return "\n".join(r.product_name if r.matched else r.term for r in results)


def _summary(results: list[MatchResult]) -> dict[str, int]:
    matched = sum(1 for r in results if r.matched)
    return {
        "total_items": len(results),
        "matched": matched,
        "unmatched": len(results) - matched,
    }


def export_to_json(
    results: list[MatchResult],
    filepath: str | Path,
    *,
    include_candidates: bool = False,
    expansions: dict[str, list[str]] | None = None,
) -> None:
    """
    Export match results to JSON format.

    Args:
        results: Match results
        filepath: Output file path
        include_candidates: Include every ranked candidate per item
        expansions: Optional expansion map to include
    """
    data: dict[str, Any] = {
        "exported_at": datetime.now().isoformat(),
        "items": [],
        "summary": _summary(results),
    }

    for result in results:
        item: dict[str, Any] = {"term": result.term, "matched": result.matched}
        if result.matched:
            item["product"] = {
                "name": result.product_name,
                "link": result.product_link,
                "count": result.count,
            }
            if include_candidates:
                item["candidates"] = [c.to_dict() for c in result.candidates]
        data["items"].append(item)

    if expansions is not None:
        data["expansions"] = expansions

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_markdown(
    results: list[MatchResult],
    filepath: str | Path,
    *,
    title: str | None = None,
    include_candidates: bool = False,
) -> None:
    """
    Export match results to Markdown format.

    Args:
        results: Match results
        filepath: Output file path
        title: Optional document title
        include_candidates: List other candidates under each item
    """
    summary = _summary(results)
    lines: list[str] = [
        f"# {title or 'Smart Shopping List'}",
        "",
        f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*",
        "",
        "## Summary",
        "",
        f"- **Items:** {summary['total_items']}",
        f"- **Matched:** {summary['matched']}",
        f"- **Unmatched:** {summary['unmatched']}",
        "",
        "## Items",
        "",
    ]

    for result in results:
        if result.matched:
            name = (
                f"[{result.product_name}]({result.product_link})"
                if result.product_link
                else result.product_name
            )
            lines.append(f"- [x] **{result.term}** → {name} (bought {result.count}x)")
            if include_candidates:
                for alt in result.alternatives:
                    lines.append(f"  - {alt.product_name} ({alt.count}x)")
        else:
            lines.append(f"- [ ] **{result.term}** - *No match found*")

    lines.append("")

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))


def export_to_text(results: list[MatchResult], filepath: str | Path) -> None:
    """Export the smart list as plain text, one product per line."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(smart_list_text(results) + "\n")


def export_results(
    results: list[MatchResult],
    filepath: str | Path,
    format: str | None = None,
    *,
    include_candidates: bool = False,
    expansions: dict[str, list[str]] | None = None,
) -> str:
    """
    Export match results, choosing the format from the argument or file extension.

    Args:
        results: Match results
        filepath: Output file path
        format: "json", "md" or "txt" (inferred from extension if omitted)
        include_candidates: Include ranked candidates where supported
        expansions: Expansion map to include in JSON output

    Returns:
        The format used

    Raises:
        ValueError: If the format is unknown
    """
    filepath = Path(filepath)
    if format is None:
        format = filepath.suffix.lower().lstrip(".") or "txt"
    if format == "markdown":
        format = "md"

    if format == "json":
        export_to_json(
            results, filepath, include_candidates=include_candidates, expansions=expansions
        )
    elif format == "md":
        export_to_markdown(results, filepath, include_candidates=include_candidates)
    elif format == "txt":
        export_to_text(results, filepath)
    else:
        raise ValueError(f"Unknown export format: {format}")

    return format
