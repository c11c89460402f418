"""Product frequency index built from purchase history."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .history import PurchaseRecord


@dataclass(frozen=True)
class ProductFrequency:
    """A distinct purchased product with how often it was bought."""

    product_name: str
    count: int
    product_link: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "product_name": self.product_name,
            "count": self.count,
            "product_link": self.product_link,
        }


def build_frequency_index(records: Iterable[PurchaseRecord]) -> dict[str, ProductFrequency]:
    """
    Aggregate purchase records into one entry per product name.

    Names are compared exactly after trimming. The first link seen for a
    product is kept even if later records carry a different one.

    Args:
        records: Purchase records in arrival order

    Returns:
        Dict mapping product name to its frequency entry, in first-seen order
    """
    index: dict[str, ProductFrequency] = {}

    for record in records:
        name = record.product_name.strip()
        if not name:
            continue
        existing = index.get(name)
        if existing:
            index[name] = ProductFrequency(name, existing.count + 1, existing.product_link)
        else:
            index[name] = ProductFrequency(name, 1, record.product_link)

    return index


def most_purchased(
    index: dict[str, ProductFrequency], limit: int | None = None
) -> list[ProductFrequency]:
    """Get products ordered by purchase count, most frequent first."""
    ranked = sorted(index.values(), key=lambda p: p.count, reverse=True)
    return ranked[:limit] if limit is not None else ranked
