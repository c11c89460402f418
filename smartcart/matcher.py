"""Shopping list term to purchased product matching logic."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import ScoringWeights
from .frequency import ProductFrequency
from .normalizer import clean_leading_markup, normalize, root_of, split_list_lines

logger = logging.getLogger(__name__)

NO_MATCH = "No Match"

# Tokens shorter than this are ignored for token overlap scoring
MIN_TOKEN_LENGTH = 3


@dataclass
class MatchResult:
    """The chosen product for one shopping list line."""

    term: str
    product_name: str = NO_MATCH
    product_link: str = ""
    count: int = 0
    candidates: list[ProductFrequency] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.candidates)

    @property
    def alternatives(self) -> list[ProductFrequency]:
        """Ranked candidates other than the current winner."""
        return [c for c in self.candidates if c.product_name != self.product_name]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "term": self.term,
            "product_name": self.product_name,
            "product_link": self.product_link,
            "count": self.count,
            "matched": self.matched,
            "candidates": [c.to_dict() for c in self.candidates],
        }


@dataclass
class _ScoredCandidate:
    product: ProductFrequency
    score: int


def search_tokens(norm_term: str) -> list[str]:
    """Split a normalized term into root tokens of at least 3 characters."""
    roots = (root_of(token) for token in norm_term.split(" "))
    return [token for token in roots if len(token) >= MIN_TOKEN_LENGTH]


def score_product(
    norm_product: str,
    norm_term: str,
    tokens: list[str],
    normalized_expansions: list[str],
    weights: ScoringWeights,
) -> int:
    """
    Score a normalized product name against a normalized search term.

    Three tiers add up:
    - the whole term appears in the product name
    - each expansion phrase that appears in the product name
    - token overlap, counted only when at least two tokens match or the
      search has a single token and it matches

    Args:
        norm_product: Normalized product name
        norm_term: Normalized search term
        tokens: Root tokens of the search term
        normalized_expansions: Normalized alternate phrases for the term
        weights: Points per tier

    Returns:
        Integer score (higher is better), before the minimum score gate
    """
    score = 0

    if norm_term in norm_product:
        score += weights.substring

    for expansion in normalized_expansions:
        if expansion in norm_product:
            score += weights.expansion

    matched_tokens = sum(1 for token in tokens if token in norm_product)
    if matched_tokens >= 2 or (len(tokens) == 1 and matched_tokens == 1):
        score += matched_tokens * weights.token

    return score


def rank_candidates(
    term: str,
    expansions: list[str],
    index: Mapping[str, ProductFrequency],
    weights: ScoringWeights | None = None,
) -> list[ProductFrequency]:
    """
    Rank purchased products for a cleaned search term.

    Products scoring below the minimum are dropped. The rest are sorted by
    score, then by purchase count, keeping index order for full ties.
    A term or expansion phrase that normalizes to "" scores nothing.

    Args:
        term: Cleaned search term
        expansions: Alternate phrases for the term (may be empty)
        index: Product frequency index
        weights: Scoring weights (defaults if not given)

    Returns:
        Ranked candidates, best first
    """
    weights = weights or ScoringWeights()
    norm_term = normalize(term)
    if not norm_term:
        return []

    tokens = search_tokens(norm_term)
    normalized_expansions = [e for e in (normalize(exp) for exp in expansions) if e]

    best: dict[str, _ScoredCandidate] = {}
    for product_name, product in index.items():
        score = score_product(
            normalize(product_name), norm_term, tokens, normalized_expansions, weights
        )
        if score < weights.min_score:
            continue
        existing = best.get(product_name)
        if existing is None or score > existing.score:
            best[product_name] = _ScoredCandidate(product, score)

    scored = sorted(best.values(), key=lambda c: (-c.score, -c.product.count))
    logger.debug(
        "Term '%s': %d candidates %s",
        term,
        len(scored),
        [(c.product.product_name, c.score) for c in scored[:5]],
    )
    return [c.product for c in scored]


def no_match(term: str) -> MatchResult:
    """Create the "No Match" result for a term."""
    return MatchResult(term=term)


def resolve(
    term: str,
    candidates: list[ProductFrequency],
    override: str | None = None,
) -> MatchResult:
    """
    Pick the winning product for a term.

    The top candidate wins unless an override names a product that is still
    among the candidates. An override that is no longer a candidate is
    ignored for this result.

    Args:
        term: Cleaned search term
        candidates: Ranked candidates, best first
        override: Product name chosen by the user for this term

    Returns:
        MatchResult carrying the full candidate list
    """
    if not candidates:
        return no_match(term)

    winner = candidates[0]
    if override is not None:
        chosen = next((c for c in candidates if c.product_name == override), None)
        if chosen is not None:
            winner = chosen

    return MatchResult(
        term=term,
        product_name=winner.product_name,
        product_link=winner.product_link,
        count=winner.count,
        candidates=list(candidates),
    )


def match_line(
    line: str,
    index: Mapping[str, ProductFrequency],
    expansions: Mapping[str, list[str]] | None = None,
    overrides: Mapping[str, str] | None = None,
    weights: ScoringWeights | None = None,
) -> MatchResult:
    """
    Match a single shopping list line.

    Expansions are looked up by the trimmed line as entered; overrides by
    the line with its leading bullets/numbering removed.

    Args:
        line: Raw list line
        index: Product frequency index
        expansions: Alternate phrases keyed by list line
        overrides: Chosen product name keyed by cleaned term
        weights: Scoring weights

    Returns:
        MatchResult for the line
    """
    raw_term = line.strip()
    term = clean_leading_markup(raw_term)
    if not term:
        return no_match(raw_term)

    term_expansions = (expansions or {}).get(raw_term, [])
    candidates = rank_candidates(term, term_expansions, index, weights)
    return resolve(term, candidates, (overrides or {}).get(term))


def match_shopping_list(
    list_text: str,
    index: Mapping[str, ProductFrequency],
    expansions: Mapping[str, list[str]] | None = None,
    overrides: Mapping[str, str] | None = None,
    weights: ScoringWeights | None = None,
) -> list[MatchResult]:
    """
    Match every non-empty line of a shopping list.

    Args:
        list_text: Newline-separated shopping list
        index: Product frequency index
        expansions: Alternate phrases keyed by list line
        overrides: Chosen product name keyed by cleaned term
        weights: Scoring weights

    Returns:
        One MatchResult per non-empty line, in list order
    """
    return [
        match_line(line, index, expansions, overrides, weights)
        for line in split_list_lines(list_text)
    ]


def get_unmatched_terms(results: list[MatchResult]) -> list[str]:
    """Get terms that couldn't be matched."""
    return [r.term for r in results if not r.matched]
