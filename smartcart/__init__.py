"""SmartCart Standardizer - match shopping lists against your purchase history."""

__version__ = "1.0.0"

from .frequency import ProductFrequency, build_frequency_index
from .history import PurchaseRecord, load_purchase_history
from .matcher import NO_MATCH, MatchResult, match_shopping_list, rank_candidates, resolve
from .normalizer import clean_leading_markup, normalize, root_of
from .session import AnalysisState, ShoppingSession, recompute

__all__ = [
    "PurchaseRecord",
    "load_purchase_history",
    "ProductFrequency",
    "build_frequency_index",
    "normalize",
    "root_of",
    "clean_leading_markup",
    "NO_MATCH",
    "MatchResult",
    "rank_candidates",
    "resolve",
    "match_shopping_list",
    "AnalysisState",
    "ShoppingSession",
    "recompute",
]
