"""Shopping session state and recomputation of match results.

Results are a pure function of the session state (``recompute``). The
``ShoppingSession`` holder owns the state, replaces it on every mutating
operation and recomputes the results right after.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from .ai_service import AIProvider, AIServiceError, analyze_shopping_list, create_provider
from .config import ScoringWeights, get_scoring_weights
from .frequency import ProductFrequency, build_frequency_index
from .history import PurchaseRecord, load_purchase_history
from .matcher import MatchResult, match_shopping_list
from .normalizer import prepare_list_text

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Exception raised when analysis is requested without the required input."""

    pass


class AnalysisFailedError(Exception):
    """Exception raised when the AI cleanup/expansion step fails."""

    pass


class AnalysisInProgressError(Exception):
    """Exception raised when analysis is started while another is running."""

    pass


class AnalysisState(Enum):
    """Whether results for the current list text may be shown."""

    NOT_ANALYZED = "not_analyzed"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"


@dataclass(frozen=True)
class SessionState:
    """Everything match results depend on."""

    analysis: AnalysisState = AnalysisState.NOT_ANALYZED
    list_text: str = ""
    index: dict[str, ProductFrequency] = field(default_factory=dict)
    expansions: dict[str, list[str]] = field(default_factory=dict)
    overrides: dict[str, str] = field(default_factory=dict)


def recompute(state: SessionState, weights: ScoringWeights | None = None) -> list[MatchResult]:
    """
    Compute match results for a session state.

    No results are produced until the current list text has been analyzed.
    """
    if state.analysis is not AnalysisState.ANALYZED or not state.list_text.strip():
        return []
    return match_shopping_list(
        state.list_text, state.index, state.expansions, state.overrides, weights
    )


class ShoppingSession:
    """Holds purchase history, list text, expansions and overrides for one user."""

    def __init__(
        self,
        provider: AIProvider | None = None,
        weights: ScoringWeights | None = None,
    ):
        self.provider = provider if provider is not None else create_provider()
        self.weights = weights or get_scoring_weights()
        self.records: list[PurchaseRecord] = []
        self.state = SessionState()
        self.results: list[MatchResult] = []

    def _update(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        self.results = recompute(self.state, self.weights)

    @property
    def analysis(self) -> AnalysisState:
        return self.state.analysis

    @property
    def list_text(self) -> str:
        return self.state.list_text

    @property
    def index(self) -> dict[str, ProductFrequency]:
        return self.state.index

    @property
    def expansions(self) -> dict[str, list[str]]:
        """Copy of the expansion map; change it through ``analyze``."""
        return {item: list(phrases) for item, phrases in self.state.expansions.items()}

    @property
    def overrides(self) -> dict[str, str]:
        """Copy of the overrides; change them through ``apply_override``."""
        return dict(self.state.overrides)

    def set_history(self, records: list[PurchaseRecord]) -> None:
        """Replace the purchase history and rebuild the frequency index."""
        self.records = list(records)
        self._update(index=build_frequency_index(self.records))

    def load_history(self, path: str | Path) -> int:
        """
        Load purchase history from a CSV or Excel file.

        Returns:
            Number of purchase records loaded

        Raises:
            HistoryError: If the file can't be loaded
        """
        records = load_purchase_history(path)
        self.set_history(records)
        return len(records)

    def set_list_text(self, text: str) -> None:
        """Replace the shopping list text; results are hidden until analyzed again."""
        self._update(list_text=prepare_list_text(text), analysis=AnalysisState.NOT_ANALYZED)

    def analyze(self) -> list[MatchResult]:
        """
        Clean up and expand the current list, then match it against the history.

        Returns:
            Match results, one per list line

        Raises:
            ValidationError: If there is no purchase history or the list is empty
            AnalysisInProgressError: If an analysis is already running
            AnalysisFailedError: If the AI step fails; list text and expansions
                are left unchanged
        """
        if self.state.analysis is AnalysisState.ANALYZING:
            raise AnalysisInProgressError("An analysis is already in progress")
        if not self.records:
            raise ValidationError(
                "Missing data: please load your purchase history file (CSV or XLSX) first."
            )
        if not self.state.list_text.strip():
            raise ValidationError(
                "Missing list: please enter at least one item in your shopping list."
            )

        self._update(analysis=AnalysisState.ANALYZING)
        try:
            result = analyze_shopping_list(self.provider, self.state.list_text)
        except AIServiceError as e:
            logger.warning("Analysis failed: %s", e)
            raise AnalysisFailedError(f"Analysis failed: {e}") from e
        else:
            self._update(
                list_text=result.cleaned_text,
                expansions=result.expansions,
                analysis=AnalysisState.ANALYZED,
            )
        finally:
            # Never leave the session stuck in ANALYZING
            if self.state.analysis is AnalysisState.ANALYZING:
                self._update(analysis=AnalysisState.NOT_ANALYZED)
        return self.results

    def apply_override(self, term: str, product: ProductFrequency | str) -> list[MatchResult]:
        """
        Choose a candidate for a term instead of the default winner.

        The override stays in effect while the product remains a candidate
        for the term; it is ignored (not removed) otherwise.

        Args:
            term: Cleaned search term as shown in the results
            product: Chosen candidate or its product name

        Returns:
            Recomputed match results
        """
        name = product.product_name if isinstance(product, ProductFrequency) else product
        self._update(overrides={**self.state.overrides, term: name})
        return self.results
