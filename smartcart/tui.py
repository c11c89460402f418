"""Interactive TUI for reviewing matches and choosing other candidates."""

from dataclasses import dataclass

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Label, Static

from .matcher import MatchResult
from .session import ShoppingSession


@dataclass
class ReviewResult:
    """Result from the interactive review."""

    confirmed: bool
    results: list[MatchResult]


class CandidatesModal(ModalScreen[str | None]):
    """Modal dialog to pick one of the ranked candidates for a term."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(
        self,
        result: MatchResult,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name)
        self.result = result

    def compose(self) -> ComposeResult:
        with Vertical(id="candidates-dialog"):
            yield Label(f"Candidates for: {self.result.term}", id="cand-title")
            yield Label(f"Current: {self.result.product_name}", id="cand-current")
            yield Static("", id="cand-spacer")

            table = DataTable(id="cand-table")
            table.cursor_type = "row"
            table.add_columns("#", "Product", "Bought")
            for i, candidate in enumerate(self.result.candidates):
                marker = "→ " if candidate.product_name == self.result.product_name else ""
                table.add_row(
                    str(i + 1), f"{marker}{candidate.product_name}"[:60], f"{candidate.count}x"
                )
            yield table

            with Horizontal(id="cand-buttons"):
                yield Button("Cancel", variant="default", id="btn-cancel")

    @on(DataTable.RowSelected)
    def on_row_selected(self, event: DataTable.RowSelected) -> None:
        """Choose the candidate when row is clicked or Enter pressed."""
        if event.cursor_row is not None and event.cursor_row < len(self.result.candidates):
            self.dismiss(self.result.candidates[event.cursor_row].product_name)

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel(self) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ReviewScreen(App[ReviewResult]):
    """Interactive screen for reviewing match results."""

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        height: 100%;
        padding: 1;
    }

    #summary {
        height: 3;
        padding: 0 1;
        background: $primary-background;
        color: $text;
        content-align: center middle;
    }

    #results-table {
        height: 1fr;
        margin: 1 0;
    }

    #button-bar {
        height: 3;
        align: center middle;
        padding: 0 1;
    }

    #button-bar Button {
        margin: 0 1;
    }

    #candidates-dialog {
        width: 80;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    #cand-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #cand-current {
        color: $text-muted;
        padding-bottom: 1;
    }

    #cand-spacer {
        height: 1;
    }

    #cand-table {
        height: auto;
        max-height: 15;
        margin-bottom: 1;
    }

    #cand-buttons {
        height: 3;
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("q", "quit_cancel", "Cancel"),
        Binding("enter", "show_candidates", "Candidates"),
        Binding("c", "confirm", "Confirm"),
        Binding("escape", "quit_cancel", "Cancel"),
    ]

    def __init__(
        self,
        session: ShoppingSession,
        title: str | None = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.list_title = title or "Smart Shopping List"

    @property
    def results(self) -> list[MatchResult]:
        return self.session.results

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-container"):
            yield Static(self._get_summary(), id="summary")
            table = DataTable(id="results-table")
            table.cursor_type = "row"
            table.add_columns("Item", "Match", "Bought", "Status")
            yield table
            with Horizontal(id="button-bar"):
                yield Button("Confirm (c)", variant="success", id="btn-confirm")
                yield Button("Cancel (q)", variant="error", id="btn-cancel")
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.list_title
        self._refresh_table()

    def _get_summary(self) -> str:
        matched = sum(1 for r in self.results if r.matched)
        unmatched = len(self.results) - matched
        overridden = sum(
            1 for r in self.results if r.matched and r.product_name != r.candidates[0].product_name
        )
        return (
            f"Items: {len(self.results)} | Matched: {matched} | Unmatched: {unmatched} "
            f"| Changed: {overridden}"
        )

    def _refresh_table(self) -> None:
        table = self.query_one("#results-table", DataTable)
        table.clear()

        for result in self.results:
            if result.matched:
                options = len(result.candidates)
                status = "✓" if options == 1 else f"✓ ({options} options)"
                table.add_row(
                    result.term[:25], result.product_name[:45], f"{result.count}x", status
                )
            else:
                table.add_row(result.term[:25], "No match found", "-", "✗")

        summary = self.query_one("#summary", Static)
        summary.update(self._get_summary())

    def action_show_candidates(self) -> None:
        table = self.query_one("#results-table", DataTable)
        if table.cursor_row is not None and 0 <= table.cursor_row < len(self.results):
            result = self.results[table.cursor_row]
            if len(result.candidates) > 1:
                self.push_screen(
                    CandidatesModal(result),
                    callback=lambda choice: self._on_candidate_selected(result.term, choice),
                )

    def _on_candidate_selected(self, term: str, product_name: str | None) -> None:
        if product_name is not None:
            self.session.apply_override(term, product_name)
            self._refresh_table()

    def action_confirm(self) -> None:
        self.exit(ReviewResult(confirmed=True, results=self.results))

    def action_quit_cancel(self) -> None:
        self.exit(ReviewResult(confirmed=False, results=self.results))

    @on(Button.Pressed, "#btn-confirm")
    def on_confirm_button(self) -> None:
        self.action_confirm()

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel_button(self) -> None:
        self.action_quit_cancel()


def interactive_review(session: ShoppingSession, title: str | None = None) -> ReviewResult:
    """
    Launch interactive TUI for reviewing an analyzed session.

    Choices made in the TUI are stored as overrides on the session.

    Args:
        session: An analyzed shopping session
        title: Optional title for the review screen

    Returns:
        ReviewResult with confirmed status and the current results
    """
    app = ReviewScreen(session, title)
    result = app.run()
    # Handle case where app exits without explicit result (e.g., crash)
    if result is None:
        return ReviewResult(confirmed=False, results=session.results)
    return result
