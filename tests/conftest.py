"""Shared fixtures for smartcart tests."""

import pytest
import respx

from smartcart.frequency import build_frequency_index
from smartcart.history import PurchaseRecord


def make_record(
    product_name: str,
    product_link: str = "",
    order_number: str = "1000",
    quantity: int = 1,
) -> PurchaseRecord:
    """Create a PurchaseRecord for testing."""
    return PurchaseRecord(
        order_number=order_number,
        order_date="2025-01-15",
        product_name=product_name,
        quantity=quantity,
        price=1.0,
        delivery_status="Delivered",
        product_link=product_link,
    )


@pytest.fixture
def mock_httpx():
    """Activate respx mock for HTTP requests."""
    with respx.mock(assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def milk_records():
    """Purchase history with two kinds of milk bought at different rates."""
    records = [make_record("Great Value Whole Milk", "https://example.com/gv-milk")] * 5
    records += [make_record("Silk Almond Milk", "https://example.com/silk")] * 2
    records.append(make_record("Bananas, each", "https://example.com/bananas"))
    return records


@pytest.fixture
def milk_index(milk_records):
    """Frequency index built from milk_records."""
    return build_frequency_index(milk_records)


@pytest.fixture
def history_csv(tmp_path):
    """A purchase history CSV in the order exporter's column layout."""
    path = tmp_path / "orders.csv"
    path.write_text(
        "Order Number,Order Date,Product Name,Quantity,Price,Delivery Status,Product Link\n"
        "1001,2025-01-02,Great Value Whole Milk,1,$3.48,Delivered,https://example.com/gv-milk\n"
        "1001,2025-01-02,Bananas each,6,$0.25,Delivered,https://example.com/bananas\n"
        "1002,2025-01-09,Great Value Whole Milk,2,$3.48,Delivered,https://example.com/gv-milk-2\n"
        "1002,2025-01-09,,1,$1.00,Delivered,\n"
        "1003,2025-01-16,Silk Almond Milk,1,$4.12,Delivered,https://example.com/silk\n",
        encoding="utf-8",
    )
    return path


class FakeProvider:
    """AI provider double that records calls and returns canned output."""

    def __init__(self, cleaned_text=None, expansions=None, error=None):
        self.cleaned_text = cleaned_text
        self.expansions = expansions or {}
        self.error = error
        self.sanitize_calls: list[str] = []
        self.expand_calls: list[list[str]] = []

    def sanitize(self, raw_text):
        self.sanitize_calls.append(raw_text)
        if self.error:
            raise self.error
        return self.cleaned_text if self.cleaned_text is not None else raw_text

    def expand(self, items):
        self.expand_calls.append(list(items))
        return dict(self.expansions)


@pytest.fixture
def fake_provider():
    """A passthrough AI provider double."""
    return FakeProvider()


@pytest.fixture
def make_provider():
    """Factory for AI provider doubles with canned output or errors."""
    return FakeProvider
