"""
Test suite for Tickbook log highlighting
"""

import pytest
from rich.text import Text

from tickbook.logger import TickbookLogHighlighter


def styles(line: str) -> set:
    text = Text(line)
    TickbookLogHighlighter().highlight(text)
    return {str(span.style) for span in text.spans}


class TestHighlighter:

    @pytest.mark.parametrize("line", [
        "Order 12 placed: alice sells 5 token at tick 0",
        "Fill reverted for order #3",
    ])
    def test_order_ids(self, line):
        assert "tickbook.order_id" in styles(line)

    def test_pool_ids_any_case(self):
        assert "tickbook.pool_id" in styles("Pool 0123456789abcdef initialized")
        assert "tickbook.pool_id" in styles("Cleaned 2 orders from pool 0123456789abcdef tick 4")

    def test_ticks_and_statuses(self):
        found = styles("Order 1 partially_filled: in=5 out=4 fee=0 at tick -3")
        assert {"tickbook.tick", "tickbook.status"} <= found
