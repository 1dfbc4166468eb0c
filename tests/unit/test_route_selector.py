"""
Tests for best-route selection.
"""

from app.core.quotes.models import RouteCandidate
from app.core.quotes.routes import (
    ROUTE_KIND_AUTO,
    ROUTE_KIND_LEGACY,
    ROUTE_KIND_MANUAL,
    select_best_manual,
    select_best_of_both,
)


def route(amount: str, label: str = None) -> RouteCandidate:
    return RouteCandidate(output_base_units=amount, label=label)


class TestSelectBestManual:

    def test_highest_output_wins(self):
        best = select_best_manual([route("100", "a"), route("300", "b"), route("200", "c")])
        assert best.label == "b"

    def test_first_seen_wins_ties(self):
        best = select_best_manual([route("300", "first"), route("300", "second"), route("100", "third")])
        assert best.label == "first"

    def test_compares_as_integers_not_strings(self):
        best = select_best_manual([route("9", "nine"), route("10", "ten")])
        assert best.label == "ten"

    def test_large_18_decimal_amounts(self):
        best = select_best_manual([
            route("1000000000000000001", "more"),
            route("1000000000000000000", "less"),
        ])
        assert best.label == "more"

    def test_zero_or_missing_output_is_skipped(self):
        assert select_best_manual([route("0"), route("garbage")]) is None

    def test_empty(self):
        assert select_best_manual([]) is None


class TestSelectBestOfBoth:

    def test_auto_wins_even_when_manual_pays_more(self):
        selection = select_best_of_both(route("100", "auto"), [route("500", "manual")])
        assert selection.kind == ROUTE_KIND_AUTO
        assert selection.candidate.label == "auto"

    def test_zero_output_auto_falls_through_to_manual(self):
        selection = select_best_of_both(route("0", "auto"), [route("50", "m1"), route("80", "m2")])
        assert selection.kind == ROUTE_KIND_MANUAL
        assert selection.candidate.label == "m2"

    def test_no_auto_uses_best_manual(self):
        selection = select_best_of_both(None, [route("50", "m1"), route("80", "m2")], [route("999", "legacy")])
        assert selection.kind == ROUTE_KIND_MANUAL
        assert selection.candidate.label == "m2"

    def test_legacy_head_is_last_resort(self):
        selection = select_best_of_both(None, [], [route("10", "legacy-1"), route("99", "legacy-2")])
        assert selection.kind == ROUTE_KIND_LEGACY
        assert selection.candidate.label == "legacy-1"

    def test_nothing_to_select(self):
        assert select_best_of_both(None) is None
