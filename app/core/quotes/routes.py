"""Route selection among the candidates returned by a single quote call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import RouteCandidate

ROUTE_KIND_AUTO = "auto"
ROUTE_KIND_MANUAL = "manual"
ROUTE_KIND_LEGACY = "legacy"


@dataclass(frozen=True)
class RouteSelection:
    kind: str
    candidate: RouteCandidate


def select_best_manual(candidates: Sequence[RouteCandidate]) -> Optional[RouteCandidate]:
    """Highest output wins; on a tie the first candidate seen is kept.

    Candidates with no positive output are never selected.
    """
    best: Optional[RouteCandidate] = None
    for candidate in candidates:
        value = candidate.output_value
        if value <= 0:
            continue
        if best is None or value > best.output_value:
            best = candidate
    return best


def select_best_of_both(
    auto: Optional[RouteCandidate],
    manual: Sequence[RouteCandidate] = (),
    legacy: Sequence[RouteCandidate] = (),
) -> Optional[RouteSelection]:
    """Pick the single route to quote when only one result is shown.

    The auto route is the provider's recommended (fastest) route and wins
    whenever it carries a nonzero output, even if a manual route pays more.
    Otherwise the best manual route is used, then the head of the legacy list.
    """
    if auto is not None and auto.output_value > 0:
        return RouteSelection(ROUTE_KIND_AUTO, auto)

    best_manual = select_best_manual(manual)
    if best_manual is not None:
        return RouteSelection(ROUTE_KIND_MANUAL, best_manual)

    if legacy:
        return RouteSelection(ROUTE_KIND_LEGACY, legacy[0])
    return None
