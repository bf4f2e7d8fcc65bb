"""Day sequencing optimizer.

Produces a new visiting order for the points of a single day:
- time: greedy nearest neighbour starting from the day's current first point
- distance: exhaustive search over all orderings for days of at most
  ``exhaustive_limit`` points (free starting point), nearest neighbour above that
- scenic: descending category weight + rating contribution
- rating: descending average rating

Only the order changes; the caller assigns the dense order_index values.
"""

import itertools
import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from route_planner.geo.distance import Metric, haversine_km, nearest
from route_planner.models.common import Geo, OptimizationMode

logger = logging.getLogger(__name__)

EXHAUSTIVE_LIMIT = 8

# (category keywords, weight); weights add up when several keywords match
SCENIC_WEIGHTS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("park", "garden"), 10),
    (("viewpoint", "panorama"), 8),
    (("museum", "gallery"), 5),
    (("historic", "monument"), 3),
)
RATING_FACTOR = 2.0


@dataclass(frozen=True)
class Stop:
    """Optimizer input: a point with its resolved catalog attributes."""

    point_id: uuid.UUID
    geo: Geo | None
    category: str | None = None
    rating: float | None = None


class Strategy(str, Enum):
    """Algorithm actually used for a day."""

    unchanged = "unchanged"
    nearest_neighbor = "nearest_neighbor"
    exhaustive = "exhaustive"
    scenic_sort = "scenic_sort"
    rating_sort = "rating_sort"


@dataclass
class SequenceResult:
    """Reordered stops plus the strategy that produced them."""

    stops: list[Stop]
    strategy: Strategy


class OptimizerMetrics:
    """Interface for optimizer metrics."""

    def record_run(self, mode: str, strategy: str, latency_ms: float) -> None:
        """Record one day optimization."""
        pass


def scenic_score(category: str | None, rating: float | None) -> float:
    """Heuristic attractiveness: parks/viewpoints > museums/galleries > historic sites."""
    score = 0.0
    kind = (category or "").lower()
    for keywords, weight in SCENIC_WEIGHTS:
        if any(k in kind for k in keywords):
            score += weight
    score += (rating or 0.0) * RATING_FACTOR
    return score


def coerce_mode(mode: OptimizationMode | str) -> OptimizationMode:
    """Parse a mode name, falling back to time for unknown values."""
    if isinstance(mode, OptimizationMode):
        return mode
    try:
        return OptimizationMode(mode)
    except ValueError:
        logger.warning("Unknown optimization mode: %s, using TIME optimization", mode)
        return OptimizationMode.time


class DaySequencer:
    """Reorders the stops of one day according to an optimization mode."""

    def __init__(
        self,
        metric: Metric = haversine_km,
        exhaustive_limit: int = EXHAUSTIVE_LIMIT,
        metrics: OptimizerMetrics | None = None,
    ) -> None:
        """Initialize sequencer.

        Args:
            metric: Distance function shared with route statistics
            exhaustive_limit: Largest day size solved by full permutation search
            metrics: Metrics recorder (optional, defaults to no-op)
        """
        self._metric = metric
        self._exhaustive_limit = exhaustive_limit
        self._metrics = metrics or OptimizerMetrics()

    def sequence(self, stops: Sequence[Stop], mode: OptimizationMode) -> SequenceResult:
        """Return a permutation of ``stops`` for the given mode."""
        start = time.monotonic()
        stops = list(stops)

        if len(stops) <= 1:
            result = SequenceResult(stops=stops, strategy=Strategy.unchanged)
        elif mode == OptimizationMode.scenic:
            ordered = sorted(stops, key=lambda s: scenic_score(s.category, s.rating), reverse=True)
            result = SequenceResult(stops=ordered, strategy=Strategy.scenic_sort)
        elif mode == OptimizationMode.rating:
            ordered = sorted(stops, key=lambda s: s.rating or 0.0, reverse=True)
            result = SequenceResult(stops=ordered, strategy=Strategy.rating_sort)
        else:
            result = self._sequence_by_path(stops, mode)

        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_run(mode.value, result.strategy.value, elapsed_ms)
        return result

    def _sequence_by_path(self, stops: list[Stop], mode: OptimizationMode) -> SequenceResult:
        # Stops without coordinates cannot be placed on a path; they keep their
        # relative order after the located ones.
        located = [s for s in stops if s.geo is not None]
        unlocated = [s for s in stops if s.geo is None]
        if unlocated:
            logger.warning(
                "Sequencing %d stop(s) without coordinates at the end of the day",
                len(unlocated),
            )

        if len(located) <= 1:
            return SequenceResult(stops=located + unlocated, strategy=Strategy.unchanged)

        # The size limit counts the whole day, located or not
        if mode == OptimizationMode.distance and len(stops) <= self._exhaustive_limit:
            return SequenceResult(
                stops=self._exhaustive(located) + unlocated, strategy=Strategy.exhaustive
            )

        return SequenceResult(
            stops=self._nearest_neighbor(located) + unlocated,
            strategy=Strategy.nearest_neighbor,
        )

    def _nearest_neighbor(self, stops: list[Stop]) -> list[Stop]:
        """Greedy tour from the first stop, O(n^2)."""
        remaining = list(stops)
        current = remaining.pop(0)
        ordered = [current]

        while remaining:
            # current.geo is never None here: only located stops reach this path
            found = nearest(current.geo, [s.geo for s in remaining], self._metric)  # type: ignore[arg-type]
            index = found[0] if found else 0
            current = remaining.pop(index)
            ordered.append(current)

        return ordered

    def _exhaustive(self, stops: list[Stop]) -> list[Stop]:
        """Shortest open path over every ordering; ties keep the first one found."""
        n = len(stops)
        matrix = [
            [self._metric(a.geo, b.geo) for b in stops]  # type: ignore[arg-type]
            for a in stops
        ]

        best_order: tuple[int, ...] = tuple(range(n))
        best_length = float("inf")

        for order in itertools.permutations(range(n)):
            length = 0.0
            for i in range(1, n):
                length += matrix[order[i - 1]][order[i]]
                if length >= best_length:
                    break
            else:
                best_length = length
                best_order = order

        return [stops[i] for i in best_order]
