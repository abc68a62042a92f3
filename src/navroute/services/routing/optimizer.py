"""Stop-order optimization for multi-stop delivery routes.

Computes a short visiting order for a handful of stops starting from an origin.
The tour is built with nearest-neighbor construction from every node (multi-restart)
and refined with 2-opt. The origin is always node 0 of the cost matrix and the tour
is always optimized as a closed cycle, whether or not the trip returns to the origin.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate, StopOrderRequest
from ..geospatial import distance_meters

logger = logging.getLogger(__name__)

# Minimum gain (meters) for a 2-opt move or a restart to count as an improvement.
IMPROVEMENT_EPSILON = 1e-6


def build_cost_matrix(points: Sequence[Coordinate]) -> list[list[float]]:
    """Symmetric great-circle distance matrix in meters."""
    n = len(points)
    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            cost = distance_meters(points[i], points[j])
            matrix[i][j] = cost
            matrix[j][i] = cost
    return matrix


def tour_length(tour: Sequence[int], matrix: Sequence[Sequence[float]]) -> float:
    """Length of the tour treated as a cycle."""
    count = len(tour)
    if count < 2:
        return 0.0
    return sum(matrix[tour[k]][tour[(k + 1) % count]] for k in range(count))


def nearest_neighbor_tour(start: int, matrix: Sequence[Sequence[float]]) -> list[int]:
    """Greedy tour from ``start``; ties go to the lowest node index."""
    n = len(matrix)
    visited = [False] * n
    visited[start] = True
    tour = [start]
    current = start
    for _ in range(n - 1):
        best_node = -1
        best_cost = 0.0
        for candidate in range(n):
            if visited[candidate]:
                continue
            cost = matrix[current][candidate]
            if best_node < 0 or cost < best_cost:
                best_node = candidate
                best_cost = cost
        visited[best_node] = True
        tour.append(best_node)
        current = best_node
    return tour


def two_opt(
    tour: Sequence[int],
    matrix: Sequence[Sequence[float]],
    max_passes: int | None = None,
) -> list[int]:
    """Improve a cyclic tour by segment reversals until no move shortens it.

    Position 0 stays fixed; for a cycle this loses no generality. Each candidate
    reversal of ``tour[i..j]`` is scored by the change of its two boundary edges.
    """
    best = list(tour)
    count = len(best)
    if count < 4:
        return best
    limit = max_passes if max_passes is not None else settings.two_opt_max_passes

    passes = 0
    improved = True
    while improved and passes < limit:
        improved = False
        passes += 1
        for i in range(1, count - 1):
            # Reversing everything after position 0 only flips the cycle's direction.
            upper = count if i > 1 else count - 1
            for j in range(i + 1, upper):
                a, b = best[i - 1], best[i]
                c, d = best[j], best[(j + 1) % count]
                delta = matrix[a][c] + matrix[b][d] - matrix[a][b] - matrix[c][d]
                if delta < -IMPROVEMENT_EPSILON:
                    best[i : j + 1] = reversed(best[i : j + 1])
                    improved = True
    if improved:
        logger.warning(f"2-opt stopped at the pass limit ({limit}) before converging on {count} nodes")
    return best


def _rotate_to_origin(tour: Sequence[int]) -> list[int]:
    pivot = list(tour).index(0)
    return list(tour[pivot:]) + list(tour[:pivot])


def optimize_order(request: StopOrderRequest) -> list[int]:
    """Return indices into ``request.stops`` in the order they should be visited.

    Stops are never validated here; NaN or out-of-range coordinates give an arbitrary
    (but still complete) permutation.
    """
    stop_count = len(request.stops)
    if stop_count == 0:
        return []
    if stop_count == 1:
        return [0]

    points = [request.origin, *(stop.coordinate for stop in request.stops)]
    matrix = build_cost_matrix(points)

    best_tour: list[int] | None = None
    best_length = 0.0
    for start in range(len(points)):
        tour = two_opt(nearest_neighbor_tour(start, matrix), matrix)
        length = tour_length(tour, matrix)
        if best_tour is None or length < best_length - IMPROVEMENT_EPSILON:
            best_tour = tour
            best_length = length

    ordered = _rotate_to_origin(best_tour)
    logger.debug(f"Optimized {stop_count} stops, closed tour length {best_length:.1f} m")
    return [node - 1 for node in ordered[1:]]
