"""
Pathfinding System.

A* shortest paths and breadth-first reachability over the hex grid.
Walkability is supplied by the caller as a predicate; every step costs 1.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set
import heapq
import itertools

from hextactics.core.hex_math import Hex, distance, neighbors, hexes_in_range

WalkablePredicate = Callable[[Hex], bool]


@dataclass
class ReachableHex:
    """A hex reachable within a move allowance and its step distance."""
    hex: Hex
    distance: int

    def to_dict(self) -> Dict:
        return {"hex": self.hex.to_dict(), "distance": self.distance}


@dataclass(order=True)
class PathNode:
    """An entry in the A* open set, ordered by f cost then discovery order."""
    f_cost: int
    sequence: int
    hex: Hex = field(compare=False)


def find_path(start: Hex, goal: Hex, is_walkable: WalkablePredicate) -> List[Hex]:
    """
    Find a shortest path from start to goal using A*.

    Args:
        start: Starting hex (never tested for walkability)
        goal: Destination hex
        is_walkable: Predicate for hexes that may be entered

    Returns:
        The path including both ends, [start] if already there,
        or [] if the goal is not walkable or cannot be reached.
    """
    if start == goal:
        return [start]
    if not is_walkable(goal):
        return []

    counter = itertools.count()
    open_heap: List[PathNode] = [PathNode(distance(start, goal), next(counter), start)]
    came_from: Dict[Hex, Hex] = {}
    g_score: Dict[Hex, int] = {start: 0}
    closed: Set[Hex] = set()

    while open_heap:
        current = heapq.heappop(open_heap).hex

        if current == goal:
            return _reconstruct_path(came_from, current)

        if current in closed:
            continue
        closed.add(current)

        for neighbor in neighbors(current):
            if neighbor in closed or not is_walkable(neighbor):
                continue

            tentative_g = g_score[current] + 1
            if tentative_g < g_score.get(neighbor, tentative_g + 1):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                f_cost = tentative_g + distance(neighbor, goal)
                heapq.heappush(open_heap, PathNode(f_cost, next(counter), neighbor))

    return []


def _reconstruct_path(came_from: Dict[Hex, Hex], current: Hex) -> List[Hex]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def get_reachable_hexes(
    start: Hex,
    move_range: int,
    is_walkable: WalkablePredicate
) -> List[ReachableHex]:
    """
    Get all hexes reachable within `move_range` steps using BFS.

    The start hex is excluded. Results come in BFS order (nearest first).
    """
    visited: Set[Hex] = {start}
    queue = deque([(start, 0)])
    reachable: List[ReachableHex] = []

    while queue:
        hex_, steps = queue.popleft()

        if steps > 0:
            reachable.append(ReachableHex(hex=hex_, distance=steps))

        if steps < move_range:
            for neighbor in neighbors(hex_):
                if neighbor not in visited and is_walkable(neighbor):
                    visited.add(neighbor)
                    queue.append((neighbor, steps + 1))

    return reachable


def get_targets_in_range(
    start: Hex,
    attack_range: int,
    has_target: Optional[WalkablePredicate] = None
) -> List[Hex]:
    """
    Get hexes within range (start excluded) that hold a valid target.

    Line of sight is not considered.
    """
    return [
        hex_ for hex_ in hexes_in_range(start, attack_range)
        if hex_ != start and (has_target is None or has_target(hex_))
    ]
