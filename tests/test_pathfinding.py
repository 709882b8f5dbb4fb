"""Tests for A* pathfinding and reachability."""
from hextactics.core.hex_math import Hex, distance, neighbors
from hextactics.core.pathfinding import find_path, get_reachable_hexes, get_targets_in_range


def open_grid(width=5, height=5, blocked=()):
    blocked = set(blocked)

    def is_walkable(h: Hex) -> bool:
        return 0 <= h.q < width and 0 <= h.r < height and h not in blocked

    return is_walkable


class TestFindPath:
    """Tests for A*."""

    def test_start_equals_goal(self):
        """Already there: the path is just the start."""
        assert find_path(Hex(1, 1), Hex(1, 1), open_grid()) == [Hex(1, 1)]

    def test_straight_path(self):
        """Shortest path has distance + 1 hexes, each one step apart."""
        path = find_path(Hex(0, 0), Hex(3, 0), open_grid())
        assert path[0] == Hex(0, 0)
        assert path[-1] == Hex(3, 0)
        assert len(path) == 4
        for a, b in zip(path, path[1:]):
            assert distance(a, b) == 1

    def test_walled_goal(self):
        """A goal that cannot be entered has no path."""
        assert find_path(Hex(0, 0), Hex(3, 0), open_grid(blocked=[Hex(3, 0)])) == []

    def test_out_of_bounds_goal(self):
        assert find_path(Hex(0, 0), Hex(9, 9), open_grid()) == []

    def test_enclosed_goal(self):
        """A goal fully ringed by walls is unreachable."""
        goal = Hex(2, 2)
        assert find_path(Hex(0, 0), goal, open_grid(blocked=neighbors(goal))) == []

    def test_detours_around_wall(self):
        """A wall on the direct line lengthens the path but never blocks it."""
        path = find_path(Hex(0, 2), Hex(4, 2), open_grid(blocked=[Hex(2, 2)]))
        assert path
        assert Hex(2, 2) not in path
        assert len(path) == 6


class TestReachableHexes:
    """Tests for BFS movement ranges."""

    def test_zero_range_is_empty(self):
        assert get_reachable_hexes(Hex(2, 2), 0, open_grid()) == []

    def test_range_one(self):
        reachable = get_reachable_hexes(Hex(2, 2), 1, open_grid())
        assert len(reachable) == 6
        assert all(r.distance == 1 for r in reachable)

    def test_range_two_excludes_start(self):
        reachable = get_reachable_hexes(Hex(2, 2), 2, open_grid())
        hexes = [r.hex for r in reachable]
        assert len(hexes) == 18
        assert Hex(2, 2) not in hexes
        assert all(r.distance <= 2 for r in reachable)

    def test_blocked_hexes_excluded(self):
        reachable = get_reachable_hexes(Hex(2, 2), 1, open_grid(blocked=[Hex(3, 2)]))
        hexes = [r.hex for r in reachable]
        assert Hex(3, 2) not in hexes
        assert len(hexes) == 5

    def test_distance_counts_detour(self):
        """Hexes behind a wall report walked steps, not straight-line distance."""
        is_walkable = open_grid(blocked=[Hex(1, 2), Hex(1, 1)])
        reachable = {r.hex: r.distance for r in get_reachable_hexes(Hex(0, 2), 3, is_walkable)}
        assert distance(Hex(0, 2), Hex(2, 2)) == 2
        assert reachable[Hex(2, 2)] == 3
        assert Hex(1, 2) not in reachable

    def test_nearest_first(self):
        reachable = get_reachable_hexes(Hex(2, 2), 2, open_grid())
        distances = [r.distance for r in reachable]
        assert distances == sorted(distances)


class TestTargetsInRange:
    """Tests for target scans."""

    def test_excludes_start(self):
        hexes = get_targets_in_range(Hex(0, 0), 1)
        assert Hex(0, 0) not in hexes
        assert len(hexes) == 6

    def test_filters_by_predicate(self):
        occupied = {Hex(2, 0), Hex(5, 5)}
        hexes = get_targets_in_range(Hex(0, 0), 2, lambda h: h in occupied)
        assert hexes == [Hex(2, 0)]
