"""
Hex Geometry.

Axial-coordinate math for the hex battlefield: distance, neighbors,
range enumeration and direction snapping. Pixel projection and rounding
are only used by the rendering side and carry no gameplay meaning.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple
import math

HEX_SIZE = 40


@dataclass(frozen=True)
class Hex:
    """An axial hex coordinate. Cube form is (q, r, s) with s = -q - r."""
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    @property
    def key(self) -> str:
        """Canonical "q,r" identity used for set/map membership."""
        return f"{self.q},{self.r}"

    @classmethod
    def from_key(cls, key: str) -> "Hex":
        q, r = key.split(",")
        return cls(int(q), int(r))

    def to_dict(self) -> Dict[str, int]:
        return {"q": self.q, "r": self.r}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "Hex":
        return cls(int(data["q"]), int(data["r"]))

    def __add__(self, other: "Hex") -> "Hex":
        return Hex(self.q + other.q, self.r + other.r)

    def __sub__(self, other: "Hex") -> "Hex":
        return Hex(self.q - other.q, self.r - other.r)


# Fixed direction table, index order matters for tie-breaking
DIRECTIONS: Tuple[Hex, ...] = (
    Hex(1, 0), Hex(1, -1), Hex(0, -1),
    Hex(-1, 0), Hex(-1, 1), Hex(0, 1),
)


def to_cube(hex_: Hex) -> Tuple[int, int, int]:
    """Convert axial to cube coordinates."""
    return hex_.q, hex_.r, hex_.s


def distance(a: Hex, b: Hex) -> int:
    """Number of hex steps between two hexes."""
    aq, ar, as_ = to_cube(a)
    bq, br, bs = to_cube(b)
    return (abs(aq - bq) + abs(ar - br) + abs(as_ - bs)) // 2


def neighbors(hex_: Hex) -> List[Hex]:
    """The six adjacent hexes, in direction-table order."""
    return [hex_ + d for d in DIRECTIONS]


def add(hex_: Hex, direction: Hex) -> Hex:
    return hex_ + direction


def hexes_in_range(center: Hex, radius: int) -> List[Hex]:
    """
    Every hex within `radius` steps of `center`, center included.

    No occlusion is considered: walls and units do not block range.
    """
    results = []
    for dq in range(-radius, radius + 1):
        for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
            results.append(Hex(center.q + dq, center.r + dr))
    return results


def direction_toward(origin: Hex, target: Hex) -> Hex:
    """
    Snap the vector origin -> target to one of the six hex directions.

    Picks the direction with the largest dot product; the first direction
    in table order wins ties.
    """
    dq = target.q - origin.q
    dr = target.r - origin.r

    best_dir = DIRECTIONS[0]
    best_dot = -math.inf
    for d in DIRECTIONS:
        dot = dq * d.q + dr * d.r
        if dot > best_dot:
            best_dot = dot
            best_dir = d
    return best_dir


# =============================================================================
# Rendering helpers
# =============================================================================

def to_pixel(hex_: Hex, size: float = HEX_SIZE) -> Tuple[float, float]:
    """Flat-top hex center in pixel space."""
    x = size * (3 / 2 * hex_.q)
    y = size * (math.sqrt(3) / 2 * hex_.q + math.sqrt(3) * hex_.r)
    return x, y


def hex_round(q: float, r: float) -> Hex:
    """Round fractional axial coordinates to the nearest hex."""
    s = -q - r
    rq = round(q)
    rr = round(r)
    rs = round(s)

    q_diff = abs(rq - q)
    r_diff = abs(rr - r)
    s_diff = abs(rs - s)

    if q_diff > r_diff and q_diff > s_diff:
        rq = -rr - rs
    elif r_diff > s_diff:
        rr = -rq - rs

    return Hex(int(rq), int(rr))


def from_pixel(x: float, y: float, size: float = HEX_SIZE) -> Hex:
    """Pixel position to the hex containing it."""
    q = (2 / 3 * x) / size
    r = (-1 / 3 * x + math.sqrt(3) / 3 * y) / size
    return hex_round(q, r)


def polygon_points(hex_: Hex, size: float = HEX_SIZE) -> str:
    """SVG polygon points string for a hex."""
    x, y = to_pixel(hex_, size)
    points = []
    for i in range(6):
        angle = math.pi / 3 * i
        points.append(f"{x + size * math.cos(angle)},{y + size * math.sin(angle)}")
    return " ".join(points)
