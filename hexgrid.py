"""
Grid coordinate math for Hexfront.

Pointy-top hexagons in axial coordinates (q, r) with the implied third cube
coordinate s = -q - r. A square-grid variant (Manhattan distance, four
neighbors) is provided for maps generated with layout="square"; the rest of
the engine goes through distance() and neighbors() so it never needs to know
which layout it is on.
"""

import math
from typing import List, Tuple

Position = Tuple[int, int]

HEX_SIZE = 34  # Pixel radius of one hex (center to corner)

# 6 directions: E, NE, NW, W, SW, SE
HEX_DIRECTIONS = [(1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1)]
SQUARE_DIRECTIONS = [(1, 0), (0, -1), (-1, 0), (0, 1)]


def hex_to_pixel(q: int, r: int, origin: Tuple[float, float] = (0.0, 0.0),
                 size: float = HEX_SIZE) -> Tuple[float, float]:
    """
    Convert axial coordinates to the pixel center of a pointy-top hex.

    Args:
        q, r: Axial coordinates
        origin: Pixel position of hex (0, 0)
        size: Hex radius in pixels

    Returns:
        (x, y) pixel coordinates
    """
    x = origin[0] + size * math.sqrt(3) * (q + r / 2)
    y = origin[1] + size * 3 / 2 * r
    return (x, y)


def pixel_to_hex(x: float, y: float, origin: Tuple[float, float] = (0.0, 0.0),
                 size: float = HEX_SIZE) -> Position:
    """
    Convert a pixel position to the axial coordinates of the hex containing it.

    Args:
        x, y: Pixel coordinates
        origin: Pixel position of hex (0, 0)
        size: Hex radius in pixels

    Returns:
        (q, r) of the containing hex
    """
    px = x - origin[0]
    py = y - origin[1]
    fq = (math.sqrt(3) / 3 * px - 1 / 3 * py) / size
    fr = (2 / 3 * py) / size
    return hex_round(fq, fr)


def _round_half_up(value: float) -> int:
    # Half up, not round()'s half-to-even: x.5 always goes toward +inf.
    return int(math.floor(value + 0.5))


def hex_round(fq: float, fr: float) -> Position:
    """
    Round fractional axial coordinates to the nearest hex.

    Each cube coordinate is rounded independently, then the one with the
    largest rounding error is rebuilt from the other two so that
    q + r + s == 0 still holds.

    Args:
        fq, fr: Fractional axial coordinates

    Returns:
        (q, r) of the nearest hex
    """
    fs = -fq - fr
    rq = _round_half_up(fq)
    rr = _round_half_up(fr)
    rs = _round_half_up(fs)

    q_diff = abs(rq - fq)
    r_diff = abs(rr - fr)
    s_diff = abs(rs - fs)

    if q_diff > r_diff and q_diff > s_diff:
        rq = -rr - rs
    elif r_diff > s_diff:
        rr = -rq - rs

    return (rq, rr)


def hex_distance(q1: int, r1: int, q2: int, r2: int) -> int:
    """
    Calculate distance between two hexes using axial coordinates.

    Args:
        q1, r1: Coordinates of first hex
        q2, r2: Coordinates of second hex

    Returns:
        Number of hex steps between them
    """
    dq = q1 - q2
    dr = r1 - r2
    return (abs(dq) + abs(dq + dr) + abs(dr)) // 2


def get_hex_neighbors(q: int, r: int) -> List[Position]:
    """Get the 6 neighboring hex coordinates (unbounded)."""
    return [(q + dq, r + dr) for dq, dr in HEX_DIRECTIONS]


def hexes_within(center: Position, radius: int) -> List[Position]:
    """All hexes at distance <= radius from center, center included."""
    cq, cr = center
    result = []
    for dq in range(-radius, radius + 1):
        for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
            result.append((cq + dq, cr + dr))
    return result


def square_distance(x1: int, y1: int, x2: int, y2: int) -> int:
    """Manhattan distance on a square grid."""
    return abs(x1 - x2) + abs(y1 - y2)


def get_square_neighbors(x: int, y: int) -> List[Position]:
    """Get the 4 orthogonal neighbors on a square grid (unbounded)."""
    return [(x + dx, y + dy) for dx, dy in SQUARE_DIRECTIONS]


def squares_within(center: Position, radius: int) -> List[Position]:
    """All squares at Manhattan distance <= radius from center."""
    cx, cy = center
    result = []
    for dx in range(-radius, radius + 1):
        span = radius - abs(dx)
        for dy in range(-span, span + 1):
            result.append((cx + dx, cy + dy))
    return result


def distance(layout: str, a: Position, b: Position) -> int:
    """Grid distance between two positions for the given layout."""
    if layout == 'square':
        return square_distance(a[0], a[1], b[0], b[1])
    return hex_distance(a[0], a[1], b[0], b[1])


def neighbors(layout: str, pos: Position) -> List[Position]:
    """Adjacent positions for the given layout (not bounds-checked)."""
    if layout == 'square':
        return get_square_neighbors(pos[0], pos[1])
    return get_hex_neighbors(pos[0], pos[1])


def within(layout: str, center: Position, radius: int) -> List[Position]:
    """All positions within radius of center for the given layout."""
    if layout == 'square':
        return squares_within(center, radius)
    return hexes_within(center, radius)
