"""
Map generation module for Hexfront.

Builds a hexagon-shaped map of axial hexes (or a square board for the
square layout), assigns clustered terrain from Perlin noise so that the
overall mix matches the terrain weights, and picks starting city positions
on a single connected landmass.
"""

import random
import sys
from collections import deque
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
from noise import pnoise2

import hexgrid
from models import TERRAIN, Tile

Position = Tuple[int, int]

# Cumulative share of the map per terrain, lowest noise first.
# Water 8%, Plains 37%, Rainforest 25%, Tundra 22%, Mountain 8%.
TERRAIN_BANDS: List[Tuple[float, str]] = [
    (0.08, 'water'),
    (0.45, 'plains'),
    (0.70, 'rainforest'),
    (0.92, 'tundra'),
    (1.00, 'mountain'),
]

MIN_START_SEPARATION = 5
MIN_CONNECTED_SHARE = 0.6  # Largest passable region must hold this share of passable tiles


def map_positions(radius: int, layout: str = 'hex') -> List[Position]:
    """
    All positions of a map of the given radius.

    Args:
        radius: Hex radius (hex layout) or half-width (square layout)
        layout: 'hex' or 'square'

    Returns:
        List of (q, r) positions
    """
    if layout == 'square':
        return [(x, y) for x in range(-radius, radius + 1) for y in range(-radius, radius + 1)]
    return hexgrid.hexes_within((0, 0), radius)


def assign_terrain(positions: List[Position], seed: int, frequency: float = 3.7) -> Dict[Position, str]:
    """
    Assign terrain keys by ranking Perlin noise across the map.

    Args:
        positions: Map positions
        seed: Random seed for the noise offset and base
        frequency: Noise frequency (lower = larger clusters)

    Returns:
        Dictionary mapping position to terrain key
    """
    rng = random.Random(seed)
    off_x = rng.uniform(0, 100)
    off_y = rng.uniform(0, 100)

    values = np.array([
        pnoise2(q / frequency + off_x, r / frequency + off_y, octaves=2,
                persistence=0.6, lacunarity=2.5, base=seed % 1024)
        for q, r in positions
    ])

    # Rank-based thresholds keep the terrain mix stable regardless of noise amplitude
    cutoffs = np.quantile(values, [band for band, _ in TERRAIN_BANDS[:-1]])
    band_index = np.digitize(values, cutoffs)

    return {pos: TERRAIN_BANDS[int(i)][1] for pos, i in zip(positions, band_index)}


def passable_regions(tiles: Dict[Position, Tile], layout: str = 'hex') -> List[Set[Position]]:
    """
    Split passable tiles into connected regions, largest first.

    Args:
        tiles: Map data
        layout: 'hex' or 'square'

    Returns:
        List of position sets
    """
    seen: Set[Position] = set()
    regions: List[Set[Position]] = []
    for start, tile in tiles.items():
        if start in seen or tile.terrain.impassable:
            continue
        region = {start}
        queue = deque([start])
        seen.add(start)
        while queue:
            current = queue.popleft()
            for n in hexgrid.neighbors(layout, current):
                if n in seen or n not in tiles or tiles[n].terrain.impassable:
                    continue
                seen.add(n)
                region.add(n)
                queue.append(n)
        regions.append(region)
    regions.sort(key=len, reverse=True)
    return regions


def validate_map(tiles: Dict[Position, Tile], starts: int, layout: str = 'hex') -> bool:
    """
    Check that the largest passable region can host every starting city.

    Args:
        tiles: Map data
        starts: Number of factions that need a start position
        layout: 'hex' or 'square'

    Returns:
        True if the map is playable
    """
    regions = passable_regions(tiles, layout)
    if not regions:
        return False
    total_passable = sum(len(r) for r in regions)
    largest = regions[0]
    if len(largest) < MIN_CONNECTED_SHARE * total_passable:
        return False
    return len(largest) >= starts * 4


def generate_map(seed: int, radius: int = 5, layout: str = 'hex', starts: int = 2,
                 max_attempts: int = 10) -> Dict[Position, Tile]:
    """
    Generate a procedural map for Hexfront.

    Args:
        seed: Random seed for reproducible generation
        radius: Map radius
        layout: 'hex' or 'square'
        starts: Number of starting cities the map must support
        max_attempts: Regeneration attempts before accepting the last map

    Returns:
        Dictionary mapping (q, r) coordinates to Tile objects
    """
    positions = map_positions(radius, layout)
    tiles: Dict[Position, Tile] = {}

    for attempt in range(max_attempts):
        attempt_seed = seed + attempt
        rng = random.Random(attempt_seed)
        terrain_keys = assign_terrain(positions, attempt_seed)
        tiles = {
            pos: Tile(q=pos[0], r=pos[1], terrain=TERRAIN[terrain_keys[pos]], seed=rng.random() * 1000)
            for pos in positions
        }
        if validate_map(tiles, starts, layout):
            return tiles

    print(f"Warning: map for seed {seed} failed validation after {max_attempts} attempts, "
          f"using last attempt")
    return tiles


def choose_start_positions(tiles: Dict[Position, Tile], count: int, rng: random.Random,
                           layout: str = 'hex') -> List[Position]:
    """
    Pick starting city positions on the largest connected landmass.

    The player (first position) starts in the southern part of the map; each
    AI faction starts as far north as possible while keeping at least
    MIN_START_SEPARATION from every earlier start, relaxing the separation
    when the map is too cramped.

    Args:
        tiles: Map data
        count: Number of positions to choose
        rng: Random source
        layout: 'hex' or 'square'

    Returns:
        List of positions, player first
    """
    regions = passable_regions(tiles, layout)
    if not regions:
        raise ValueError("Map has no passable tiles")
    land = sorted(regions[0])

    starts: List[Position] = []
    southern = [p for p in land if p[1] > 1] or land
    starts.append(rng.choice(southern))

    for _ in range(1, count):
        choice: Optional[Position] = None
        for separation in range(MIN_START_SEPARATION, -1, -1):
            candidates = [
                p for p in land
                if p not in starts
                and all(hexgrid.distance(layout, p, s) >= separation for s in starts)
            ]
            if not candidates:
                continue
            northern = [p for p in candidates if p[1] < -1]
            choice = rng.choice(northern or candidates)
            break
        if choice is None:
            raise ValueError(f"Map cannot host {count} starting cities")
        starts.append(choice)

    return starts


def print_map_stats(tiles: Dict[Position, Tile]) -> None:
    """
    Print terrain statistics about a generated map.

    Args:
        tiles: Generated map data
    """
    terrain_counts: Dict[str, int] = {}
    for tile in tiles.values():
        terrain_counts[tile.terrain.label] = terrain_counts.get(tile.terrain.label, 0) + 1

    print("\n" + "=" * 40)
    print("MAP STATISTICS")
    print("=" * 40)
    print(f"Total tiles: {len(tiles)}")
    print("-" * 30)
    for label, count in sorted(terrain_counts.items()):
        percentage = (count / len(tiles)) * 100
        print(f"{label:12}: {count:3d} tiles ({percentage:5.1f}%)")
    print("=" * 40)


if __name__ == "__main__":
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 42
    print_map_stats(generate_map(seed))
