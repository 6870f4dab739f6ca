from typing import List

from zombidef.schemas import Coordinate
from zombidef.services.snapshot import GameStateSnapshot

# sparse grid is relaxed before EARLY_TURNS, from LATE_TURNS on, and for small colonies
EARLY_TURNS = 15
LATE_TURNS = 100
SMALL_COLONY = 10


def in_sparse_grid(pos: Coordinate, turn: int, structure_count: int) -> bool:
    return (
        (turn < LATE_TURNS and pos.x % 2 == 0 and pos.y % 2 == 0)
        or turn >= LATE_TURNS
        or turn < EARLY_TURNS
        or structure_count < SMALL_COLONY
    )


def can_build_at(snap: GameStateSnapshot, pos: Coordinate, *, sparse: bool) -> bool:
    if not pos.is_valid():
        return False
    if sparse and not in_sparse_grid(pos, snap.turn, len(snap.structures)):
        return False
    if pos in snap.terrain or pos in snap.zombie_cells or pos in snap.structure_at:
        return False
    if any(n in snap.enemy_cells for n in pos.neighbors()):
        return False
    if any(n in snap.terrain for n in pos.neighbors()):
        return False
    if any(n in snap.enemy_cells for n in pos.diagonal_neighbors()):
        return False
    return True


def find_places_to_build(snap: GameStateSnapshot, *, sparse: bool) -> List[Coordinate]:
    """Free 4-neighbours of the colony, nearest to the head first (stable)."""
    head = snap.head
    if head is None:
        return []
    places = [
        n
        for s in snap.structures
        for n in s.pos.neighbors()
        if can_build_at(snap, n, sparse=sparse)
    ]
    places.sort(key=head.pos.distance2)
    return places


def plan_build_places(snap: GameStateSnapshot) -> List[Coordinate]:
    """Union of the sparse and dense passes, nearest to the head first.

    Duplicates keep their first occurrence, so on equal distance a sparse-grid
    cell comes before a dense-only one.
    """
    head = snap.head
    if head is None:
        return []
    pool = find_places_to_build(snap, sparse=True) + find_places_to_build(snap, sparse=False)
    places = list(dict.fromkeys(pool))
    places.sort(key=head.pos.distance2)
    return places
