from typing import Container

from zombidef.schemas import DIRECTIONS, ZERO, Coordinate
from zombidef.services.snapshot import Zombie

THREAT_HORIZON = 30


def step_of(direction: str) -> Coordinate:
    """Unit step for a direction tag. Unknown tags do not move."""
    return DIRECTIONS.get(direction, ZERO)


def threatens(zombie: Zombie, occupied: Container[Coordinate], horizon: int = THREAT_HORIZON) -> bool:
    """True if walking straight on, the zombie lands on an occupied cell within `horizon` steps.

    A zombie with an unknown direction never leaves its cell, so it only matches
    a structure standing on that cell.
    """
    step = step_of(zombie.direction)
    pos = zombie.pos
    for _ in range(horizon):
        pos = pos + step
        if pos in occupied:
            return True
    return False
