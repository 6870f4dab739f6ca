from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from zombidef.schemas import AttackOrder, Coordinate
from zombidef.services.snapshot import EnemyStructure, FriendlyStructure, GameStateSnapshot, Zombie
from zombidef.services.threat import THREAT_HORIZON, threatens

T = TypeVar("T", Zombie, EnemyStructure)


@dataclass
class Target(Generic[T]):
    """A live enemy unit plus the health we expect it to have after this turn's shots."""
    unit: T
    health: int

    @property
    def pos(self) -> Coordinate:
        return self.unit.pos

    def is_alive(self) -> bool:
        return self.health > 0


def _weakest(targets: Iterable[Target], pred: Callable[[Target], bool]) -> Optional[Target]:
    best: Optional[Target] = None
    for t in targets:
        if not t.is_alive() or not pred(t):
            continue
        # strict < keeps the first of equal-health targets
        if best is None or t.health < best.health:
            best = t
    return best


def pick_target(base: FriendlyStructure, zombies: List[Target[Zombie]], enemies: List[Target[EnemyStructure]],
                threatening: set[str]) -> Optional[Target]:
    """Priority: threatening zombie, enemy block, bomber, any zombie. Weakest in range wins."""
    in_range = lambda t: base.in_range(t.pos)
    return (
        _weakest(zombies, lambda t: in_range(t) and t.unit.id in threatening)
        or _weakest(enemies, in_range)
        or _weakest(zombies, lambda t: in_range(t) and t.unit.is_bomber())
        or _weakest(zombies, in_range)
    )


def select_targets(snap: GameStateSnapshot, horizon: int = THREAT_HORIZON) -> List[AttackOrder]:
    """At most one attack order per living structure.

    Damage is subtracted from a per-call working copy so later structures skip
    targets that are already expected to die. The snapshot itself is untouched.
    """
    zombies = [Target(z, z.health) for z in snap.zombies]
    enemies = [Target(e, e.health) for e in snap.enemies]
    threatening = {z.id for z in snap.zombies if threatens(z, snap.structure_at, horizon)}

    orders: List[AttackOrder] = []
    for base in snap.structures:
        if not base.is_alive():
            continue
        target = pick_target(base, zombies, enemies, threatening)
        if target is None:
            continue
        orders.append(AttackOrder(block_id=base.id, target=target.pos))
        target.health -= base.attack
    return orders
