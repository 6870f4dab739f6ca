"""Per-turn view of the world.

A snapshot is built once from the static terrain and one `units` response and
is never mutated afterwards. Lookups that the planners need repeatedly
(occupied cells, coordinate -> structure) are computed at construction.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

from zombidef.schemas import (
    BLOCK_MAX_HP,
    BOMBER_TYPE,
    HEAD_MAX_HP,
    BaseBlock,
    Coordinate,
    EnemyBlock,
    Player,
    UnitsPayload,
    WorldState,
    ZombieUnit,
)


class StructureKind(Enum):
    HEAD = "head"
    BLOCK = "block"

    @property
    def max_health(self) -> int:
        return HEAD_MAX_HP if self is StructureKind.HEAD else BLOCK_MAX_HP

    @staticmethod
    def of(is_head: bool) -> 'StructureKind':
        return StructureKind.HEAD if is_head else StructureKind.BLOCK


@dataclass(frozen=True)
class TerrainCell:
    pos: Coordinate
    type: str


@dataclass(frozen=True)
class StaticTerrain:
    realm_name: str = ""
    cells: tuple[TerrainCell, ...] = ()
    by_pos: Mapping[Coordinate, TerrainCell] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "by_pos", {c.pos: c for c in self.cells})

    @staticmethod
    def from_world(world: WorldState) -> 'StaticTerrain':
        cells = tuple(TerrainCell(pos=Coordinate(x=z.x, y=z.y), type=z.type) for z in world.zpots)
        return StaticTerrain(realm_name=world.realm_name, cells=cells)

    def __contains__(self, pos: Coordinate) -> bool:
        return pos in self.by_pos

    def __len__(self) -> int:
        return len(self.cells)


@dataclass(frozen=True)
class FriendlyStructure:
    id: str
    pos: Coordinate
    attack: int
    health: int
    range: int
    kind: StructureKind = StructureKind.BLOCK
    last_attack: Optional[Coordinate] = None

    @property
    def is_head(self) -> bool:
        return self.kind is StructureKind.HEAD

    @property
    def max_health(self) -> int:
        return self.kind.max_health

    def is_alive(self) -> bool:
        return self.health > 0

    def in_range(self, pos: Coordinate) -> bool:
        return self.pos.distance2(pos) <= self.range * self.range

    @staticmethod
    def from_wire(b: BaseBlock) -> 'FriendlyStructure':
        return FriendlyStructure(
            id=b.id,
            pos=Coordinate(x=b.x, y=b.y),
            attack=b.attack,
            health=b.health,
            range=b.range,
            kind=StructureKind.of(b.is_head),
            last_attack=b.last_attack,
        )


@dataclass(frozen=True)
class EnemyStructure:
    pos: Coordinate
    attack: int
    health: int
    kind: StructureKind = StructureKind.BLOCK

    @property
    def max_health(self) -> int:
        return self.kind.max_health

    @staticmethod
    def from_wire(b: EnemyBlock) -> 'EnemyStructure':
        return EnemyStructure(
            pos=Coordinate(x=b.x, y=b.y),
            attack=b.attack,
            health=b.health,
            kind=StructureKind.of(b.is_head),
        )


@dataclass(frozen=True)
class Zombie:
    id: str
    pos: Coordinate
    attack: int
    health: int
    speed: int = 1
    direction: str = ""
    type: str = "normal"
    wait_turns: int = 0

    def is_bomber(self) -> bool:
        return self.type == BOMBER_TYPE

    @staticmethod
    def from_wire(z: ZombieUnit) -> 'Zombie':
        return Zombie(
            id=z.id,
            pos=Coordinate(x=z.x, y=z.y),
            attack=z.attack,
            health=z.health,
            speed=z.speed,
            direction=z.direction,
            type=z.type,
            wait_turns=z.wait_turns,
        )


@dataclass(frozen=True)
class TurnContext:
    turn: int
    turn_ends_in_ms: int
    player: Player = field(default_factory=Player)
    realm_name: str = ""
    fetched_at: float = 0.0

    @property
    def gold(self) -> int:
        return self.player.gold

    @property
    def deadline(self) -> float:
        """Monotonic time (seconds) at which the turn ends."""
        return self.fetched_at + self.turn_ends_in_ms / 1000.0


@dataclass(frozen=True)
class GameStateSnapshot:
    context: TurnContext
    terrain: StaticTerrain
    structures: tuple[FriendlyStructure, ...] = ()
    enemies: tuple[EnemyStructure, ...] = ()
    zombies: tuple[Zombie, ...] = ()
    # derived
    structure_at: Mapping[Coordinate, FriendlyStructure] = field(init=False, repr=False, compare=False)
    structure_by_id: Mapping[str, FriendlyStructure] = field(init=False, repr=False, compare=False)
    enemy_cells: frozenset[Coordinate] = field(init=False, repr=False, compare=False)
    zombie_cells: frozenset[Coordinate] = field(init=False, repr=False, compare=False)
    head: Optional[FriendlyStructure] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "structure_at", {s.pos: s for s in self.structures})
        object.__setattr__(self, "structure_by_id", {s.id: s for s in self.structures})
        object.__setattr__(self, "enemy_cells", frozenset(e.pos for e in self.enemies))
        object.__setattr__(self, "zombie_cells", frozenset(z.pos for z in self.zombies))
        object.__setattr__(self, "head", next((s for s in self.structures if s.is_head), None))

    @staticmethod
    def build(terrain: StaticTerrain, units: UnitsPayload, fetched_at: float = 0.0) -> 'GameStateSnapshot':
        ctx = TurnContext(
            turn=units.turn,
            turn_ends_in_ms=units.turn_ends_in_ms,
            player=units.player,
            realm_name=units.realm_name,
            fetched_at=fetched_at,
        )
        return GameStateSnapshot(
            context=ctx,
            terrain=terrain,
            structures=_tuple(FriendlyStructure.from_wire, units.base),
            enemies=_tuple(EnemyStructure.from_wire, units.enemy_blocks),
            zombies=_tuple(Zombie.from_wire, units.zombies),
        )

    @property
    def turn(self) -> int:
        return self.context.turn

    @property
    def gold(self) -> int:
        return self.context.gold

    def has_structures(self) -> bool:
        return len(self.structures) > 0

    def summary(self) -> str:
        return (f"gold={self.gold} base={len(self.structures)} zombies={len(self.zombies)} "
                f"enemyBlocks={len(self.enemies)} zpots={len(self.terrain)}")


def _tuple(conv, items: Optional[Iterable]) -> tuple:
    return tuple(conv(i) for i in items or ())
