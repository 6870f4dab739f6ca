"""Small builders for snapshots used across the tests."""
from zombidef.schemas import Coordinate, Player
from zombidef.services.snapshot import (
    EnemyStructure,
    FriendlyStructure,
    GameStateSnapshot,
    StaticTerrain,
    StructureKind,
    TerrainCell,
    TurnContext,
    Zombie,
)


def P(x: int, y: int) -> Coordinate:
    return Coordinate(x=x, y=y)


def block(id: str, x: int, y: int, *, head: bool = False, attack: int = 10, health: int = 100, range: int = 5) -> FriendlyStructure:
    kind = StructureKind.HEAD if head else StructureKind.BLOCK
    return FriendlyStructure(id=id, pos=P(x, y), attack=attack, health=health, range=range, kind=kind)


def enemy(x: int, y: int, *, health: int = 100, head: bool = False) -> EnemyStructure:
    return EnemyStructure(pos=P(x, y), attack=10, health=health, kind=StructureKind.of(head))


def zombie(id: str, x: int, y: int, *, health: int = 10, direction: str = "up", type: str = "normal") -> Zombie:
    return Zombie(id=id, pos=P(x, y), attack=5, health=health, direction=direction, type=type)


def wall(x: int, y: int) -> TerrainCell:
    return TerrainCell(pos=P(x, y), type="wall")


def make_snapshot(structures=(), *, enemies=(), zombies=(), terrain=(), turn: int = 1, gold: int = 0) -> GameStateSnapshot:
    return GameStateSnapshot(
        context=TurnContext(turn=turn, turn_ends_in_ms=2000, player=Player(gold=gold)),
        terrain=StaticTerrain(cells=tuple(terrain)),
        structures=tuple(structures),
        enemies=tuple(enemies),
        zombies=tuple(zombies),
    )
