import os
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://games-test.datsteam.dev"

HEAD_MAX_HP = 300
BLOCK_MAX_HP = 100

BOMBER_TYPE = "bomber"

class Coordinate(BaseModel, frozen=True):

    x: int
    y: int

    def __hash__(self):
        return hash((self.x, self.y))

    def __eq__(self, other):
        if isinstance(other, Coordinate):
            return self.x == other.x and self.y == other.y
        return False

    def __add__(self, other: 'Coordinate') -> 'Coordinate':
        if not isinstance(other, Coordinate):
            return NotImplemented
        return Coordinate(x=self.x + other.x, y=self.y + other.y)

    def __repr__(self) -> str:
        return f"({self.x},{self.y})"

    def is_valid(self) -> bool:
        return self.x>=0 and self.y>=0

    def distance2(self, other: 'Coordinate') -> int:
        """Squared euclidean distance. Range checks compare against range*range."""
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def neighbors(self) -> List['Coordinate']:
        return [self + d for d in NEIGHBOR_DELTAS]

    def diagonal_neighbors(self) -> List['Coordinate']:
        return [self + d for d in DIAGONAL_DELTAS]


ZERO = Coordinate(x=0, y=0)
UP = Coordinate(x=0, y=-1)
DOWN = Coordinate(x=0, y=1)
LEFT = Coordinate(x=-1, y=0)
RIGHT = Coordinate(x=1, y=0)

NEIGHBOR_DELTAS = (RIGHT, LEFT, DOWN, UP)
DIAGONAL_DELTAS = (
    Coordinate(x=1, y=1),
    Coordinate(x=1, y=-1),
    Coordinate(x=-1, y=1),
    Coordinate(x=-1, y=-1),
)

DIRECTIONS: dict[str, Coordinate] = {
    "up": UP,
    "down": DOWN,
    "left": LEFT,
    "right": RIGHT,
}


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 timestamp from the server; naive values are treated as UTC."""
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# === wire payloads ===

class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Round(WireModel):
    name: str
    status: str
    start_at: str = Field(alias="startAt")
    end_at: str = Field(alias="endAt")
    duration: int = 0
    repeat: int = 0

    @property
    def start_ts(self) -> float:
        return parse_timestamp(self.start_at).timestamp()

    def is_active(self) -> bool:
        return self.status == "active"


class RoundsInfo(WireModel):
    game_name: str = Field(default="", alias="gameName")
    now: str
    rounds: List[Round] = []

    @property
    def now_ts(self) -> float:
        return parse_timestamp(self.now).timestamp()


class JoinResponse(WireModel):
    starts_in_sec: int = Field(alias="startsInSec")


class Zpot(WireModel):
    x: int
    y: int
    type: str = "default"


class WorldState(WireModel):
    realm_name: str = Field(default="", alias="realmName")
    zpots: List[Zpot] = []


class BaseBlock(WireModel):
    id: str
    x: int
    y: int
    attack: int
    health: int
    is_head: bool = Field(default=False, alias="isHead")
    range: int
    last_attack: Optional[Coordinate] = Field(default=None, alias="lastAttack")


class EnemyBlock(WireModel):
    x: int
    y: int
    attack: int = 0
    health: int
    is_head: bool = Field(default=False, alias="isHead")
    last_attack: Optional[Coordinate] = Field(default=None, alias="lastAttack")


class ZombieUnit(WireModel):
    id: str
    x: int
    y: int
    attack: int = 0
    health: int
    speed: int = 0
    direction: str = ""
    type: str = ""
    wait_turns: int = Field(default=0, alias="waitTurns")


class Player(WireModel):
    gold: int = 0
    points: int = 0
    zombie_kills: int = Field(default=0, alias="zombieKills")
    enemy_block_kills: int = Field(default=0, alias="enemyBlockKills")
    name: str = ""
    game_ended_at: Optional[str] = Field(default=None, alias="gameEndedAt")


class UnitsPayload(WireModel):
    base: Optional[List[BaseBlock]] = None
    enemy_blocks: Optional[List[EnemyBlock]] = Field(default=None, alias="enemyBlocks")
    zombies: Optional[List[ZombieUnit]] = None
    player: Player
    realm_name: str = Field(default="", alias="realmName")
    turn: int
    turn_ends_in_ms: int = Field(alias="turnEndsInMs")


class AttackOrder(WireModel):
    block_id: str = Field(alias="blockId")
    target: Coordinate


class Command(WireModel):
    attack: List[AttackOrder] = []
    build: List[Coordinate] = []
    move_base: Optional[Coordinate] = Field(default=None, alias="moveBase")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AcceptedCommands(WireModel):
    attack: Optional[List[AttackOrder]] = None
    build: Optional[List[Coordinate]] = None
    move_base: Optional[Coordinate] = Field(default=None, alias="moveBase")


class CommandResponse(WireModel):
    accepted_commands: AcceptedCommands = Field(default_factory=AcceptedCommands, alias="acceptedCommands")
    errors: Optional[List[str]] = None


class PersistentState(WireModel):
    current_round: str = Field(default="", alias="currentRound")


# === configuration ===

class BotConfig(BaseModel):
    token: str
    base_url: str = DEFAULT_BASE_URL
    state_path: str = "state.json"
    log_dir: str = "logs"
    status_port: Optional[int] = None
    http_timeout_sec: float = 10.0
    requests_per_second: int = 3
    join_window_sec: float = 5 * 60
    join_backoff_sec: float = 1.0
    mismatch_backoff_sec: float = 10.0
    idle_backoff_sec: float = 1.0
    cycle_backoff_sec: float = 1.0
    units_retry_delay_sec: float = 1.7
    units_retry_window_sec: float = 4 * 60
    turn_skew_ms: int = 2
    threat_horizon: int = 30

    @staticmethod
    def from_env(token: str) -> 'BotConfig':
        port = os.getenv("ZOMBIDEF_STATUS_PORT")
        return BotConfig(
            token=token,
            base_url=os.getenv("ZOMBIDEF_BASE_URL", DEFAULT_BASE_URL),
            state_path=os.getenv("ZOMBIDEF_STATE_PATH", "state.json"),
            log_dir=os.getenv("ZOMBIDEF_LOG_DIR", "logs"),
            status_port=int(port) if port else None,
        )


class StatusResponse(BaseModel):
    phase: str
    current_round: str = ""
    turn: Optional[int] = None
    gold: Optional[int] = None
    structures: Optional[int] = None
    last_error: Optional[str] = None
    updated_at: Optional[float] = None
