from dataclasses import dataclass, field
from typing import Optional, Protocol

from zombidef.schemas import BotConfig, Command, CommandResponse, Coordinate
from zombidef.services.errors import NoHeadStructure
from zombidef.services.placement import plan_build_places
from zombidef.services.snapshot import GameStateSnapshot
from zombidef.services.targeting import select_targets
from zombidef.services.threat import THREAT_HORIZON
from zombidef.utils.audit import DEBUG, audit_write, log


def _dbg(*args):
    if DEBUG:
        log(*args)


class CommandSink(Protocol):
    def submit_command(self, cmd: Command) -> CommandResponse: ...


@dataclass
class TurnDecision:
    command: Command
    candidates: list[Coordinate] = field(default_factory=list)


@dataclass
class TurnResult:
    turn: int
    decision: Optional[TurnDecision] = None
    response: Optional[CommandResponse] = None

    @property
    def accepted_attacks(self) -> int:
        return len(self.response.accepted_commands.attack or []) if self.response else 0

    @property
    def accepted_builds(self) -> int:
        return len(self.response.accepted_commands.build or []) if self.response else 0

    @property
    def errors(self) -> list[str]:
        return list(self.response.errors or []) if self.response else []


class TurnDecisionEngine:
    def __init__(self, *, threat_horizon: int = THREAT_HORIZON, log_dir: Optional[str] = None):
        self.threat_horizon = threat_horizon
        self.log_dir = log_dir

    @staticmethod
    def from_config(config: BotConfig) -> 'TurnDecisionEngine':
        return TurnDecisionEngine(threat_horizon=config.threat_horizon, log_dir=config.log_dir)

    def decide(self, snap: GameStateSnapshot) -> TurnDecision:
        """Build + attack orders for one turn. Raises NoHeadStructure when the colony has no head."""
        if snap.head is None:
            raise NoHeadStructure(f"turn {snap.turn}: no head structure")
        candidates = plan_build_places(snap)
        cmd = Command(
            build=candidates[:max(0, snap.gold)],
            attack=select_targets(snap, self.threat_horizon),
        )
        return TurnDecision(command=cmd, candidates=candidates)

    def play(self, snap: GameStateSnapshot, sink: CommandSink, round_name: str = "") -> TurnResult:
        log(f"my states {snap.summary()}")
        result = TurnResult(turn=snap.turn)
        try:
            result.decision = self.decide(snap)
        except NoHeadStructure as e:
            log(f"skip turn: {e}")
            return result

        cmd = result.decision.command
        result.response = sink.submit_command(cmd)
        # rejected orders are not retried; the next snapshot is authoritative
        log(
            f"cmd response, accepted commands= attacks={result.accepted_attacks}/{len(cmd.attack)} "
            f"build={result.accepted_builds}/{len(cmd.build)} failed={len(result.errors)} {result.errors}"
        )
        _dbg(f"candidates={result.decision.candidates}")
        if self.log_dir:
            audit_write(self.log_dir, round_name or "unk", {
                "type": "turn",
                "turn": snap.turn,
                "gold": snap.gold,
                "structures": len(snap.structures),
                "zombies": len(snap.zombies),
                "enemy_blocks": len(snap.enemies),
                "candidates": len(result.decision.candidates),
                "command": cmd.to_wire(),
                "accepted": {"attack": result.accepted_attacks, "build": result.accepted_builds},
                "errors": result.errors,
            })
        return result
