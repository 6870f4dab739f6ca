import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Callable, Optional, Protocol

from zombidef.schemas import BotConfig, Command, CommandResponse, Round, RoundsInfo, StatusResponse, UnitsPayload
from zombidef.services.errors import DecodeError, RoundMismatch, TransportError
from zombidef.services.retry import retry_until, run_forever
from zombidef.services.snapshot import GameStateSnapshot, StaticTerrain
from zombidef.services.state import StateStore
from zombidef.services.turn import TurnDecisionEngine
from zombidef.utils.audit import DEBUG, audit_write, log, log_error, prune_audit_files


def _dbg(*args):
    if DEBUG:
        log(*args)


class GameApi(Protocol):
    def list_rounds(self) -> RoundsInfo: ...
    def join_round(self, name: str) -> int: ...
    def fetch_terrain(self) -> StaticTerrain: ...
    def fetch_units(self) -> UnitsPayload: ...
    def submit_command(self, cmd: Command) -> CommandResponse: ...


class Phase(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    JOINING = "joining"
    AWAITING_START = "awaiting_start"
    IN_ROUND = "in_round"


class SchedulerStatus:
    """Latest scheduler state, readable from another thread."""
    def __init__(self):
        self._lock = Lock()
        self._data = StatusResponse(phase=Phase.IDLE.value)

    def update(self, **kwargs) -> None:
        if isinstance(kwargs.get("phase"), Phase):
            kwargs["phase"] = kwargs["phase"].value
        kwargs["updated_at"] = time.time()
        with self._lock:
            self._data = self._data.model_copy(update=kwargs)

    def snapshot(self) -> StatusResponse:
        with self._lock:
            return self._data.model_copy()


@dataclass
class Discovery:
    info: RoundsInfo
    active: Optional[Round] = None
    joinable: bool = False


class RoundScheduler:
    def __init__(self, config: BotConfig, client: GameApi, store: StateStore, *,
                 engine: Optional[TurnDecisionEngine] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.client = client
        self.store = store
        self.engine = engine or TurnDecisionEngine.from_config(config)
        self.clock = clock
        self.sleep = sleep
        self.status = SchedulerStatus()
        self.status.update(current_round=store.current_round)
        self._stopped = False

    def _phase(self, phase: Phase, **kwargs) -> None:
        _dbg(f"phase -> {phase.value}")
        self.status.update(phase=phase, **kwargs)

    # --- Discovering ---
    def discover(self) -> Discovery:
        self._phase(Phase.DISCOVERING)
        info = self.client.list_rounds()
        rounds = sorted(info.rounds, key=lambda r: r.start_ts)
        active = next((r for r in rounds if r.is_active()), None)
        upcoming = [r.name for r in rounds if r.status != "ended"][:5]
        log(f"my round={self.store.current_round!r} active round={active.name if active else None} next rounds={upcoming}")
        if active is None:
            return Discovery(info=info)
        elapsed = info.now_ts - active.start_ts
        log(f"active round elapsed={int(elapsed)} sec")
        return Discovery(info=info, active=active, joinable=elapsed < self.config.join_window_sec)

    # --- Joining / AwaitingStart ---
    def join_if_needed(self, rnd: Round) -> bool:
        """Join `rnd` unless it is already the persisted round. True when a join happened."""
        if rnd.name == self.store.current_round:
            _dbg(f"already joined {rnd.name}")
            return False
        self._phase(Phase.JOINING)
        log(f"join round {rnd.name} start={rnd.start_at}")
        try:
            starts_in = self.client.join_round(rnd.name)
        except (TransportError, DecodeError) as e:
            # may already be registered from an earlier run
            log_error(f"join {rnd.name} failed, but it may be ok", e)
            self.sleep(self.config.join_backoff_sec)
            return False
        self.store.set_round(rnd.name)
        self._phase(Phase.AWAITING_START, current_round=rnd.name)
        log(f"joined round {rnd.name} sleep for {starts_in} sec")
        if starts_in > 0:
            self.sleep(starts_in)
        return True

    # --- InRound ---
    def _fetch_terrain(self) -> StaticTerrain:
        return retry_until(self.client.fetch_terrain, what="fetch terrain",
                           window=self.config.units_retry_window_sec,
                           delay=self.config.units_retry_delay_sec,
                           clock=self.clock, sleep=self.sleep)

    def _fetch_units(self) -> UnitsPayload:
        return retry_until(self.client.fetch_units, what="fetch units",
                           window=self.config.units_retry_window_sec,
                           delay=self.config.units_retry_delay_sec,
                           clock=self.clock, sleep=self.sleep)

    def _wait_turn_end(self, snap: GameStateSnapshot, minimum: float = 0.0) -> float:
        """Sleep past the turn deadline (plus skew), at least `minimum` seconds."""
        delay = max(snap.context.deadline + self.config.turn_skew_ms / 1000.0 - self.clock(), minimum)
        _dbg(f"sleep for {int(delay * 1000)} ms")
        if delay > 0:
            self.sleep(delay)
        return delay

    def play_round(self, name: str) -> int:
        """Play turns until the colony is gone. Returns the number of turns played."""
        self._phase(Phase.IN_ROUND, current_round=name)
        log(f"starting round loop {name}")
        terrain = self._fetch_terrain()
        turns = 0
        while not self._stopped:
            units = self._fetch_units()
            snap = GameStateSnapshot.build(terrain, units, fetched_at=self.clock())
            log(f"current turn {snap.turn} turnEndsInMs={snap.context.turn_ends_in_ms}")
            self.status.update(turn=snap.turn, gold=snap.gold, structures=len(snap.structures))
            if not snap.has_structures():
                log("no base, exit")
                audit_write(self.config.log_dir, name, {"type": "round_over", "turn": snap.turn,
                                                        "points": snap.context.player.points})
                self._wait_turn_end(snap, minimum=self.config.idle_backoff_sec)
                break
            self.engine.play(snap, self.client, name)
            turns += 1
            self._wait_turn_end(snap)
        return turns

    # --- one full cycle ---
    def run_cycle(self) -> None:
        prune_audit_files(self.config.log_dir)
        try:
            found = self.discover()
            active = found.active
            if active is None:
                self._phase(Phase.IDLE)
                self.sleep(self.config.idle_backoff_sec)
                return
            if found.joinable and active.name != self.store.current_round:
                # a failed join still plays: the server may already have us registered,
                # and "not participating" in the round raises RoundMismatch
                self.join_if_needed(active)
            elif active.name != self.store.current_round:
                raise RoundMismatch(f"active round {active.name} is not ours ({self.store.current_round!r}) and closed for joining")
            self.play_round(active.name)
        except RoundMismatch as e:
            log(f"round mismatch, reset local state: {e}")
            self.store.reset()
            self.status.update(current_round="", last_error=str(e))
            self.sleep(self.config.mismatch_backoff_sec)
        finally:
            self._phase(Phase.IDLE)

    def run(self) -> None:
        def cycle():
            try:
                self.run_cycle()
            except Exception as e:
                self.status.update(last_error=str(e))
                raise
        run_forever(cycle, backoff=self.config.cycle_backoff_sec, sleep=self.sleep,
                    keep_going=lambda: not self._stopped)

    def stop(self) -> None:
        self._stopped = True
