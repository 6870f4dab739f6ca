import os
from pathlib import Path

from pydantic import ValidationError

from zombidef.schemas import PersistentState
from zombidef.utils.audit import log, log_error


class StateStore:
    """`{"currentRound": ...}` on disk. Every change is written before returning."""
    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self.state = self._load()
        self.writes = 0

    def _load(self) -> PersistentState:
        if not self.path.exists():
            return PersistentState()
        try:
            return PersistentState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            log_error(f"unreadable state file {self.path}, starting empty", e)
            return PersistentState()

    @property
    def current_round(self) -> str:
        return self.state.current_round

    def save(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(self.state.model_dump_json(by_alias=True), encoding="utf-8")
        os.replace(tmp, self.path)
        self.writes += 1

    def set_round(self, name: str) -> bool:
        """Persist `name` as the current round. Returns False when it already was."""
        if self.state.current_round == name:
            return False
        log(f"current round {self.state.current_round!r} -> {name!r}")
        self.state = PersistentState(current_round=name)
        self.save()
        return True

    def reset(self) -> bool:
        return self.set_round("")
