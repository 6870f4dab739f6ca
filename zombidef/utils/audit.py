import json
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

# Debug flag: enable when running tests or when env var ZOMBIDEF_DEBUG is set
DEBUG = bool(os.getenv('ZOMBIDEF_DEBUG')) or ('unittest' in sys.modules) or ('PYTEST_CURRENT_TEST' in os.environ)

# Maintain per-round filename base so all writes go to the same timestamped file
_ROUND_FILE_BASE: Dict[str, str] = {}

KEEP_AUDIT_FILES = 20


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def log(*args: Any) -> None:
    """Timestamped console line."""
    print(f"{_now()}> " + " ".join(str(a) for a in args), flush=True)


def log_error(message: str, exc: BaseException | None = None) -> None:
    text = f"{_now()}> {message}"
    if exc is not None:
        text += "\n" + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    print(text, file=sys.stderr, flush=True)


def _dbg(*args: Any) -> None:
    if DEBUG:
        log(*args)


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def _rounds_dir(log_dir: str) -> str:
    return os.path.abspath(os.path.join(log_dir, "rounds"))


def _file_base_for(round_name: str) -> str:
    """Return a stable '<timestamp>_<round>' base for this process."""
    if round_name in _ROUND_FILE_BASE:
        return _ROUND_FILE_BASE[round_name]
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in round_name) or "unk"
    base = f"{ts}_{safe}"
    _ROUND_FILE_BASE[round_name] = base
    return base


def audit_write(log_dir: str, round_name: str, record: Dict[str, Any]) -> None:
    """Append a structured JSON line to the per-round audit log.

    The file is stored under <log_dir>/rounds/<timestamp>_<round>.log.
    """
    base_dir = _rounds_dir(log_dir)
    record = dict(record)
    record.setdefault("ts", datetime.now(timezone.utc).isoformat())
    record.setdefault("round", round_name)
    try:
        _ensure_dir(base_dir)
        log_path = os.path.join(base_dir, f"{_file_base_for(round_name)}.log")
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError as e:
        # audit logging is best-effort
        _dbg(f"audit write failed: {e}")


def prune_audit_files(log_dir: str, keep: int = KEEP_AUDIT_FILES) -> list[str]:
    """Delete all but the `keep` most recently modified audit files."""
    base_dir = _rounds_dir(log_dir)
    if not os.path.isdir(base_dir):
        return []
    paths = [os.path.join(base_dir, n) for n in os.listdir(base_dir)]
    paths = [p for p in paths if os.path.isfile(p)]
    paths.sort(key=os.path.getmtime, reverse=True)
    removed = []
    for path in paths[keep:]:
        try:
            os.remove(path)
            removed.append(path)
            log(f"delete old audit file {path}")
        except OSError as e:
            log_error(f"delete failed {path}", e)
    return removed
