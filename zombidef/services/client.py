import time
from collections import deque
from threading import Lock
from typing import Callable, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from zombidef.schemas import (
    BotConfig,
    Command,
    CommandResponse,
    JoinResponse,
    RoundsInfo,
    UnitsPayload,
    WorldState,
)
from zombidef.services.errors import DecodeError, TransportError
from zombidef.services.snapshot import StaticTerrain
from zombidef.utils.audit import DEBUG, log


def _dbg(*args):
    if DEBUG:
        log(*args)


M = TypeVar("M", bound=BaseModel)

GAME = "zombidef"


class RateLimiter:
    """Sliding window limiter: at most `limit` admissions per `window` seconds.

    The server documents 4 requests/sec; 3 leaves headroom for latency jitter.
    """
    def __init__(self, limit: int = 3, window: float = 1.0, *,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._stamps: deque[float] = deque()
        self._lock = Lock()

    def _expire(self, now: float) -> None:
        while self._stamps and now - self._stamps[0] >= self.window:
            self._stamps.popleft()

    def acquire(self) -> float:
        """Block until a slot is free. Returns the seconds spent waiting."""
        waited = 0.0
        with self._lock:
            now = self._clock()
            self._expire(now)
            while len(self._stamps) >= self.limit:
                delay = self.window - (now - self._stamps[0])
                if delay > 0:
                    log(f"throttle sleep for {int(delay * 1000)} ms")
                    self._sleep(delay)
                    waited += delay
                now = self._clock()
                self._expire(now)
            self._stamps.append(now)
        return waited


class RateLimitedClient:
    """Blocking client for the game's REST API. Every call goes through the limiter."""
    def __init__(self, config: BotConfig, *, session: Optional[requests.Session] = None,
                 limiter: Optional[RateLimiter] = None):
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.http_timeout_sec
        self.session = session or requests.Session()
        self.session.headers.update({"X-Auth-Token": config.token})
        self.limiter = limiter or RateLimiter(config.requests_per_second)

    def _request(self, method: str, path: str, model: Type[M], *, body: Optional[dict] = None) -> M:
        self.limiter.acquire()
        url = f"{self.base_url}{path}"
        try:
            if body is not None:
                resp = self.session.request(method, url, json=body, timeout=self.timeout)
            else:
                resp = self.session.request(method, url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(0, str(e), url) from e
        text = resp.text
        if not 200 <= resp.status_code < 300:
            raise TransportError(resp.status_code, text, url)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"invalid json from {url}", text) from e
        if data is None:
            raise DecodeError(f"empty body from {url}", text)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"unexpected payload from {url}: {e}", text) from e

    def list_rounds(self) -> RoundsInfo:
        return self._request("GET", f"/rounds/{GAME}", RoundsInfo)

    def join_round(self, name: str) -> int:
        """Register for the current round; returns seconds until it starts."""
        res = self._request("PUT", f"/play/{GAME}/participate", JoinResponse)
        _dbg(f"join {name} -> startsInSec={res.starts_in_sec}")
        return res.starts_in_sec

    def fetch_terrain(self) -> StaticTerrain:
        world = self._request("GET", f"/play/{GAME}/world", WorldState)
        return StaticTerrain.from_world(world)

    def fetch_units(self) -> UnitsPayload:
        return self._request("GET", f"/play/{GAME}/units", UnitsPayload)

    def submit_command(self, cmd: Command) -> CommandResponse:
        return self._request("POST", f"/play/{GAME}/command", CommandResponse, body=cmd.to_wire())
