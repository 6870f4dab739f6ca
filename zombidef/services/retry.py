"""Retry policies.

Two granularities:
- call level: `retry_until` repeats a single operation with a fixed delay and
  gives up with `TimeoutExceeded` after a bounded window.
- cycle level: `run_forever` repeats a whole scheduler cycle, logging and
  backing off after any failure, and never returns on its own.
"""
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from zombidef.services.errors import DecodeError, RoundMismatch, TimeoutExceeded, TransportError
from zombidef.utils.audit import log, log_error

T = TypeVar("T")

NOT_PARTICIPATING = "not participating"


@dataclass
class CallResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def attempt(fn: Callable[[], T]) -> CallResult[T]:
    """Run one call, turning transport/decode failures into a result value.

    A response telling us we are not in the round becomes RoundMismatch, which
    is raised rather than returned: retrying cannot fix it.
    """
    try:
        return CallResult(value=fn())
    except TransportError as e:
        if NOT_PARTICIPATING in e.body:
            raise RoundMismatch(e.body) from e
        return CallResult(error=e)
    except DecodeError as e:
        return CallResult(error=e)


def retry_until(fn: Callable[[], T], *, window: float, delay: float, what: str = "call",
                clock: Callable[[], float] = time.monotonic,
                sleep: Callable[[float], None] = time.sleep) -> T:
    started = clock()
    while True:
        res = attempt(fn)
        if res.ok:
            return res.value  # type: ignore[return-value]
        elapsed = clock() - started
        if elapsed > window:
            raise TimeoutExceeded(f"{what} kept failing for {int(elapsed)} sec: {res.error}") from res.error
        log(f"{what} failed, retry in {delay} sec: {res.error}")
        sleep(delay)


def run_forever(cycle: Callable[[], None], *, backoff: float = 1.0,
                sleep: Callable[[float], None] = time.sleep,
                keep_going: Callable[[], bool] = lambda: True) -> None:
    while keep_going():
        try:
            cycle()
        except Exception as e:
            log_error("cycle failed", e)
            sleep(backoff)
