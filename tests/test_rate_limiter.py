import pytest

from zombidef.services.client import RateLimiter


class FakeClock:
    def __init__(self):
        self.t = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.t

    def sleep(self, d: float) -> None:
        self.sleeps.append(d)
        self.t += d


def _limiter(clk: FakeClock, limit: int = 3) -> RateLimiter:
    return RateLimiter(limit, 1.0, clock=clk, sleep=clk.sleep)


def test_burst_never_exceeds_budget_in_any_window():
    clk = FakeClock()
    limiter = _limiter(clk)
    admitted = []
    for _ in range(10):
        limiter.acquire()
        admitted.append(clk.t)
    assert admitted[:3] == [0.0, 0.0, 0.0]
    assert admitted[3] == pytest.approx(1.0)
    for t in admitted:
        in_window = [u for u in admitted if t <= u < t + 1.0]
        assert len(in_window) <= 3
    assert admitted == sorted(admitted)


def test_first_calls_do_not_wait():
    clk = FakeClock()
    limiter = _limiter(clk)
    assert limiter.acquire() == 0.0
    assert limiter.acquire() == 0.0
    assert limiter.acquire() == 0.0
    assert clk.sleeps == []


def test_wait_is_window_minus_age_of_oldest():
    clk = FakeClock()
    limiter = _limiter(clk)
    limiter.acquire()
    clk.t = 0.3
    limiter.acquire()
    clk.t = 0.4
    limiter.acquire()
    clk.t = 0.5
    waited = limiter.acquire()
    assert waited == pytest.approx(0.5)
    assert clk.t == pytest.approx(1.0)


def test_spaced_calls_pass_without_sleep():
    clk = FakeClock()
    limiter = _limiter(clk)
    for _ in range(8):
        limiter.acquire()
        clk.t += 0.5
    assert clk.sleeps == []


def test_invalid_limit():
    with pytest.raises(ValueError):
        RateLimiter(0)
