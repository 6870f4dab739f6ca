import pytest
import requests

from zombidef.schemas import AttackOrder, BotConfig, Command, Coordinate
from zombidef.services.client import RateLimitedClient, RateLimiter
from zombidef.services.errors import DecodeError, TransportError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.requests: list[tuple[str, str, dict | None]] = []

    def request(self, method, url, json=None, timeout=None):
        self.requests.append((method, url, json))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(*responses) -> tuple[RateLimitedClient, FakeSession]:
    session = FakeSession(*responses)
    config = BotConfig(token="secret", base_url="https://example.test/")
    return RateLimitedClient(config, session=session, limiter=RateLimiter(100)), session  # type: ignore[arg-type]


def test_auth_header_and_urls():
    client, session = _client(
        FakeResponse(200, {"gameName": "defense", "now": "2024-03-01T10:00:00Z", "rounds": []}),
        FakeResponse(200, {"startsInSec": 42}),
        FakeResponse(200, {"realmName": "r", "zpots": [{"x": 1, "y": 2, "type": "wall"}]}),
    )
    assert session.headers["X-Auth-Token"] == "secret"
    assert client.list_rounds().rounds == []
    assert client.join_round("r1") == 42
    terrain = client.fetch_terrain()
    assert Coordinate(x=1, y=2) in terrain
    assert [(m, u) for m, u, _ in session.requests] == [
        ("GET", "https://example.test/rounds/zombidef"),
        ("PUT", "https://example.test/play/zombidef/participate"),
        ("GET", "https://example.test/play/zombidef/world"),
    ]


def test_submit_command_body():
    client, session = _client(FakeResponse(200, {
        "acceptedCommands": {"attack": [{"blockId": "h", "target": {"x": 3, "y": 0}}], "build": None},
        "errors": ["nope"],
    }))
    cmd = Command(attack=[AttackOrder(block_id="h", target=Coordinate(x=3, y=0))], build=[Coordinate(x=1, y=0)])
    res = client.submit_command(cmd)
    method, url, body = session.requests[0]
    assert method == "POST"
    assert url.endswith("/play/zombidef/command")
    assert body == {"attack": [{"blockId": "h", "target": {"x": 3, "y": 0}}], "build": [{"x": 1, "y": 0}]}
    assert len(res.accepted_commands.attack or []) == 1
    assert res.errors == ["nope"]


def test_non_2xx_is_transport_error():
    client, _ = _client(FakeResponse(400, None, text='{"error":"not participating in this round"}'))
    with pytest.raises(TransportError) as ei:
        client.fetch_units()
    assert ei.value.status == 400
    assert "not participating" in ei.value.body


def test_connection_failure_is_transport_error():
    client, _ = _client(requests.ConnectionError("refused"))
    with pytest.raises(TransportError) as ei:
        client.list_rounds()
    assert ei.value.status == 0


def test_bad_json_is_decode_error():
    client, _ = _client(FakeResponse(200, ValueError("bad json"), text="<html>"))
    with pytest.raises(DecodeError):
        client.fetch_units()


def test_wrong_shape_is_decode_error():
    client, _ = _client(FakeResponse(200, {"turn": "soon"}))
    with pytest.raises(DecodeError):
        client.fetch_units()


def test_null_body_is_decode_error():
    client, _ = _client(FakeResponse(200, None, text="null"))
    with pytest.raises(DecodeError):
        client.join_round("r1")


def test_every_call_acquires_limiter():
    class CountingLimiter:
        calls = 0

        def acquire(self):
            CountingLimiter.calls += 1
            return 0.0

    session = FakeSession(FakeResponse(200, {"startsInSec": 1}), FakeResponse(200, {"startsInSec": 1}))
    client = RateLimitedClient(BotConfig(token="t"), session=session, limiter=CountingLimiter())  # type: ignore[arg-type]
    client.join_round("a")
    client.join_round("b")
    assert CountingLimiter.calls == 2
