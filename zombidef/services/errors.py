"""Error taxonomy shared by the client, the turn engine and the scheduler."""


class ZombidefError(Exception):
    pass


class TransportError(ZombidefError):
    """Non-2xx response (status 0 when the request never got a response)."""
    def __init__(self, status: int, body: str, url: str = ""):
        super().__init__(f"HTTP {status} {url} body={body}")
        self.status = status
        self.body = body
        self.url = url


class DecodeError(ZombidefError):
    def __init__(self, message: str, body: str = ""):
        super().__init__(f"{message} body={body}")
        self.body = body


class TimeoutExceeded(ZombidefError):
    pass


class NoHeadStructure(ZombidefError):
    pass


class RoundMismatch(ZombidefError):
    pass
