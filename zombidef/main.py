import argparse
import threading
from typing import Optional

from fastapi import FastAPI
import uvicorn

from zombidef.routers.status_router import build_router
from zombidef.schemas import BotConfig
from zombidef.services.client import RateLimitedClient
from zombidef.services.scheduler import RoundScheduler, SchedulerStatus
from zombidef.services.state import StateStore
from zombidef.utils.audit import log


def create_app(status: SchedulerStatus) -> FastAPI:
    app = FastAPI()

    # Health check
    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    app.include_router(build_router(status), prefix="/v1", tags=["status"])
    return app


def start_status_server(status: SchedulerStatus, port: int) -> threading.Thread:
    """Serve the read-only status API from a daemon thread."""
    app = create_app(status)
    th = threading.Thread(
        target=uvicorn.run,
        args=(app,),
        kwargs={"host": "0.0.0.0", "port": port, "log_level": "warning"},
        name="status-server",
        daemon=True,
    )
    th.start()
    log(f"status server on port {port}")
    return th


def build_scheduler(config: BotConfig) -> RoundScheduler:
    client = RateLimitedClient(config)
    store = StateStore(config.state_path)
    return RoundScheduler(config, client, store)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="zombidef round bot")
    parser.add_argument("token", help="X-Auth-Token for the game API")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    config = BotConfig.from_env(args.token)
    log(f"started base_url={config.base_url} state={config.state_path}")
    scheduler = build_scheduler(config)
    if config.status_port:
        start_status_server(scheduler.status, config.status_port)
    scheduler.run()


if __name__ == "__main__":
    main()
