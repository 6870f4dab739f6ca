from fastapi import APIRouter

from zombidef.schemas import StatusResponse
from zombidef.services.scheduler import SchedulerStatus


def build_router(status: SchedulerStatus) -> APIRouter:
    router = APIRouter()

    @router.get("/status", response_model=StatusResponse)
    def get_status() -> StatusResponse:
        return status.snapshot()

    return router
