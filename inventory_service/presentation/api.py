from http import HTTPStatus

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from fulfillment_common.event_log import EventLog
from fulfillment_common.health import (
    ReadinessReport,
    check_readiness,
    database_check,
    event_log_check,
)
from inventory_service.application.container import ApplicationContainer

router = APIRouter()


@router.get("/health/live", status_code=HTTPStatus.OK)
async def liveness():
    return {"status": "ok"}


@router.get("/health/ready", response_model=ReadinessReport)
@inject
async def readiness(
    engine: AsyncEngine = Depends(
        Provide[ApplicationContainer.infrastructure_container.async_engine]
    ),
    event_log: EventLog = Depends(
        Provide[
            ApplicationContainer.infrastructure_container.event_log_container.event_log
        ]
    ),
    timeout: float = Depends(Provide[ApplicationContainer.config.health.timeout]),
):
    report = await check_readiness(
        {"database": database_check(engine), "event_log": event_log_check(event_log)},
        timeout=timeout,
    )
    return JSONResponse(
        content=report.model_dump(mode="json"),
        status_code=HTTPStatus.OK if report.ready else HTTPStatus.SERVICE_UNAVAILABLE,
    )
