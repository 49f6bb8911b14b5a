import logging
from http import HTTPStatus
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from fulfillment_common.event_log import EventLog
from fulfillment_common.health import (
    ReadinessReport,
    check_readiness,
    database_check,
    event_log_check,
)
from order_service.application.container import ApplicationContainer
from order_service.application.create_order import CreateOrderUseCase, OrderDTO
from order_service.core.models import Order, PlacedOrder
from order_service.infrastructure.repositories import DoesNotExist
from order_service.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter()


async def current_user_id(
    x_user_id: Annotated[int | None, Header()] = None,
) -> int:
    """The auth layer in front of the service passes the verified user id."""
    if x_user_id is None:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Unauthorized")
    return x_user_id


class OrderCreateRequest(OrderDTO):
    pass


class OrderResponseModel(Order):
    pass


@router.post(
    "/orders",
    status_code=HTTPStatus.CREATED,
    response_model=PlacedOrder,
)
@inject
async def create_order(
    order: OrderCreateRequest,
    user_id: int = Depends(current_user_id),
    create_order_use_case: CreateOrderUseCase = Depends(
        Provide[ApplicationContainer.create_order_use_case]
    ),
):
    try:
        return await create_order_use_case(user_id=user_id, order=order)
    except Exception:
        logger.exception(f"Failed to create order for user {user_id}")
        return JSONResponse(
            content={"message": "Internal server error while creating order"},
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )


@router.get(
    "/orders",
    status_code=HTTPStatus.OK,
    response_model=list[OrderResponseModel],
)
@inject
async def list_orders(
    user_id: int = Depends(current_user_id),
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    async with unit_of_work() as uow:
        return await uow.orders.list_by_user(user_id)


@router.get(
    "/orders/{order_id}",
    status_code=HTTPStatus.OK,
    response_model=OrderResponseModel,
)
@inject
async def get_order(
    order_id: int,
    user_id: int = Depends(current_user_id),
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            order = await uow.orders.get_by_id(order_id)
    except DoesNotExist:
        order = None

    if order is None or order.user_id != user_id:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail=f"Order {order_id} not found"
        )
    return order


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
