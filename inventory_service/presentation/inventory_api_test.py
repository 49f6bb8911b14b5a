import asyncio
from http import HTTPStatus

import pytest
from dependency_injector import providers
from httpx import AsyncClient

from inventory_service.application.container import ApplicationContainer


@pytest.mark.asyncio
async def test_liveness(inventory_api_client: AsyncClient):
    response = await inventory_api_client.get("/health/live")

    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness(inventory_api_client: AsyncClient):
    response = await inventory_api_client.get("/health/ready")

    assert response.status_code == HTTPStatus.OK
    assert response.json()["ready"] is True


class SlowEventLog:
    async def ping(self):
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_readiness_times_out_on_slow_event_log(
    inventory_api_client: AsyncClient, inventory_container: ApplicationContainer
):
    # Given
    inventory_container.config.health.timeout.from_value(0.05)
    event_log = inventory_container.infrastructure_container.event_log_container.event_log

    # When
    with event_log.override(providers.Object(SlowEventLog())):
        response = await inventory_api_client.get("/health/ready")

    # Then
    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert response.json()["dependencies"]["event_log"] == {
        "status": "error",
        "error": "timeout",
    }
