import asyncio

import pytest

from fulfillment_common.health import check_readiness


async def healthy():
    pass


async def unreachable():
    raise ConnectionError("connection refused")


async def hanging():
    await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_ready_when_every_check_passes():
    report = await check_readiness({"database": healthy, "event_log": healthy}, 0.5)

    assert report.ready is True
    assert {name: d.status for name, d in report.dependencies.items()} == {
        "database": "ok",
        "event_log": "ok",
    }


@pytest.mark.asyncio
async def test_failed_check_is_reported():
    report = await check_readiness({"database": healthy, "event_log": unreachable}, 0.5)

    assert report.ready is False
    assert report.dependencies["database"].status == "ok"
    assert report.dependencies["event_log"].status == "error"
    assert report.dependencies["event_log"].error == "connection refused"


@pytest.mark.asyncio
async def test_slow_check_is_bounded_by_timeout():
    report = await asyncio.wait_for(
        check_readiness({"database": hanging}, 0.05), timeout=1
    )

    assert report.ready is False
    assert report.dependencies["database"].error == "timeout"
