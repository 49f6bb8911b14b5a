import asyncio
import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from fulfillment_common.event_log import EventLog

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Awaitable[Any]]


class DependencyStatus(BaseModel):
    status: str
    error: str | None = None


class ReadinessReport(BaseModel):
    ready: bool
    dependencies: dict[str, DependencyStatus]


def database_check(engine: AsyncEngine) -> HealthCheck:
    async def check():
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    return check


def event_log_check(event_log: EventLog) -> HealthCheck:
    return event_log.ping


async def check_readiness(checks: dict[str, HealthCheck], timeout: float) -> ReadinessReport:
    """Run every check concurrently, each bounded by timeout seconds."""

    async def run(name: str, check: HealthCheck) -> tuple[str, DependencyStatus]:
        try:
            await asyncio.wait_for(check(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Readiness check {name} timed out after {timeout}s")
            return name, DependencyStatus(status="error", error="timeout")
        except Exception as e:
            logger.warning(f"Readiness check {name} failed: {e}")
            return name, DependencyStatus(status="error", error=str(e))
        return name, DependencyStatus(status="ok")

    results = await asyncio.gather(*(run(name, p) for name, p in checks.items()))
    dependencies = dict(results)
    return ReadinessReport(
        ready=all(d.status == "ok" for d in dependencies.values()),
        dependencies=dependencies,
    )
