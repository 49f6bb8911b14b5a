import asyncio
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from fulfillment_common.logging_config import setup_logging
from order_service.application.container import ApplicationContainer
from order_service.infrastructure.db_schema import metadata
from order_service.presentation import api
from order_service.presentation.container import PresentationContainer

CONFIG_PATH = Path(__file__).with_name("config.yaml")

logger = logging.getLogger(__name__)


def build_api(container: ApplicationContainer) -> FastAPI:
    app = FastAPI(title="Order Service")
    app.include_router(api.router)
    container.wire(modules=[api])
    app.container = container
    return app


async def main():
    presentation_container = PresentationContainer()
    presentation_container.config.from_yaml(CONFIG_PATH, required=True)
    config = presentation_container.config
    setup_logging("order-service", config.logging.level())

    application = presentation_container.application
    infrastructure = application.infrastructure_container
    engine = infrastructure.async_engine()

    try:
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    except Exception:
        logger.critical("Order store is unreachable, exiting", exc_info=True)
        raise

    app = build_api(application)
    outbox_worker = presentation_container.outbox_worker()
    event_consumer = presentation_container.event_consumer_worker()
    server = uvicorn.Server(
        uvicorn.Config(
            app, host=config.http.host(), port=config.http.port(), log_level="info"
        )
    )

    async with infrastructure.event_log_container.event_log():
        outbox_task = asyncio.create_task(outbox_worker.run())
        consumer_task = asyncio.create_task(event_consumer.run())
        try:
            await server.serve()
        finally:
            logger.info("Shutting down workers")
            outbox_worker.stop()
            event_consumer.stop()
            await asyncio.gather(outbox_task, consumer_task)
            await engine.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
