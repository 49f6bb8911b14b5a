import asyncio
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from fulfillment_common.logging_config import setup_logging
from inventory_service.application.container import ApplicationContainer
from inventory_service.infrastructure.db_schema import metadata
from inventory_service.presentation import api
from inventory_service.presentation.container import PresentationContainer

CONFIG_PATH = Path(__file__).with_name("config.yaml")

logger = logging.getLogger(__name__)


def build_api(container: ApplicationContainer) -> FastAPI:
    app = FastAPI(title="Inventory Service")
    app.include_router(api.router)
    container.wire(modules=[api])
    app.container = container
    return app


async def main():
    presentation_container = PresentationContainer()
    presentation_container.config.from_yaml(CONFIG_PATH, required=True)
    config = presentation_container.config
    setup_logging("inventory-service", config.logging.level())

    application = presentation_container.application
    infrastructure = application.infrastructure_container
    engine = infrastructure.async_engine()

    try:
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    except Exception:
        logger.critical("Inventory store is unreachable, exiting", exc_info=True)
        raise

    app = build_api(application)
    reconciler = presentation_container.reconciler_worker()
    server = uvicorn.Server(
        uvicorn.Config(
            app, host=config.http.host(), port=config.http.port(), log_level="info"
        )
    )

    async with infrastructure.event_log_container.event_log():
        reconciler_task = asyncio.create_task(reconciler.run())
        try:
            await server.serve()
        finally:
            logger.info("Shutting down reconciler")
            reconciler.stop()
            await reconciler_task
            await engine.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
