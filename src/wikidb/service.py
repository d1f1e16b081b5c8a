"""
wikidb Service

FastAPI application of the data-access tier. On startup it loads the query
catalog, checks the database is reachable and registers the dispatcher
consumers on its channel address; the bus endpoint then carries requests
from the web tier to them.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import uvicorn

from src.channel.bridge import create_bus_router
from src.channel.local import LocalChannel
from src.wikidb.catalog import load_query_catalog
from src.wikidb.config import WikiDbConfig, get_config
from src.wikidb.deploy import build_executor, deploy_dispatchers
from src.wikidb.executor import QueryError, QueryExecutor

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[WikiDbConfig] = None,
    executor: Optional[QueryExecutor] = None,
) -> FastAPI:
    """
    Build the wikidb application.

    Args:
        config: Service configuration (read from the environment if omitted)
        executor: Query executor to use instead of the MySQL one
    """
    config = config or get_config()
    channel = LocalChannel(reply_timeout=config.reply_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.getLogger().setLevel(config.log_level.upper())
        logger.info("Starting wikidb service...")

        # fails startup when a query is missing
        catalog = load_query_catalog(config.queries_file)

        db = executor or build_executor(config)
        try:
            await db.ping()
        except QueryError:
            logger.error("Could not open a database connection", exc_info=True)
            raise

        registrations = deploy_dispatchers(
            channel, config.wikidb_queue, catalog, db, config.consumer_instances
        )
        app.state.channel = channel
        app.state.executor = db
        app.state.config = config
        logger.info(
            "wikidb service started: address=%s consumers=%d",
            config.wikidb_queue, len(registrations)
        )

        yield

        logger.info("Shutting down wikidb service...")
        for registration in registrations:
            registration.unregister()
        await channel.close()
        await db.close()
        logger.info("wikidb service shut down complete")

    app = FastAPI(
        title="wikidb",
        description="Data-access tier of the wiki backend",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(create_bus_router(channel), tags=["Bus"])

    @app.get("/health")
    async def health():
        return {"status": "ok", "consumers": channel.has_consumer(config.wikidb_queue)}

    return app


app = create_app()


# CLI entrypoint
if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "src.wikidb.service:app",
        host=config.wikidb_host,
        port=config.wikidb_port,
        reload=False,
        log_level=config.log_level.lower()
    )
