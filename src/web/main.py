"""
Web tier Main Application

This is the FastAPI application entry point for the HTTP-facing service.
Requests are forwarded to the wikidb tier over the channel selected by
`channel_mode`: the wikidb service over HTTP, or a dispatcher hosted in
this process.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import httpx
import uvicorn

from src.channel.base import Channel
from src.channel.http_channel import HttpChannel
from src.channel.local import LocalChannel
from src.web.config import WebConfig, get_config
from src.web.exceptions import WikiException
from src.web.middleware import RequestContextMiddleware
from src.web.routers import pages
from src.web.services.wikidb_client import WikiDbClient
from src.wikidb.catalog import load_query_catalog
from src.wikidb.config import get_config as get_wikidb_config
from src.wikidb.deploy import build_executor, deploy_dispatchers
from src.wikidb.executor import QueryError, QueryExecutor

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[WebConfig] = None,
    executor: Optional[QueryExecutor] = None,
) -> FastAPI:
    """
    Build the web application.

    Args:
        config: Service configuration (read from the environment if omitted)
        executor: Query executor for local mode instead of the MySQL one
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for FastAPI app.

        Handles startup and shutdown:
        - On startup: Open the channel to wikidb (and, in local mode, the
          dispatcher and its database executor)
        - On shutdown: Close them again
        """
        logging.getLogger().setLevel(config.log_level)
        logger.info("Starting web service...")
        logger.info(f"Configuration: channel={config.channel_mode}, "
                    f"wikidb={config.wikidb_url}, "
                    f"address={config.wikidb_queue}, "
                    f"reply_timeout={config.reply_timeout}s")

        db: Optional[QueryExecutor] = None
        channel: Channel
        if config.channel_mode == "local":
            wikidb_config = get_wikidb_config()
            catalog = load_query_catalog(wikidb_config.queries_file)
            db = executor or build_executor(wikidb_config)
            try:
                await db.ping()
            except QueryError:
                logger.error("Could not open a database connection", exc_info=True)
                raise
            channel = LocalChannel(reply_timeout=config.reply_timeout)
            deploy_dispatchers(
                channel, config.wikidb_queue, catalog, db, wikidb_config.consumer_instances
            )
        else:
            # read timeout is governed per request by reply_timeout
            timeout = httpx.Timeout(config.reply_timeout, connect=config.http_connect_timeout)
            http_client = httpx.AsyncClient(timeout=timeout)
            channel = HttpChannel(
                base_url=config.wikidb_url,
                http_client=http_client,
                reply_timeout=config.reply_timeout,
            )

        app.state.channel = channel
        app.state.wikidb_client = WikiDbClient(channel, config.wikidb_queue)
        app.state.config = config

        logger.info("Web service started successfully")

        yield

        logger.info("Shutting down web service...")
        await channel.close()
        if db is not None:
            await db.close()
        logger.info("Web service shut down complete")

    app = FastAPI(
        title="Wiki",
        description="HTTP tier of the wiki backend",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(pages.router, prefix="", tags=["Pages"])

    @app.exception_handler(WikiException)
    async def wiki_exception_handler(request: Request, exc: WikiException):
        """Handle wikidb failures and channel errors."""
        logger.error(
            f"Wiki Exception: {exc.message}",
            extra={"status_code": exc.status_code, "details": exc.details}
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.error(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation error",
                "details": str(exc.errors())
            }
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": str(exc)
            }
        )

    @app.get("/")
    async def root():
        """Root endpoint - health check."""
        return {
            "service": "Wiki web tier",
            "status": "running",
            "version": "1.0.0"
        }

    return app


app = create_app()


# CLI entrypoint
if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "src.web.main:app",
        host=config.web_host,
        port=config.web_port,
        workers=config.web_workers,
        reload=False,
        log_level=config.log_level.lower()
    )
