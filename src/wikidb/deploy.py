"""
Deployment helpers shared by the wikidb service and the web tier's
single-process mode.
"""

from typing import List

from src.channel.local import ConsumerRegistration, LocalChannel
from src.wikidb.catalog import QueryCatalog
from src.wikidb.config import WikiDbConfig
from src.wikidb.dispatcher import ActionDispatcher
from src.wikidb.executor import QueryExecutor
from src.wikidb.handlers import PageHandlers
from src.wikidb.mysql_executor import MySQLQueryExecutor


def build_executor(config: WikiDbConfig) -> MySQLQueryExecutor:
    return MySQLQueryExecutor(
        host=config.mysql_host,
        port=config.mysql_port,
        user=config.mysql_user,
        password=config.mysql_password,
        database=config.mysql_database,
        pool_size=config.db_pool_size,
        pool_timeout=config.db_pool_timeout,
        connect_timeout=config.db_connect_timeout,
    )


def deploy_dispatchers(
    channel: LocalChannel,
    address: str,
    catalog: QueryCatalog,
    executor: QueryExecutor,
    instances: int = 1,
) -> List[ConsumerRegistration]:
    """
    Register `instances` dispatchers as consumers of address. They share the
    read-only catalog and the executor's connection pool.
    """
    handlers = PageHandlers(catalog, executor)
    return [
        channel.consumer(address, ActionDispatcher(handlers))
        for _ in range(instances)
    ]
