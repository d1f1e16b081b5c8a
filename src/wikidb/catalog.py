"""
Query Catalog

Maps each wikidb action to the SQL statement that implements it. Loaded
once before the channel opens for traffic and read-only afterwards, so it is
safe to share between concurrent handlers.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_QUERIES_FILE = Path(__file__).with_name("db-queries.env")


class Action(str, enum.Enum):
    ALL_PAGES = "all-pages"
    GET_PAGE = "get-page"
    SAVE_PAGE = "save-page"
    UPDATE_PAGE = "update-page"
    DELETE_PAGE = "delete-page"

    @classmethod
    def parse(cls, value: str) -> Optional["Action"]:
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Statement:
    action: Action
    sql: str


class QueryCatalogError(Exception):
    """Raised at startup when the catalog source is unusable."""


class QueryCatalog:

    def __init__(self, queries: Mapping[Action, str]):
        missing = [a.value for a in Action if not (queries.get(a) or "").strip()]
        if missing:
            raise QueryCatalogError(f"Missing SQL queries: {', '.join(missing)}")
        self._statements = MappingProxyType(
            {a: Statement(action=a, sql=queries[a].strip()) for a in Action}
        )

    def statement(self, action: Action) -> Statement:
        return self._statements[action]

    def __getitem__(self, action: Action) -> Statement:
        return self._statements[action]

    def __len__(self) -> int:
        return len(self._statements)


def load_query_catalog(path: Union[str, Path, None] = None) -> QueryCatalog:
    """
    Load the catalog from a dotenv-style key/value file whose keys are the
    action names (all-pages, get-page, ...).

    Raises:
        QueryCatalogError: If the file is absent or a key is missing
    """
    path = Path(path) if path else DEFAULT_QUERIES_FILE
    if not path.is_file():
        raise QueryCatalogError(f"Query file not found: {path}")

    values = dotenv_values(path)
    catalog = QueryCatalog({a: values.get(a.value) for a in Action})
    logger.info("Query catalog loaded: file=%s queries=%d", path, len(catalog))
    return catalog
