import pytest
from fastapi.testclient import TestClient

from src.wikidb.config import WikiDbConfig
from src.wikidb.executor import QueryError
from src.wikidb.service import create_app


@pytest.fixture
def config():
    return WikiDbConfig(wikidb_queue="wikidb.queue", consumer_instances=2, reply_timeout=2)


def test_health_reports_consumers(config, pages_executor):
    with TestClient(create_app(config, executor=pages_executor)) as client:
        r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "consumers": True}
    assert pages_executor.closed is True


def test_bus_endpoint_replies(config, pages_executor):
    pages_executor.add("Home")
    with TestClient(create_app(config, executor=pages_executor)) as client:
        r = client.post("/bus/wikidb.queue", json={"headers": {"action": "all-pages"}, "body": {}})
    assert r.status_code == 200
    assert r.json() == {"body": {"pages": [{"uid": 1, "name": "Home"}]}}


def test_bus_endpoint_reports_failure_code(config, pages_executor):
    with TestClient(create_app(config, executor=pages_executor)) as client:
        r = client.post("/bus/wikidb.queue", json={"headers": {}, "body": {}})
    assert r.status_code == 400
    assert r.json() == {"failureCode": 0, "message": "No action header specified"}


def test_bus_endpoint_unknown_address(config, pages_executor):
    with TestClient(create_app(config, executor=pages_executor)) as client:
        r = client.post("/bus/other.queue", json={"headers": {"action": "all-pages"}, "body": {}})
    assert r.status_code == 404


def test_startup_fails_without_database(config, unreachable_executor, caplog):
    app = create_app(config, executor=unreachable_executor)
    with pytest.raises(QueryError):
        with TestClient(app):
            pass
    assert "Could not open a database connection" in caplog.text
