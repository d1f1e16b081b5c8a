from fastapi import Request

from src.web.services.wikidb_client import WikiDbClient


def get_wikidb_client(request: Request) -> WikiDbClient:
    """Get the wikidb client from app state."""
    return request.app.state.wikidb_client
