"""
Pages API Router

Handles listing, reading, creating, updating and deleting wiki pages. Each
route is one request to the wikidb tier; writes answer with a 303 redirect.
"""

from typing import Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from src.web.dependencies import get_wikidb_client
from src.web.middleware import get_request_id
from src.web.models import PageListResponse, PageLookupResponse
from src.web.services.wikidb_client import WikiDbClient

router = APIRouter()

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def request_params(request: Request) -> Dict[str, str]:
    """Query-string parameters merged with form fields (form wins)."""
    params = dict(request.query_params)
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        params.update({k: v for k, v in form.items() if isinstance(v, str)})
    return params


@router.get("/getAll", response_model=PageListResponse, response_model_exclude_none=True)
async def index(
    request: Request,
    wikidb: WikiDbClient = Depends(get_wikidb_client),
):
    """List every page."""
    reply = await wikidb.all_pages(get_request_id(request))
    return PageListResponse(**reply)


@router.get("/apis/{uid}", response_model=PageLookupResponse, response_model_exclude_none=True)
async def render_page(
    uid: str,
    request: Request,
    wikidb: WikiDbClient = Depends(get_wikidb_client),
):
    """Fetch one page; a missing page is {"found": false} with status 200."""
    reply = await wikidb.get_page(uid, get_request_id(request))
    return PageLookupResponse(**reply)


@router.post("/create")
async def create_page(
    request: Request,
    wikidb: WikiDbClient = Depends(get_wikidb_client),
):
    """Create a page from the `name` parameter."""
    params = await request_params(request)
    await wikidb.save_page(params.get("name"), get_request_id(request))
    return RedirectResponse(url="/getAll", status_code=303)


@router.post("/save")
async def update_page(
    request: Request,
    wikidb: WikiDbClient = Depends(get_wikidb_client),
):
    """Rename the page `uid` to `name`."""
    params = await request_params(request)
    uid = params.get("uid")
    await wikidb.update_page(uid, params.get("name"), get_request_id(request))
    return RedirectResponse(url=f"/apis/{uid}", status_code=303)


@router.post("/delete")
async def delete_page(
    request: Request,
    wikidb: WikiDbClient = Depends(get_wikidb_client),
):
    """Delete the page `uid`."""
    params = await request_params(request)
    await wikidb.delete_page(params.get("uid"), get_request_id(request))
    return RedirectResponse(url="/getAll", status_code=303)
