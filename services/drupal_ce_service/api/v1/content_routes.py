"""Drupal CE presentation API v1 routes.

Endpoints used by the front-end to load page and menu data for the
current session. Pages answer with the CMS payload, a redirect, or the
structured error of a fatal fetch failure.
"""

from __future__ import annotations

import asyncio
from typing import Any

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.protocols import DrupalCeProtocol
from services.drupal_ce_service.render_context import RenderContext

router = APIRouter()
logger = create_service_logger("drupal_ce.content_routes")


def _normalize_path(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def _redirect_response(render_context: RenderContext) -> RedirectResponse | None:
    redirect = render_context.redirect
    if redirect is None:
        return None
    return RedirectResponse(url=redirect.url, status_code=redirect.status_code)


@router.get("/page", response_model=None)
@inject
async def get_page(
    drupal_ce: FromDishka[DrupalCeProtocol],
    render_context: FromDishka[RenderContext],
    path: str = Query(..., min_length=1, description="Drupal page path, e.g. /node/1"),
) -> Response:
    """Fetch a page from the CMS.

    Redirect payloads are answered with an HTTP redirect. CMS error pages with
    renderable content are returned with the upstream status code.
    """
    page = await drupal_ce.fetch_page(_normalize_path(path))

    redirect_response = _redirect_response(render_context)
    if redirect_response is not None:
        return redirect_response

    return JSONResponse(content=page, status_code=render_context.response_status or 200)


@router.get("/page/cached", response_model=None)
@inject
async def get_cached_page(
    drupal_ce: FromDishka[DrupalCeProtocol],
    path: str = Query(..., min_length=1, description="Drupal page path, e.g. /node/1"),
) -> JSONResponse:
    """Return the page data last fetched for `path` in this session, if any."""
    return JSONResponse(content=drupal_ce.get_page(_normalize_path(path)))


@router.get("/menu/{name}", response_model=None)
@inject
async def get_menu(name: str, drupal_ce: FromDishka[DrupalCeProtocol]) -> JSONResponse:
    """Fetch a menu; returns null and queues an error message on failure."""
    return JSONResponse(content=await drupal_ce.fetch_menu(name))


@router.get("/render", response_model=None)
@inject
async def get_render_data(
    drupal_ce: FromDishka[DrupalCeProtocol],
    render_context: FromDishka[RenderContext],
    path: str = Query(..., min_length=1, description="Drupal page path, e.g. /node/1"),
    menus: list[str] | None = Query(None, description="Menu names to load"),
) -> Response:
    """Load a page and its menus concurrently, plus the queued messages."""
    menus = menus or []
    page, *menu_payloads = await asyncio.gather(
        drupal_ce.fetch_page(_normalize_path(path)),
        *(drupal_ce.fetch_menu(name) for name in menus),
    )

    redirect_response = _redirect_response(render_context)
    if redirect_response is not None:
        return redirect_response

    content: dict[str, Any] = {
        "page": page,
        "menus": dict(zip(menus, menu_payloads)),
        "messages": [
            message.model_dump(mode="json") for message in render_context.messages.consume()
        ],
    }
    return JSONResponse(content=content, status_code=render_context.response_status or 200)


@router.get("/messages")
@inject
async def get_messages(render_context: FromDishka[RenderContext]) -> list[dict[str, str]]:
    """Return and clear the messages queued for this session."""
    consumed = render_context.messages.consume()
    logger.debug("Messages consumed", count=len(consumed))
    return [message.model_dump(mode="json") for message in consumed]
