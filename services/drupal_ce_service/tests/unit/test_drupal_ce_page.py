"""Unit tests for page fetching.

Covers the redirect, soft error, fatal error and success outcomes of
`DrupalCe.fetch_page`, plus message and page state side effects.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from respx import MockRouter

from services.drupal_ce_service.drupal_ce import DrupalCe, page_state_key
from services.drupal_ce_service.error_handling import ErrorCode, PageFetchError
from services.drupal_ce_service.render_context import (
    ExecutionContext,
    Redirect,
    RenderContext,
)
from services.drupal_ce_service.state.messages import MessageType
from services.drupal_ce_service.state.session_store import SessionState

CE_API_URL = "https://cms.example/ce-api"

PAGE = {
    "title": "Welcome",
    "content": {"element": "drupal-markup", "content": "<p>Hello</p>"},
}


@pytest.mark.asyncio
async def test_fetch_page_success_caches_page(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/node/1").mock(return_value=httpx.Response(200, json=PAGE))

    page = await drupal_ce.fetch_page("/node/1")

    assert page == PAGE
    assert drupal_ce.get_page("/node/1") == PAGE
    assert render_context.session.get_state(page_state_key("/node/1")).value == PAGE
    assert render_context.redirect is None
    assert render_context.response_status is None


@pytest.mark.asyncio
async def test_fetch_page_forwards_cookie_header(
    drupal_ce: DrupalCe, respx_mock: MockRouter
) -> None:
    route = respx_mock.get(f"{CE_API_URL}/node/1").mock(
        return_value=httpx.Response(200, json=PAGE)
    )

    await drupal_ce.fetch_page("/node/1")

    request = route.calls.last.request
    assert request.headers["cookie"] == "SESS123=abc"
    assert request.headers["user-agent"] != "pytest"


@pytest.mark.asyncio
async def test_fetch_page_caller_header_wins(drupal_ce: DrupalCe, respx_mock: MockRouter) -> None:
    route = respx_mock.get(f"{CE_API_URL}/node/1").mock(
        return_value=httpx.Response(200, json=PAGE)
    )

    await drupal_ce.fetch_page("/node/1", {"headers": {"Cookie": "explicit=1"}})

    assert route.calls.last.request.headers["cookie"] == "explicit=1"


@pytest.mark.asyncio
async def test_fetch_page_adds_content_format(
    drupal_ce_factory: Callable[..., DrupalCe], respx_mock: MockRouter
) -> None:
    drupal_ce = drupal_ce_factory(ADD_REQUEST_CONTENT_FORMAT="json")
    route = respx_mock.get(
        f"{CE_API_URL}/node/1", params={"_content_format": "json", "page": "2"}
    ).mock(return_value=httpx.Response(200, json=PAGE))

    await drupal_ce.fetch_page("/node/1", {"query": {"page": "2"}})

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_fetch_page_without_content_format_sends_no_query(
    drupal_ce: DrupalCe, respx_mock: MockRouter
) -> None:
    route = respx_mock.get(f"{CE_API_URL}/node/1").mock(
        return_value=httpx.Response(200, json=PAGE)
    )

    await drupal_ce.fetch_page("/node/1")

    assert route.calls.last.request.url.query == b""


@pytest.mark.asyncio
async def test_fetch_page_redirect_navigates(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    """A redirect supersedes rendering: no page state, no messages."""
    respx_mock.get(f"{CE_API_URL}/old").mock(
        return_value=httpx.Response(
            200,
            json={
                "redirect": {"url": "/new", "external": False, "statusCode": 301},
                "messages": {"success": ["Moved"]},
            },
        )
    )

    page = await drupal_ce.fetch_page("/old")

    assert page is None
    assert render_context.redirect == Redirect(url="/new", external=False, status_code=301)
    assert drupal_ce.get_page("/old") is None
    assert render_context.messages.get() == []


@pytest.mark.asyncio
async def test_fetch_page_external_redirect(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/go").mock(
        return_value=httpx.Response(
            200, json={"redirect": {"url": "https://elsewhere.example/", "external": True}}
        )
    )

    await drupal_ce.fetch_page("/go")

    assert render_context.redirect is not None
    assert render_context.redirect.external is True
    assert render_context.redirect.status_code == 302


@pytest.mark.asyncio
async def test_fetch_page_soft_error_renders_cms_content(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    not_found = {"title": "Page not found", "content": {"element": "drupal-markup"}}
    respx_mock.get(f"{CE_API_URL}/missing").mock(
        return_value=httpx.Response(404, json=not_found)
    )

    page = await drupal_ce.fetch_page("/missing")

    assert page == not_found
    assert render_context.response_status == 404
    assert drupal_ce.get_page("/missing") == not_found


@pytest.mark.asyncio
async def test_fetch_page_soft_error_without_outbound_response(
    drupal_ce_factory: Callable[..., DrupalCe], session: SessionState, respx_mock: MockRouter
) -> None:
    context = RenderContext(session, has_outbound_response=False)
    drupal_ce = drupal_ce_factory(context=context)
    not_found = {"title": "Page not found", "content": {"element": "drupal-markup"}}
    respx_mock.get(f"{CE_API_URL}/missing").mock(
        return_value=httpx.Response(404, json=not_found)
    )

    assert await drupal_ce.fetch_page("/missing") == not_found
    assert context.response_status is None


@pytest.mark.asyncio
async def test_fetch_page_soft_error_queues_messages(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/denied").mock(
        return_value=httpx.Response(
            403,
            json={
                "title": "Access denied",
                "content": {"element": "drupal-markup"},
                "messages": {"error": ["You are not authorized"]},
            },
        )
    )

    await drupal_ce.fetch_page("/denied")

    assert render_context.response_status == 403
    assert [m.message for m in render_context.messages.get()] == ["You are not authorized"]


@pytest.mark.asyncio
async def test_fetch_page_error_without_content_is_fatal(
    drupal_ce: DrupalCe, respx_mock: MockRouter
) -> None:
    url = f"{CE_API_URL}/broken"
    respx_mock.get(url).mock(return_value=httpx.Response(500, json={"message": "Boom"}))

    with pytest.raises(PageFetchError) as exc_info:
        await drupal_ce.fetch_page("/broken")

    error = exc_info.value
    assert error.error_code == ErrorCode.PAGE_FETCH_ERROR.value
    assert error.status_code == 500
    assert error.status_message == f'[GET] "{url}": 500 Internal Server Error'
    assert error.data == {"message": "Boom"}
    assert error.http_status == 500


@pytest.mark.asyncio
async def test_fetch_page_transport_failure_is_fatal(
    drupal_ce: DrupalCe, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/node/1").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(PageFetchError) as exc_info:
        await drupal_ce.fetch_page("/node/1")

    assert exc_info.value.status_code is None
    assert exc_info.value.http_status == 500
    assert exc_info.value.data is None


@pytest.mark.asyncio
async def test_fetch_page_custom_error_pages_makes_every_error_fatal(
    drupal_ce_factory: Callable[..., DrupalCe],
    render_context: RenderContext,
    respx_mock: MockRouter,
) -> None:
    drupal_ce = drupal_ce_factory(CUSTOM_ERROR_PAGES=True)
    not_found = {"title": "Page not found", "content": {"element": "drupal-markup"}}
    respx_mock.get(f"{CE_API_URL}/missing").mock(
        return_value=httpx.Response(404, json=not_found)
    )

    with pytest.raises(PageFetchError) as exc_info:
        await drupal_ce.fetch_page("/missing")

    assert exc_info.value.http_status == 404
    assert exc_info.value.data == not_found
    assert render_context.response_status is None


@pytest.mark.asyncio
async def test_fetch_page_queues_messages_errors_first(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/node/1").mock(
        return_value=httpx.Response(
            200,
            json={**PAGE, "messages": {"success": ["Saved", "Published"], "error": ["Warn"]}},
        )
    )

    await drupal_ce.fetch_page("/node/1")

    messages = drupal_ce.get_messages()
    assert [(m.type, m.message) for m in messages] == [
        (MessageType.ERROR, "Warn"),
        (MessageType.SUCCESS, "Saved"),
        (MessageType.SUCCESS, "Published"),
    ]
    assert messages is render_context.messages.get()


@pytest.mark.asyncio
async def test_fetch_page_server_context_skips_messages(
    drupal_ce_factory: Callable[..., DrupalCe], session: SessionState, respx_mock: MockRouter
) -> None:
    context = RenderContext(session, ExecutionContext.SERVER)
    drupal_ce = drupal_ce_factory(context=context)
    respx_mock.get(f"{CE_API_URL}/node/1").mock(
        return_value=httpx.Response(200, json={**PAGE, "messages": {"success": ["Saved"]}})
    )

    page = await drupal_ce.fetch_page("/node/1")

    assert page["title"] == "Welcome"
    assert context.messages.get() == []


@pytest.mark.asyncio
async def test_fetch_page_repeated_fetch_replaces_cached_page(
    drupal_ce: DrupalCe, respx_mock: MockRouter
) -> None:
    first: dict[str, Any] = {**PAGE, "title": "First"}
    second: dict[str, Any] = {**PAGE, "title": "Second"}
    respx_mock.get(f"{CE_API_URL}/node/1").mock(
        side_effect=[httpx.Response(200, json=first), httpx.Response(200, json=second)]
    )

    await drupal_ce.fetch_page("/node/1")
    await drupal_ce.fetch_page("/node/1")

    assert drupal_ce.get_page("/node/1") == second


@pytest.mark.asyncio
async def test_fetch_page_repeated_identical_fetch_is_stable(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{CE_API_URL}/node/1").mock(
        side_effect=[httpx.Response(200, json=PAGE), httpx.Response(200, json=PAGE)]
    )

    first = await drupal_ce.fetch_page("/node/1")
    second = await drupal_ce.fetch_page("/node/1")

    assert first == second == PAGE
    assert drupal_ce.get_page("/node/1") == PAGE
    assert render_context.session.keys().count(page_state_key("/node/1")) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "redirect",
    [{"external": True}, {"url": "/new", "statusCode": "permanent"}, "not-an-object"],
)
async def test_fetch_page_malformed_redirect_is_fatal(
    drupal_ce: DrupalCe, render_context: RenderContext, respx_mock: MockRouter, redirect: Any
) -> None:
    respx_mock.get(f"{CE_API_URL}/old").mock(
        return_value=httpx.Response(200, json={"redirect": redirect})
    )

    with pytest.raises(PageFetchError) as exc_info:
        await drupal_ce.fetch_page("/old")

    assert exc_info.value.status_code is None
    assert exc_info.value.http_status == 500
    assert exc_info.value.data == {"redirect": redirect}
    assert render_context.redirect is None
    assert drupal_ce.get_page("/old") is None


async def test_process_fetch_options_applies_defaults_and_forwarding(
    drupal_ce: DrupalCe,
) -> None:
    options = drupal_ce.process_fetch_options({"query": {"page": "1"}})

    assert options == {
        "credentials": "include",
        "query": {"page": "1"},
        "base_url": CE_API_URL,
        "headers": {"cookie": "SESS123=abc"},
    }


async def test_process_fetch_options_with_menu_base(drupal_ce: DrupalCe) -> None:
    options = drupal_ce.process_fetch_options(base_url="https://menus.example")

    assert options["base_url"] == "https://menus.example"
