"""Per-request render context.

Carries the capabilities a content fetch may use: the session state, the
inbound request headers, the outbound response, and navigation. The
execution context tag decides whether messages may be queued; the presence
of an outbound response decides whether its status may be changed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.state.messages import Message, MessageQueue
from services.drupal_ce_service.state.session_store import SessionState, StateCell

logger = create_service_logger("drupal_ce.render_context")


class ExecutionContext(str, Enum):
    """Where a fetch runs.

    PRESENTATION: serving a client-visible render with session state.
    SERVER: server-only request handling (no client-visible session).
    """

    PRESENTATION = "presentation"
    SERVER = "server"


class Redirect(BaseModel):
    """Redirect instruction returned by the CMS in a page payload."""

    url: str
    external: bool = False
    status_code: int = Field(default=302, alias="statusCode")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RenderContext:
    """Capabilities of the request on whose behalf content is fetched."""

    def __init__(
        self,
        session: SessionState,
        execution_context: ExecutionContext = ExecutionContext.PRESENTATION,
        *,
        inbound_headers: Mapping[str, str] | None = None,
        has_outbound_response: bool = False,
    ) -> None:
        self.session = session
        self.execution_context = execution_context
        self.inbound_headers = inbound_headers or {}
        self.has_outbound_response = has_outbound_response
        self.messages = MessageQueue(session)
        self.redirect: Redirect | None = None
        self.response_status: int | None = None

    @property
    def is_presentation(self) -> bool:
        return self.execution_context == ExecutionContext.PRESENTATION

    def get_state(self, key: str, initializer: Callable[[], Any] | None = None) -> StateCell:
        return self.session.get_state(key, initializer)

    def push_messages(self, messages: Mapping[str, Any] | None) -> int:
        """Queue CMS messages; skipped outside the presentation context."""
        if not self.is_presentation:
            logger.debug("Skipping message push outside presentation context")
            return 0
        return self.messages.push(messages)

    def add_message(self, message: Message) -> None:
        if not self.is_presentation:
            logger.debug("Skipping message outside presentation context")
            return
        self.messages.append(message)

    def set_response_status(self, status_code: int) -> None:
        """Record the status for the outbound response, if the request has one."""
        if not self.has_outbound_response:
            logger.debug("No outbound response attached; status not set", status=status_code)
            return
        self.response_status = status_code

    async def navigate_to(self, redirect: Redirect) -> None:
        """Record navigation to `redirect`; it supersedes rendering."""
        logger.info(
            "Navigating to CMS redirect",
            url=redirect.url,
            external=redirect.external,
            status_code=redirect.status_code,
        )
        self.redirect = redirect
