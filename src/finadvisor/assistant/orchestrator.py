"""Conversation orchestrator.

Drives one user turn: optimistic append of the user's message, the model
round trip, context replacement, the assistant reply, interpretation of
the function result, side effects and persistence.
"""

import logging

from ..config import APOLOGY_REPLY, FALLBACK_REPLY
from ..llm import ChatReply, ChatService
from ..memory import ChatSession, Message, SessionWriter
from .charts import adapt_chart
from .effects import SideEffectCoordinator
from .events import ActionableEvent
from .interpreter import interpret
from .models import PendingNotification, SendResult
from .ui import UIBridge

logger = logging.getLogger(__name__)


class ConversationOrchestrator:
    """Top-level controller of the finance assistant chat.

    Hidden design decisions:
    - Re-entrancy policy (a busy session rejects further sends)
    - Which failures surface to the user (transport failures only)
    - When the session is persisted (after every turn, in the background)
    """

    def __init__(
        self,
        service: ChatService,
        writer: SessionWriter,
        coordinator: SideEffectCoordinator,
        ui: UIBridge
    ):
        self._service = service
        self._writer = writer
        self._coordinator = coordinator
        self._ui = ui

    async def open_session(self, user_id: str, display_name: str | None = None) -> ChatSession:
        """Hydrate the session of a newly signed-in user."""
        return await self._writer.store.load(user_id, display_name)

    async def send(self, user_text: str, session: ChatSession) -> SendResult:
        """Process one user message.

        The user's message is appended before the model is called and is
        kept whatever happens afterwards. Transport and response failures
        are answered with an apology message instead of propagating.

        Args:
            user_text: The user's message; blank text is ignored
            session: Session of the signed-in user, mutated in place

        Returns:
            SendResult with the session, the notification to display (if
            any) and ``accepted=False`` when the call was a no-op
        """
        text = (user_text or "").strip()
        if not text or not session.user_id or session.closed:
            return SendResult(session, accepted=False)
        if session.typing:
            logger.warning("Rejected send for %s: a reply is still pending", session.user_id)
            return SendResult(session, accepted=False)

        session.append_message(Message(text=text, sender="user"))
        session.typing = True
        try:
            try:
                reply = await self._service.chat(
                    text,
                    session.user_id,
                    list(session.context),
                    self._ui.selected_period,
                )
                assistant_message = self._assistant_message(reply)
            except Exception:
                logger.error("Chat turn failed for %s", session.user_id, exc_info=True)
                session.append_message(Message(text=APOLOGY_REPLY, sender="assistant"))
                return SendResult(session)

            session.replace_context(reply.history)
            session.append_message(assistant_message)

            event, notification = await self._apply(reply)
            return SendResult(session, notification=notification, event=event)
        finally:
            if not session.closed:
                self._writer.submit(session)
            session.typing = False

    async def clear_history(self, session: ChatSession) -> ChatSession:
        """Wipe the transcript and context of ``session``'s user.

        Queued writes of the old session are dropped so they cannot
        resurrect the cleared history.

        Args:
            session: Session being cleared; it is closed afterwards

        Returns:
            The fresh default session that replaces ``session``
        """
        session.closed = True
        self._coordinator.cancel_navigation()
        self._writer.discard(session.user_id)
        await self._writer.flush(session.user_id)
        return await self._writer.store.clear(session.user_id, session.display_name)

    async def close_session(self, session: ChatSession) -> None:
        """Sign-out: finish pending writes and drop in-memory state."""
        await self._writer.flush(session.user_id)
        session.closed = True
        self._coordinator.cancel_navigation()
        session.messages = []
        session.context = []

    def _assistant_message(self, reply: ChatReply) -> Message:
        result = reply.function_result
        chart = adapt_chart(result.chart_data if result else None)
        return Message(
            text=reply.text.strip() or FALLBACK_REPLY,
            sender="assistant",
            function_called=reply.function_called,
            function_result=result,
            chart_data=chart.model_dump() if chart else None,
        )

    async def _apply(self, reply: ChatReply) -> tuple[ActionableEvent | None, PendingNotification | None]:
        # The reply is already in the transcript; failures here degrade silently
        try:
            event = interpret(reply.function_called, reply.function_result)
            if event is None:
                return None, None
            logger.debug("Function %s produced %s", reply.function_called, event.kind)
            return event, await self._coordinator.apply(event)
        except Exception:
            logger.warning("Side effects failed for %s", reply.function_called, exc_info=True)
            return None, None
