"""
Dual-agent message handling for inbound WhatsApp messages.

Per message: fetch history, run the conversational and extraction agents
concurrently (each raced against its own deadline), decide whether to store
the order, fall back to the legacy single-call responder plus regex parsing
if either agent fails, append both turns to the session, and chunk the reply.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from models.agent import ConversationalResult, HandlerReply
from models.conversation import ConversationTurn, USER, ASSISTANT
from models.order import ExtractionResponse, ExtractionResult
from services.conversational_agent import ConversationalAgent
from services.extraction_agent import ExtractionAgent
from services.legacy_responder import LegacyResponder
from services.order_store import OrderStore
from services.session_store import SessionStore
from services.deadline import await_with_deadline
from services.order_parser import parse_order_from_response, to_extraction_result
from services.order_validation import shape_order
from services.prompts import LEGACY_SYSTEM_PROMPT
from services.text_chunker import chunk_text
from config import (
    AGENT_TIMEOUT_SECONDS,
    STORE_COMPLETENESS_THRESHOLD,
    PENDING_COMPLETENESS_THRESHOLD,
    MAX_MESSAGE_CHUNK_SIZE,
)

logger = logging.getLogger(__name__)

TECHNICAL_DIFFICULTY_MESSAGE = (
    "❌ Sorry, I'm temporarily unable to process your request. "
    "Please try again in a few moments."
)
SYSTEM_UNAVAILABLE_ERROR = "System temporarily unavailable"

HELP_MESSAGE = """🤖 *WhatsApp Order Assistant*

*Available commands:*
• Just send a message to place a materials order
• /reset - Clear the conversation history
• /help - Show this help

*How it works:*
• Tell me the site, the materials with quantities and units, and the delivery date and time
• I'll send you a summary, reply "ok" to confirm it
• Conversations are remembered for 2 hours

Send me your order! 😊"""

RESET_MESSAGE = "✅ Conversation history cleared. Let's start a new order!"


@dataclass
class _Outcome:
    """What one pass through the agents produced."""
    conversation: ConversationalResult
    extraction: ExtractionResponse
    should_store: bool
    fallback_used: bool = False


class MessageHandler:
    """Orchestrates one inbound message end to end. Provider and storage failures never escape."""

    def __init__(
        self,
        session_store: SessionStore,
        conversational_agent: ConversationalAgent,
        extraction_agent: ExtractionAgent,
        legacy_responder: LegacyResponder,
        order_store: OrderStore,
        agent_timeout: float = AGENT_TIMEOUT_SECONDS,
        max_chunk_size: int = MAX_MESSAGE_CHUNK_SIZE
    ):
        self.session_store = session_store
        self.conversational_agent = conversational_agent
        self.extraction_agent = extraction_agent
        self.legacy_responder = legacy_responder
        self.order_store = order_store
        self.agent_timeout = agent_timeout
        self.max_chunk_size = max_chunk_size

    async def handle_inbound_message(self, sender: str, text: str) -> HandlerReply:
        """
        Handle one inbound message and build the reply.

        Args:
            sender: Sender identifier (phone number, without transport prefix)
            text: Message text

        Returns:
            HandlerReply whose reply_segments are sent in order as one response

        Raises:
            ValueError: If sender or text is empty
        """
        text = (text or "").strip()
        if not sender or not text:
            raise ValueError("sender and text are required")

        logger.info(
            f"Received message from {sender}: {text[:50]!r}",
            extra={"sender": sender, "message_length": len(text)}
        )

        command_reply = self.handle_special_command(sender, text)
        if command_reply is not None:
            return command_reply

        history = self.session_store.get_history(sender)
        logger.info(f"Retrieved conversation history for {sender}: {len(history)} turns")

        start_time = time.time()
        outcome = await self._run_dual_agents(sender, text, history)
        if outcome is None:
            outcome = await self._run_legacy_fallback(sender, text, history)

        self.session_store.add_message(sender, ConversationTurn(role=USER, content=text))
        self.session_store.add_message(sender, ConversationTurn(role=ASSISTANT, content=outcome.conversation.message))

        order_stored = False
        data = outcome.extraction.data
        if outcome.should_store:
            order_stored = await self._store_order(sender, data)
        elif data.completeness >= PENDING_COMPLETENESS_THRESHOLD:
            logger.info(
                f"{self.pending_status(outcome.extraction)} for {sender}: "
                f"completeness={data.completeness}, confirmed={data.confirmed}",
                extra={"sender": sender, "site": data.site}
            )

        segments = chunk_text(outcome.conversation.message, self.max_chunk_size)
        logger.info(
            f"Sending response to {sender}: {len(segments)} chunk(s)",
            extra={
                "sender": sender,
                "response_length": len(outcome.conversation.message),
                "fallback_used": outcome.fallback_used,
                "confidence": outcome.conversation.confidence,
                "completeness": data.completeness,
                "active_sessions": self.session_store.active_session_count(),
                "processing_time_ms": int((time.time() - start_time) * 1000)
            }
        )

        return HandlerReply(
            reply_segments=segments,
            fallback_used=outcome.fallback_used,
            order_stored=order_stored,
            completeness=data.completeness,
            errors=list(outcome.extraction.errors)
        )

    def handle_special_command(self, sender: str, text: str) -> Optional[HandlerReply]:
        """
        Answer /help and /reset without calling any agent.

        Returns:
            HandlerReply for a recognised command, otherwise None
        """
        if not text.startswith("/"):
            return None

        command = text.split()[0].lower()
        if command == "/help":
            message = HELP_MESSAGE
        elif command == "/reset":
            self.session_store.reset_history(sender)
            message = RESET_MESSAGE
        else:
            return None

        logger.info(f"Special command {command} processed for {sender}")
        return HandlerReply(reply_segments=chunk_text(message, self.max_chunk_size), command=command)

    @staticmethod
    def pending_status(extraction: ExtractionResponse) -> str:
        """Describe why an order that was not stored is still pending."""
        data = extraction.data
        if data.completeness < STORE_COMPLETENESS_THRESHOLD:
            return "Order incomplete or not ready"
        if not data.confirmed:
            return "Order complete but not confirmed"
        if not extraction.is_valid:
            return "Order confirmed but failed validation"
        return "Order incomplete or not ready"

    async def _run_dual_agents(
        self,
        sender: str,
        text: str,
        history: List[ConversationTurn]
    ) -> Optional[_Outcome]:
        """Run both agents concurrently; None if either failed or timed out."""
        logger.info(f"Starting dual agent processing for {sender}")

        conversation, extraction = await asyncio.gather(
            await_with_deadline(
                self.conversational_agent.respond(text, history),
                self.agent_timeout,
                label="conversational_agent"
            ),
            await_with_deadline(
                self.extraction_agent.analyze(text, history),
                self.agent_timeout,
                label="extraction_agent"
            )
        )

        failures = [result.describe_failure() for result in (conversation, extraction) if not result.ok]
        if failures:
            logger.error(
                f"Dual agent processing failed for {sender}, falling back to legacy: {'; '.join(failures)}",
                extra={"sender": sender}
            )
            return None

        conversation_result: ConversationalResult = conversation.value
        extraction_response: ExtractionResponse = extraction.value
        data = extraction_response.data

        if not conversation_result.message.strip():
            logger.error(
                f"Conversational agent returned an empty reply for {sender}, falling back to legacy",
                extra={"sender": sender}
            )
            return None

        should_store = (
            data.completeness >= STORE_COMPLETENESS_THRESHOLD
            and data.confirmed
            and extraction_response.is_valid
        )

        logger.info(
            f"Dual agent processing completed for {sender}: "
            f"confidence={conversation_result.confidence}, completeness={data.completeness}, "
            f"confirmed={data.confirmed}, errors={len(extraction_response.errors)}, should_store={should_store}",
            extra={
                "sender": sender,
                "conversation_ms": conversation.elapsed_ms,
                "extraction_ms": extraction.elapsed_ms
            }
        )

        return _Outcome(
            conversation=conversation_result,
            extraction=extraction_response,
            should_store=should_store
        )

    async def _run_legacy_fallback(
        self,
        sender: str,
        text: str,
        history: List[ConversationTurn]
    ) -> _Outcome:
        """Single legacy call plus regex parsing; fixed apology if that fails too."""
        start_time = time.time()

        try:
            legacy_message = await self.legacy_responder.respond(text, LEGACY_SYSTEM_PROMPT, history)
        except Exception as e:
            logger.error(f"Legacy fallback also failed for {sender}: {e}", exc_info=True)
            return self._apology_outcome(start_time)

        if not legacy_message.strip():
            logger.error(f"Legacy fallback returned an empty reply for {sender}")
            return self._apology_outcome(start_time)

        parsed = parse_order_from_response(legacy_message, text)
        extraction_result: ExtractionResult = to_extraction_result(parsed, text)
        elapsed_ms = int((time.time() - start_time) * 1000)

        should_store = parsed.is_complete and extraction_result.confirmed
        logger.info(
            f"Legacy fallback processing completed for {sender}: "
            f"complete={parsed.is_complete}, confirmed={extraction_result.confirmed}",
            extra={"sender": sender, "fallback_ms": elapsed_ms}
        )

        return _Outcome(
            conversation=ConversationalResult(
                message=legacy_message,
                confidence=0.5,
                processing_time_ms=elapsed_ms,
                requires_follow_up=True
            ),
            extraction=ExtractionResponse(data=extraction_result, processing_time_ms=elapsed_ms),
            should_store=should_store,
            fallback_used=True
        )

    @staticmethod
    def _apology_outcome(start_time: float) -> _Outcome:
        elapsed_ms = int((time.time() - start_time) * 1000)
        return _Outcome(
            conversation=ConversationalResult(
                message=TECHNICAL_DIFFICULTY_MESSAGE,
                confidence=0.1,
                processing_time_ms=elapsed_ms,
                requires_follow_up=False
            ),
            extraction=ExtractionResponse.empty(SYSTEM_UNAVAILABLE_ERROR, elapsed_ms),
            should_store=False,
            fallback_used=True
        )

    async def _store_order(self, sender: str, data: ExtractionResult) -> bool:
        """Best-effort persistence; failures are logged, never raised."""
        order = shape_order(data, sender)
        if order is None:
            logger.warning(
                f"Could not convert extraction data to an order for {sender}",
                extra={"sender": sender, "site": data.site}
            )
            return False

        try:
            stored = await self.order_store.persist_order(order)
        except Exception as e:
            logger.error(f"Error storing order for {sender}: {e}", exc_info=True)
            return False

        if stored:
            logger.info(
                f"Order stored for {sender}: site={order.site}, materials={len(order.materials)}, "
                f"completeness={order.completeness}"
            )
        else:
            logger.error(f"Failed to store order for {sender}: site={order.site}")
        return stored
