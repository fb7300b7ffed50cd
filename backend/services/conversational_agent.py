"""Conversational agent: natural-language replies to the worker."""
import logging
import re
import time
from typing import List, Optional

from models.agent import ConversationalResult
from models.conversation import ConversationTurn
from services.llm_client import LLMClient
from services.prompts import CONVERSATIONAL_SYSTEM_PROMPT
from config import CONVERSATION_MODEL, CONVERSATION_HISTORY_WINDOW

logger = logging.getLogger(__name__)


class ConversationalAgent:
    """Generates the user-facing reply. Provider errors propagate to the caller."""

    BASE_CONFIDENCE = 0.7
    MIN_CONFIDENCE = 0.1
    MAX_CONFIDENCE = 1.0

    SUMMARY_WORDS = ["summary", "recap"]
    CONFIRMATION_REQUESTS = ["reply 'ok'", 'reply "ok"', "just reply ok", "reply ok"]
    APOLOGY_PHRASES = ["sorry", "i can't", "i cannot", "unable to"]
    EMOJI_PATTERN = re.compile(r"[😊🏗📦⏰✅👍]")

    def __init__(
        self,
        llm_client: LLMClient,
        model: str = CONVERSATION_MODEL,
        history_window: int = CONVERSATION_HISTORY_WINDOW
    ):
        self.llm_client = llm_client
        self.model = model
        self.history_window = history_window
        logger.info(f"ConversationalAgent initialized with model: {model}")

    async def respond(
        self,
        user_text: str,
        history: Optional[List[ConversationTurn]] = None
    ) -> ConversationalResult:
        """
        Generate a conversational reply.

        Args:
            user_text: Current user message
            history: Previous turns, oldest first

        Returns:
            ConversationalResult with message, confidence and follow-up flag

        Raises:
            LLMClientError: If the provider call fails
        """
        start_time = time.time()
        context = self.build_context(user_text, history or [])

        logger.info(
            f"Generating conversational response: history={len(history or [])}, "
            f"context_length={len(context)}"
        )

        llm_response = await self.llm_client.generate(
            model=self.model,
            system_prompt=CONVERSATIONAL_SYSTEM_PROMPT,
            user_input=context
        )

        message = llm_response.text.strip()
        result = ConversationalResult(
            message=message,
            confidence=self.calculate_confidence(message),
            processing_time_ms=int((time.time() - start_time) * 1000),
            requires_follow_up=self.requires_follow_up(message)
        )

        logger.info(
            f"Conversational response generated: length={len(message)}, "
            f"confidence={result.confidence}, follow_up={result.requires_follow_up}"
        )
        return result

    def build_context(self, user_text: str, history: List[ConversationTurn]) -> str:
        """Recent history (bounded window) followed by the current message."""
        parts = []
        recent = history[-self.history_window:] if self.history_window > 0 else []
        if recent:
            parts.append("Conversation history:")
            parts.append(LLMClient.format_history(recent))
            parts.append("")

        parts.append(f"Current user message: {user_text}")
        return "\n".join(parts)

    def calculate_confidence(self, message: str) -> float:
        """Heuristic confidence of a reply; clamped to [0.1, 1.0]."""
        message_lower = message.lower()
        confidence = self.BASE_CONFIDENCE

        if any(word in message_lower for word in self.SUMMARY_WORDS):
            confidence += 0.1
        if "ok" in message_lower and "confirm" in message_lower:
            confidence += 0.15
        if self.EMOJI_PATTERN.search(message):
            confidence += 0.05

        if len(message) > 500:
            confidence -= 0.1
        if any(phrase in message_lower for phrase in self.APOLOGY_PHRASES):
            confidence -= 0.2

        return round(min(max(confidence, self.MIN_CONFIDENCE), self.MAX_CONFIDENCE), 2)

    def requires_follow_up(self, message: str) -> bool:
        """True when the reply asks a question or requests an 'ok' confirmation."""
        message_lower = message.lower()
        if any(request in message_lower for request in self.CONFIRMATION_REQUESTS):
            return True
        return "?" in message
