"""Single-call responder used when the dual-agent path fails."""
import logging
from typing import List, Optional

from models.conversation import ConversationTurn
from services.llm_client import LLMClient
from services.prompts import LEGACY_SYSTEM_PROMPT
from config import LEGACY_MODEL

logger = logging.getLogger(__name__)


class LegacyResponder:
    """All-in-one prompt: converses and ends with a labelled summary block."""

    def __init__(self, llm_client: LLMClient, model: str = LEGACY_MODEL):
        self.llm_client = llm_client
        self.model = model

    async def respond(
        self,
        user_text: str,
        system_prompt: str = LEGACY_SYSTEM_PROMPT,
        history: Optional[List[ConversationTurn]] = None
    ) -> str:
        """
        Generate a reply with the legacy prompt.

        Raises:
            LLMClientError: If the provider call fails
        """
        parts = []
        if history:
            parts.append("Conversation history:")
            parts.append(LLMClient.format_history(history))
            parts.append("")
        parts.append(f"Current user message: {user_text}")

        llm_response = await self.llm_client.generate(
            model=self.model,
            system_prompt=system_prompt,
            user_input="\n".join(parts)
        )
        logger.info(f"Legacy response generated: length={len(llm_response.text)}")
        return llm_response.text.strip()
