"""Extraction agent: structured order fields from the conversation."""
import json
import logging
import re
import time
from typing import Any, List, Optional

from models.conversation import ConversationTurn
from models.order import ExtractionResponse
from services.llm_client import LLMClient
from services.order_validation import clean_extraction_payload
from services.prompts import EXTRACTION_SYSTEM_PROMPT
from config import EXTRACTION_MODEL

logger = logging.getLogger(__name__)

MALFORMED_JSON_ERROR = "Extraction response was not valid JSON"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ExtractionAgent:
    """
    Extracts order fields as validated structured data.

    Provider failures raise LLMClientError so the caller can fall back. A
    response that arrives but cannot be decoded is a data-quality problem and
    degrades to an empty, invalid ExtractionResponse instead.
    """

    def __init__(self, llm_client: LLMClient, model: str = EXTRACTION_MODEL):
        self.llm_client = llm_client
        self.model = model
        logger.info(f"ExtractionAgent initialized with model: {model}")

    async def analyze(
        self,
        user_text: str,
        history: Optional[List[ConversationTurn]] = None
    ) -> ExtractionResponse:
        """
        Extract and validate order data from the whole conversation.

        Args:
            user_text: Current user message
            history: Previous turns, oldest first

        Returns:
            ExtractionResponse with cleaned data and validation errors

        Raises:
            LLMClientError: If the provider call fails
        """
        start_time = time.time()
        context = self.build_context(user_text, history or [])

        logger.info(
            f"Analyzing conversation for extraction: history={len(history or [])}, "
            f"context_length={len(context)}"
        )

        llm_response = await self.llm_client.generate(
            model=self.model,
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
            user_input=context,
            temperature=0.0,
            json_mode=True
        )
        processing_time_ms = int((time.time() - start_time) * 1000)

        payload = self.parse_payload(llm_response.text)
        if payload is None:
            logger.error(
                f"Failed to parse extraction response as JSON: {llm_response.text[:200]!r}"
            )
            return ExtractionResponse.empty(MALFORMED_JSON_ERROR, processing_time_ms)

        data, errors = clean_extraction_payload(payload)
        response = ExtractionResponse(data=data, processing_time_ms=processing_time_ms, errors=errors)

        logger.info(
            f"Extraction completed: completeness={data.completeness}, "
            f"materials={len(data.materials)}, errors={len(errors)}, valid={response.is_valid}"
        )
        return response

    @staticmethod
    def build_context(user_text: str, history: List[ConversationTurn]) -> str:
        """Full transcript in upper-case speaker labels, ending with the instruction."""
        parts = ["CONVERSATION TO ANALYSE:", ""]
        if history:
            parts.append(LLMClient.format_history(history, "USER", "ASSISTANT"))
        parts.append(f"USER: {user_text}")
        parts.append("")
        parts.append("EXTRACT THE DATA AS JSON ONLY:")
        return "\n".join(parts)

    @staticmethod
    def parse_payload(text: str) -> Optional[Any]:
        """Decode the model output, tolerating a surrounding Markdown code fence."""
        cleaned = text.strip()
        fenced = _CODE_FENCE.match(cleaned)
        if fenced:
            cleaned = fenced.group(1)

        try:
            return json.loads(cleaned)
        except (json.JSONDecodeError, TypeError):
            return None
