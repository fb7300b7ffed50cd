"""Services for the site order assistant."""
from .session_store import SessionStore
from .text_chunker import chunk_text
from .deadline import await_with_deadline, DeadlineResult
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .conversational_agent import ConversationalAgent
from .extraction_agent import ExtractionAgent
from .legacy_responder import LegacyResponder
from .order_store import OrderStore, OrderStoreError
from .message_handler import MessageHandler

__all__ = ['SessionStore', 'chunk_text', 'await_with_deadline', 'DeadlineResult', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'ConversationalAgent', 'ExtractionAgent', 'LegacyResponder', 'OrderStore', 'OrderStoreError', 'MessageHandler']
