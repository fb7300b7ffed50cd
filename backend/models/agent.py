"""Agent and message-handling result models."""
from dataclasses import dataclass, field
from typing import List


@dataclass
class ConversationalResult:
    """Reply produced by the conversational agent."""
    message: str
    confidence: float  # 0.0 to 1.0
    processing_time_ms: int
    requires_follow_up: bool


@dataclass
class HandlerReply:
    """Outcome of handling one inbound message."""
    reply_segments: List[str]
    fallback_used: bool = False
    order_stored: bool = False
    completeness: float = 0.0
    command: str = ""
    errors: List[str] = field(default_factory=list)
