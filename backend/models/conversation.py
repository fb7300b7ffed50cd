"""Conversation data models."""
from dataclasses import dataclass, field
from typing import List

USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single message in a conversation."""
    role: str  # "user" or "assistant"
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class Session:
    """Rolling conversation history for one sender."""
    last_activity: float
    turns: List[ConversationTurn] = field(default_factory=list)
