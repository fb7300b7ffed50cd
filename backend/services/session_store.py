"""In-process conversation history store keyed by sender."""
import logging
import time
from typing import Callable, Dict, List

from models.conversation import ConversationTurn, Session
from config import SESSION_TTL_SECONDS, SESSION_MAX_MESSAGES

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Keeps a rolling, size-capped message history per sender.

    Sessions expire lazily: every public call first sweeps sessions whose last
    activity is older than the TTL, so there is no background timer. The store
    is process-local and is owned by whoever constructs it (one per app).
    """

    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        max_messages: int = SESSION_MAX_MESSAGES,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize an empty session store.

        Args:
            ttl_seconds: Inactivity period after which a session is dropped
            max_messages: Number of most recent turns kept per sender
            clock: Time source in seconds (injectable for tests)
        """
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")

        self.ttl_seconds = ttl_seconds
        self.max_messages = max_messages
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        logger.info(f"SessionStore initialized (ttl={ttl_seconds}s, max_messages={max_messages})")

    def get_history(self, sender: str) -> List[ConversationTurn]:
        """
        Get the conversation history for a sender.

        Args:
            sender: Sender identifier (phone number)

        Returns:
            Copy of the stored turns in insertion order (empty if none)
        """
        self._sweep_expired()

        session = self._sessions.get(sender)
        if session is None:
            return []

        return list(session.turns)

    def add_message(self, sender: str, turn: ConversationTurn) -> None:
        """
        Append a turn to a sender's history, creating the session if needed.

        Args:
            sender: Sender identifier (phone number)
            turn: Turn to append
        """
        self._sweep_expired()

        now = self._clock()
        session = self._sessions.get(sender)
        if session is None:
            session = Session(last_activity=now)
            self._sessions[sender] = session
            logger.debug(f"Created session for {sender}")

        session.turns.append(turn)
        session.last_activity = now

        if len(session.turns) > self.max_messages:
            session.turns = session.turns[-self.max_messages:]

    def reset_history(self, sender: str) -> None:
        """Remove a sender's session unconditionally."""
        self._sweep_expired()

        if self._sessions.pop(sender, None) is not None:
            logger.info(f"Reset conversation history for {sender}")

    def active_session_count(self) -> int:
        """Number of sessions that have not expired."""
        self._sweep_expired()
        return len(self._sessions)

    def _sweep_expired(self) -> None:
        now = self._clock()
        expired = [
            sender for sender, session in self._sessions.items()
            if now - session.last_activity > self.ttl_seconds
        ]
        for sender in expired:
            del self._sessions[sender]

        if expired:
            logger.debug(f"Expired {len(expired)} session(s)")
