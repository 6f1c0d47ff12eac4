"""Chat sessions and the per-turn model transport."""

from splitui.session.session import ChatMessage, Session, TurnResult
from splitui.session.transport import FALLBACK_REPLY, IntentTransport

__all__ = [
    "FALLBACK_REPLY",
    "ChatMessage",
    "IntentTransport",
    "Session",
    "TurnResult",
]
