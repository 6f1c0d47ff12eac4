"""Intent transport: the two model requests made per user turn.

`detect` sends the compiled tool list and asks the model to pick at most one
capability. `reply` is an independent conversational request; its result
never reaches the dispatch controller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from splitui.foundation.errors import SplitUIError, TransportFailure
from splitui.models.protocol import GenerateOptions, GenerateResult, Message, ModelProtocol, Tool

logger = logging.getLogger(__name__)

DETECT_PROMPT = """\
{context}Analyze this user message and detect their intent for a task management system.

User message: "{message}"

If the user wants to perform an action, call the appropriate tool.
If the request is ambiguous or not related to tasks, do not call any tool."""

REPLY_SYSTEM_PROMPT = (
    "You are a helpful assistant for a task management system. "
    "Keep responses concise and friendly."
)

FALLBACK_REPLY = "I understand."


def _transport_failure(e: Exception, model: ModelProtocol) -> TransportFailure:
    return TransportFailure(
        context={"provider": model.model_id, "detail": str(e) or type(e).__name__},
        cause=e,
    )


@dataclass(slots=True)
class IntentTransport:
    """Builds prompts and talks to the model for one session."""

    model: ModelProtocol
    max_tokens: int = 1024

    def detect_prompt(self, user_text: str, history: Sequence[Message]) -> str:
        lines = [m.content for m in history if m.content]
        context = "Previous conversation:\n" + "\n".join(lines) + "\n\n" if lines else ""
        return DETECT_PROMPT.format(context=context, message=user_text)

    def reply_messages(self, user_text: str, history: Sequence[Message]) -> tuple[Message, ...]:
        turns = [m for m in history if m.role != "system"]
        turns.append(Message(role="user", content=user_text))
        return tuple(turns)

    async def detect(
        self,
        user_text: str,
        history: Sequence[Message],
        tools: tuple[Tool, ...],
    ) -> GenerateResult:
        """Ask the model which capability, if any, the message invokes.

        Raises:
            TransportFailure: The model could not be reached or failed.
        """
        try:
            return await self.model.generate(
                self.detect_prompt(user_text, history),
                tools=tools,
                tool_choice="auto",
                options=GenerateOptions(max_tokens=self.max_tokens),
            )
        except SplitUIError:
            raise
        except Exception as e:
            raise _transport_failure(e, self.model) from e

    async def reply(self, user_text: str, history: Sequence[Message]) -> str:
        """Generate the conversational reply for the chat transcript.

        Raises:
            TransportFailure: The model could not be reached or failed.
        """
        try:
            result = await self.model.generate(
                self.reply_messages(user_text, history),
                options=GenerateOptions(
                    max_tokens=self.max_tokens,
                    system_prompt=REPLY_SYSTEM_PROMPT,
                ),
            )
        except SplitUIError:
            raise
        except Exception as e:
            raise _transport_failure(e, self.model) from e
        return result.text.strip() or FALLBACK_REPLY
