"""
Placement Assistant Chat Client

DeepSeek uses OpenAI-compatible API, so we use the openai library.

Two modes:
- reply(): one completed answer
- stream(): yields text chunks as they arrive

The assistant is a helper for students (resume tips, interview prep,
how the portal works). Failures surface as ChatUnavailable; routes map that
to a generic error message.
"""
import logging
from typing import Iterator

from openai import OpenAI, OpenAIError

from app.core.config import get_settings
from app.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are the placement-cell assistant for a college placement portal.
Help students with resumes, interview preparation, aptitude practice and questions
about placement drives, applications and rounds. Keep answers short and practical."""


class ChatUnavailable(UpstreamFailure):
    default_message = "Error generating response from AI."


class ChatAssistant:
    """
    Wrapper for DeepSeek chat completions.
    """

    def __init__(self):
        settings = get_settings()
        self.client = OpenAI(
            api_key=settings.deepseek_api_key or "missing-key",
            base_url=settings.deepseek_base_url
        )
        self.model = settings.chat_model
        self.max_tokens = settings.chat_max_tokens
        self.configured = bool(settings.deepseek_api_key)

    def _messages(self, user_message: str) -> list:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_message}
        ]

    def reply(self, user_message: str) -> str:
        """Return one complete answer."""
        if not self.configured:
            raise ChatUnavailable("AI assistant is not configured")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(user_message),
                max_tokens=self.max_tokens,
                temperature=0.7
            )
        except OpenAIError as e:
            logger.warning("Chat completion failed: %s", e)
            raise ChatUnavailable(str(e)) from e
        return response.choices[0].message.content or ""

    def stream(self, user_message: str) -> Iterator[str]:
        """
        Yield answer chunks as the model produces them.
        Chunks already yielded stay delivered even if a later one fails.
        """
        if not self.configured:
            raise ChatUnavailable("AI assistant is not configured")
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(user_message),
                max_tokens=self.max_tokens,
                temperature=0.7,
                stream=True
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except OpenAIError as e:
            logger.warning("Chat stream failed: %s", e)
            raise ChatUnavailable(str(e)) from e

    def test_connection(self) -> bool:
        """Test if DeepSeek API is reachable"""
        try:
            return "OK" in self.reply("Reply with exactly: OK").upper()
        except ChatUnavailable:
            return False


# Singleton instance
_chat_assistant: ChatAssistant = None


def get_chat_assistant() -> ChatAssistant:
    """Get or create the chat assistant (singleton pattern)"""
    global _chat_assistant
    if _chat_assistant is None:
        _chat_assistant = ChatAssistant()
    return _chat_assistant
