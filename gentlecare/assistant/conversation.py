"""
Conversation history.

In-memory only. The caller decides whether and where to persist it.
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .schemas import AssistantResponse, Provider, Query


ERROR_REPLY = "Lo siento, hubo un problema."

PROVIDER_BADGES = {
    Provider.ON_DEVICE: "En dispositivo",
    Provider.CLOUD: "Nube",
    Provider.HYBRID: "Hibrido",
}


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    content: str
    role: MessageRole
    timestamp: datetime = Field(default_factory=datetime.now)
    is_voice_input: bool = False
    provider: Optional[Provider] = None
    processing_time: Optional[float] = None
    is_error: bool = False
    error_message: Optional[str] = None

    @property
    def provider_badge(self) -> Optional[str]:
        if self.provider is None:
            return None
        return PROVIDER_BADGES[self.provider]

    @classmethod
    def user_message(cls, content: str, is_voice: bool = False) -> "ChatMessage":
        return cls(content=content, role=MessageRole.USER, is_voice_input=is_voice)

    @classmethod
    def assistant_message(
        cls, content: str, provider: Provider, processing_time: Optional[float] = None
    ) -> "ChatMessage":
        return cls(
            content=content,
            role=MessageRole.ASSISTANT,
            provider=provider,
            processing_time=processing_time,
        )

    @classmethod
    def system_message(cls, content: str) -> "ChatMessage":
        return cls(content=content, role=MessageRole.SYSTEM)

    @classmethod
    def from_error(cls, error: str) -> "ChatMessage":
        return cls(
            content=ERROR_REPLY,
            role=MessageRole.ASSISTANT,
            is_error=True,
            error_message=error,
        )


class Conversation:
    """Ordered list of messages for one chat session."""

    def __init__(self):
        self._messages: list[ChatMessage] = []

    def add(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        return message

    def record_turn(self, query: Query, response: AssistantResponse) -> tuple[ChatMessage, ChatMessage]:
        """Append the user's query and the assistant's answer."""
        user = self.add(ChatMessage.user_message(query.text, is_voice=query.is_voice_input))
        reply = self.add(ChatMessage.assistant_message(
            response.content,
            provider=response.provider,
            processing_time=response.processing_time,
        ))
        return user, reply

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def last(self, n: int = 10) -> list[ChatMessage]:
        return self._messages[-n:] if n > 0 else []

    def clear(self):
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)
