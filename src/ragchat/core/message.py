"""
Conversation turns exchanged with the generation service and stored in
conversation history.
"""

from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One turn of a conversation."""
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def coerce(cls, value: "Message | dict[str, Any]") -> "Message":
        """Accept a Message or a ``{"role", "content"}`` mapping."""
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)

    def as_dict(self) -> dict[str, str]:
        """Plain ``{"role", "content"}`` form used by chat APIs."""
        return {"role": self.role.value, "content": self.content}


def split_system(messages: Iterable[Message]) -> tuple[str, list[Message]]:
    """
    Separate system turns from the dialogue.

    Returns the system turns joined by blank lines, and the remaining
    user and assistant turns in order.
    """
    system_parts: list[str] = []
    dialogue: list[Message] = []
    for message in messages:
        if message.role == Role.SYSTEM:
            system_parts.append(message.content)
        else:
            dialogue.append(message)
    return "\n\n".join(system_parts), dialogue
