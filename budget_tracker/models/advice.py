"""
Advisor Models

Tips shown on the dashboard and messages exchanged with the advisor chat.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AdviceKind(str, Enum):
    """Which heuristic produced a tip."""
    OVERSPENDING = "overspending"
    SAVINGS_RATE = "savings-rate"
    LARGE_EXPENSE = "large-expense"
    SUBSCRIPTIONS = "subscriptions"
    TRAIN_MODEL = "train-ai"
    GENERIC = "generic"


class Advice(BaseModel):
    """A single dashboard tip."""

    kind: AdviceKind
    title: str
    description: str
    action: Optional[str] = Field(
        default=None,
        description="Label of the follow-up button, if any"
    )
    action_page: Optional[str] = Field(
        default=None,
        description="Page the follow-up button navigates to"
    )


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of the advisor conversation."""

    id: UUID = Field(default_factory=uuid4)
    role: ChatRole
    content: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AdvisorReply(BaseModel):
    """
    What the chat returns to the UI.

    `is_error` marks a transient failure of the external advisor; the
    message is then the canned apology already appended to the history.
    """

    message: ChatMessage
    is_error: bool = False
    error_message: Optional[str] = None
    source: str = Field(
        default="local",
        pattern="^(local|remote)$",
        description="Which responder produced the message"
    )
