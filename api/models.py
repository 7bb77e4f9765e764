import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


IdGenerator = Callable[[Role], str]


def default_id_generator(role: Role) -> str:
    """Timestamp in milliseconds plus a random token, tagged with the role."""
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"{role.value}_{millis}_{uuid.uuid4().hex[:9]}"


def namespace_for(sender: str) -> str:
    return f"user_{sender}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MessageRecord(BaseModel):
    """One persisted conversational turn. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    role: Role
    timestamp: str = Field(default_factory=utc_now_iso)
    owner: str

    def to_metadata(self) -> Dict[str, str]:
        # Pinecone metadata must stay flat
        return {
            'text': self.content,
            'role': self.role.value,
            'timestamp': self.timestamp,
            'phone_number': self.owner,
        }


class ContextEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    content: str
    score: Optional[float] = None

    @classmethod
    def from_match(cls, match: Dict[str, Any]) -> "ContextEntry":
        metadata = match.get('metadata') or {}
        return cls(
            id=match['id'],
            role=metadata.get('role') or Role.USER.value,
            content=metadata.get('text', ''),
            score=match.get('score'),
        )

    def to_line(self) -> str:
        return f"{self.role}: {self.content}"


class RetrievedContext(BaseModel):
    """Prior turns in the order the vector store ranked them."""
    model_config = ConfigDict(frozen=True)

    entries: Tuple[ContextEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def serialize(self) -> str:
        return "\n".join(entry.to_line() for entry in self.entries)


class PromptEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_message: str


class InboundEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender: str
    text: str
    message_id: Optional[str] = None

    @classmethod
    def from_webhook(cls, payload: Any) -> Optional["InboundEvent"]:
        """Extract the first text message from a WhatsApp webhook payload.

        Returns None for anything that is not a text message (statuses,
        media, reactions, malformed bodies).
        """
        try:
            message = payload['entry'][0]['changes'][0]['value']['messages'][0]
            body = message['text']['body']
        except (KeyError, IndexError, TypeError):
            return None

        if not isinstance(body, str) or not body.strip():
            return None

        return cls(
            sender=str(message.get('from') or ''),
            text=body.strip(),
            message_id=message.get('id'),
        )


class TurnResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    namespace: str
    reply: str
    user_record_id: Optional[str] = None
    assistant_record_id: Optional[str] = None
    context_size: int = 0
