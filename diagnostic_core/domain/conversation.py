from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional, Tuple


Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    raw_text: str
    formatted_text: Optional[str]
    is_error: bool
    created_at: datetime

    @property
    def is_ai(self) -> bool:
        return self.role == "assistant"


@dataclass
class ConversationSession:
    session_id: Optional[str] = None
    messages: List[Message] = field(default_factory=list)
    processing: bool = False
    last_error: Optional[str] = None


@dataclass(frozen=True)
class SessionSnapshot:
    """ConversationSession 的只读快照，交给展示层使用。"""

    session_id: Optional[str]
    messages: Tuple[Message, ...]
    processing: bool
    last_error: Optional[str]

    @classmethod
    def of(cls, session: ConversationSession) -> "SessionSnapshot":
        return cls(
            session_id=session.session_id,
            messages=tuple(session.messages),
            processing=session.processing,
            last_error=session.last_error,
        )
