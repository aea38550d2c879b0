from diagnostic_core.domain.conversation import ConversationSession, Message, SessionSnapshot
from datetime import datetime, timezone

import pytest


def test_models_exist():
    now = datetime.now(timezone.utc)
    m = Message(id="msg_1_0", role="user", raw_text="x", formatted_text=None, is_error=False, created_at=now)
    assert not m.is_ai
    session = ConversationSession()
    assert session.session_id is None and session.messages == [] and not session.processing
    session.messages.append(m)
    snap = SessionSnapshot.of(session)
    assert snap.messages == (m,)
    session.messages.clear()
    assert snap.messages == (m,)


def test_message_is_immutable():
    now = datetime.now(timezone.utc)
    m = Message(id="msg_1_0", role="assistant", raw_text="x", formatted_text="x", is_error=False, created_at=now)
    assert m.is_ai
    with pytest.raises(AttributeError):
        m.raw_text = "y"
