import asyncio
from datetime import datetime

from diagnostic_core.gui.presenter import ChatPresenter, format_timestamp
from diagnostic_core.pipeline.fallback import FallbackResponder
from diagnostic_core.pipeline.invoker import RemoteInvoker
from diagnostic_core.pipeline.store import ConversationStore


class FakeRemote:
    name = "fake"

    def __init__(self, *results):
        self.results = list(results)

    def process_user_message(self, message, session_id):
        return self.results.pop(0)


def make_presenter(*results, on_close=None):
    remote = FakeRemote(*results) if results else None
    store = ConversationStore(RemoteInvoker(remote, FallbackResponder(delay=0)))
    return ChatPresenter(store, on_close=on_close)


def test_initial_view():
    p = make_presenter()
    view = p.view()
    assert view.messages == ()
    assert view.show_welcome
    assert view.is_send_disabled
    assert not view.is_sending
    assert view.error_text == ""
    assert view.character_count == 0


def test_submit_clears_input_and_renders_messages():
    p = make_presenter("**done**")

    async def scenario():
        p.set_input("hello")
        assert p.view().input_echo == "hello"
        assert p.view().character_count == 5
        assert not p.view().is_send_disabled
        task = p.submit_text()
        assert task is not None
        assert p.input_value == ""
        view = p.view()
        assert view.is_sending
        assert view.is_send_disabled
        assert not view.show_welcome
        await task

    asyncio.run(scenario())
    view = p.view()
    assert [m.role for m in view.messages] == ["user", "assistant"]
    user, ai = view.messages
    assert user.text == "hello" and user.html is None and not user.is_ai
    assert user.css_class == "message-wrapper user-message"
    assert ai.html == "<strong>done</strong>" and ai.text is None and ai.is_ai
    assert ai.css_class == "message-wrapper ai-message"


def test_blank_submit_keeps_input():
    p = make_presenter()

    async def scenario():
        p.set_input("   ")
        assert p.submit_text() is None

    asyncio.run(scenario())
    assert p.input_value == "   "
    assert p.view().messages == ()


def test_input_change_dismisses_error():
    p = make_presenter({"error": "permission denied"})

    async def scenario():
        await p.send_message("why")

    asyncio.run(scenario())
    assert p.view().error_text == "permission denied"
    p.set_input("w")
    assert p.view().error_text == ""


def test_handle_key_rules():
    p = make_presenter("a", "b")

    async def scenario():
        p.set_input("first")
        assert not p.handle_key("a")
        assert not p.handle_key("Enter", shift=True)
        assert p.input_value == "first"
        assert p.handle_key("Enter")
        await p.store.wait_idle()
        p.set_input("second")
        assert p.handle_key("Enter", shift=True, ctrl=True)
        await p.store.wait_idle()

    asyncio.run(scenario())
    assert [m.text for m in p.view().messages if not m.is_ai] == ["first", "second"]


def test_send_message_ignores_blank():
    p = make_presenter()
    assert p.send_message("") is None
    assert p.send_message("  ") is None
    assert p.send_message(None) is None


def test_reset_and_close():
    closed = []
    p = make_presenter(on_close=lambda: closed.append(True))

    async def scenario():
        await p.send_message("modify record")

    asyncio.run(scenario())
    assert len(p.view().messages) == 2
    p.set_input("draft")
    p.reset()
    view = p.view()
    assert view.messages == ()
    assert view.input_echo == ""
    assert view.show_welcome
    p.close()
    assert closed == [True]


def test_view_listeners():
    p = make_presenter("ok")
    states = []
    p.subscribe(states.append)

    async def scenario():
        await p.send_message("hi")

    asyncio.run(scenario())
    assert states[-1].is_sending is False
    assert len(states[-1].messages) == 2
    assert any(s.is_sending for s in states)


def test_format_timestamp():
    assert format_timestamp(datetime(2024, 1, 1, 0, 5)) == "12:05 AM"
    assert format_timestamp(datetime(2024, 1, 1, 9, 30)) == "9:30 AM"
    assert format_timestamp(datetime(2024, 1, 1, 12, 0)) == "12:00 PM"
    assert format_timestamp(datetime(2024, 1, 1, 23, 59)) == "11:59 PM"


class GatedRemote:
    name = "gated"

    def __init__(self):
        self.gate = None

    async def process_user_message(self, message, session_id):
        await self.gate.wait()
        return "done"


def test_enter_while_sending_keeps_typed_text():
    remote = GatedRemote()
    p = ChatPresenter(ConversationStore(RemoteInvoker(remote, FallbackResponder(delay=0))))

    async def scenario():
        remote.gate = asyncio.Event()
        p.set_input("first")
        assert p.handle_key("Enter")
        p.set_input("typed while waiting")
        assert p.handle_key("Enter")
        view = p.view()
        assert view.input_echo == "typed while waiting"
        assert view.character_count == len("typed while waiting")
        assert view.is_send_disabled
        remote.gate.set()
        await p.store.wait_idle()

    asyncio.run(scenario())
    assert p.input_value == "typed while waiting"
    assert [m.text for m in p.view().messages if not m.is_ai] == ["first"]


def test_explicit_text_does_not_clear_input():
    p = make_presenter("ok")

    async def scenario():
        p.set_input("draft")
        task = p.submit_text("other question")
        assert task is not None
        await task

    asyncio.run(scenario())
    assert p.input_value == "draft"
    assert [m.text for m in p.view().messages if not m.is_ai] == ["other question"]
