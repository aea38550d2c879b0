import asyncio

from diagnostic_core.api.service import build_store, run_diagnostic_chat
from diagnostic_core.pipeline.fallback import EDIT_PERMISSIONS_REPLY


class SettingsStub:
    diagnostic_base_url = None
    fallback_delay = 0.0
    default_error_message = "Something went wrong"


class RejectingRemote:
    name = "rejecting"

    def process_user_message(self, message, session_id):
        raise RuntimeError()


def test_run_diagnostic_chat_degraded():
    store = build_store(SettingsStub())
    res = asyncio.run(run_diagnostic_chat("I need to edit a case", store=store))
    assert res["accepted"]
    assert res["error"] is None
    assert [m["role"] for m in res["messages"]] == ["user", "assistant"]
    assert res["messages"][1]["content"] == EDIT_PERMISSIONS_REPLY


def test_run_diagnostic_chat_blank_not_accepted():
    store = build_store(SettingsStub(), remote=None)
    res = asyncio.run(run_diagnostic_chat("   ", store=store))
    assert not res["accepted"]
    assert res["messages"] == []


def test_build_store_uses_configured_default_error():
    class Notifier:
        def __init__(self):
            self.calls = []

        def notify(self, kind, title, message):
            self.calls.append((kind, message))

    notifier = Notifier()
    store = build_store(SettingsStub(), remote=RejectingRemote(), notifier=notifier)
    res = asyncio.run(run_diagnostic_chat("hello", store=store))
    assert res["error"] == "Something went wrong"
    assert notifier.calls == [("error", "Something went wrong")]
