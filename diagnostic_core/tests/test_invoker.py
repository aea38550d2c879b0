import asyncio

import pytest

from diagnostic_core.domain.exceptions import NetworkError, RemoteFault
from diagnostic_core.domain.models import ErrorOutcome, TextOutcome, UnrecognizedOutcome
from diagnostic_core.pipeline.fallback import FIELD_VISIBILITY_REPLY, CLARIFYING_REPLY, FallbackResponder
from diagnostic_core.pipeline.invoker import RemoteInvoker


class FakeRemote:
    name = "fake"

    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def process_user_message(self, message, session_id):
        self.calls.append((message, session_id))
        if self.exc is not None:
            raise self.exc
        return self.result


class AsyncFakeRemote(FakeRemote):
    async def process_user_message(self, message, session_id):
        return FakeRemote.process_user_message(self, message, session_id)


def _invoker(remote):
    return RemoteInvoker(remote, FallbackResponder(delay=0))


def test_absent_remote_uses_fallback():
    inv = _invoker(None)
    assert inv.degraded
    res = asyncio.run(inv.invoke("I can't see a field", None))
    assert res.outcome == TextOutcome(FIELD_VISIBILITY_REPLY)
    assert res.session_id is None


def test_empty_result_uses_fallback():
    remote = FakeRemote(result=None)
    res = asyncio.run(_invoker(remote).invoke("hi", "s-1"))
    assert res.outcome == TextOutcome(CLARIFYING_REPLY)
    assert remote.calls == [("hi", "s-1")]


def test_string_result_passed_through_normalizer():
    res = asyncio.run(_invoker(FakeRemote(result="done")).invoke("hi", None))
    assert res.outcome == TextOutcome("done")


def test_async_remote_is_awaited():
    remote = AsyncFakeRemote(result={"message": "async ok", "sessionId": "s-9"})
    res = asyncio.run(_invoker(remote).invoke("hi", None))
    assert res.outcome == TextOutcome("async ok")
    assert res.session_id == "s-9"


def test_error_and_unrecognized_outcomes():
    res = asyncio.run(_invoker(FakeRemote(result={"error": "nope"})).invoke("hi", None))
    assert res.outcome == ErrorOutcome("nope")
    res = asyncio.run(_invoker(FakeRemote(result={"foo": 1})).invoke("hi", None))
    assert res.outcome == UnrecognizedOutcome({"foo": 1})


def test_transport_fault_propagates():
    remote = FakeRemote(exc=NetworkError(code="NETWORK_ERROR", message="connection refused"))
    with pytest.raises(NetworkError):
        asyncio.run(_invoker(remote).invoke("hi", None))
    assert len(remote.calls) == 1


def test_explicit_rejection_raises_remote_fault():
    remote = FakeRemote(result={"success": False, "error": "locked", "message": "ignored", "sessionId": "s-2"})
    with pytest.raises(RemoteFault) as info:
        asyncio.run(_invoker(remote).invoke("hi", None))
    assert info.value.code == "BACKEND_REJECTED"
    assert info.value.message == "locked"
    assert info.value.extra["session_id"] == "s-2"
