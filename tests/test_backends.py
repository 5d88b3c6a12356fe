from __future__ import annotations

import json

import pytest
import requests

from parrot.llm.base import (
    BackendKind,
    ConfigurationMissing,
    EmptyResponse,
    ProtocolFailure,
    TransportFailure,
)
from parrot.llm.cloud import RemoteAPIBackend
from parrot.llm.context import CallContext
from parrot.llm.local import LocalInferenceBackend


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self.closed = False

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value")
        return self._payload

    def close(self):
        self.closed = True


class DummySession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = 0

    def _handle(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def post(self, url, **kwargs):
        return self._handle("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._handle("GET", url, **kwargs)

    def close(self):
        self.closed += 1


def _chat(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _api(session, **kwargs):
    params = dict(endpoint="https://api.example.com/v1/", api_key="sk-test", model="gpt-test")
    params.update(kwargs)
    return RemoteAPIBackend(params["endpoint"], params["api_key"], params["model"], session=session)


# -- remote API -----------------------------------------------------------------


def test_api_request_wire_shape():
    session = DummySession(DummyResponse(payload=_chat("Nice one.")))
    backend = _api(session)

    assert backend.generate(CallContext.root(2), "roast me") == "Nice one."

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://api.example.com/v1/chat/completions"
    assert kwargs["json"] == {
        "model": "gpt-test",
        "messages": [{"role": "user", "content": "roast me"}],
        "max_tokens": 150,
        "temperature": 0.8,
    }
    assert list(kwargs["json"]) == ["model", "messages", "max_tokens", "temperature"]
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert 0 < kwargs["timeout"] <= 2


def test_api_returns_raw_unsanitized_content():
    session = DummySession(DummyResponse(payload=_chat('"Quoted."\nextra')))
    assert _api(session).generate(CallContext.root(), "p") == '"Quoted."\nextra'


def test_api_missing_key_fails_without_network():
    session = DummySession(DummyResponse(payload=_chat("unused")))
    with pytest.raises(ConfigurationMissing) as info:
        _api(session, api_key="").generate(CallContext.root(), "p")
    assert info.value.backend is BackendKind.API
    assert session.calls == []


def test_api_transport_error():
    session = DummySession(exc=requests.ConnectionError("dns failure"))
    with pytest.raises(TransportFailure):
        _api(session).generate(CallContext.root(), "p")


def test_api_provider_error_object():
    payload = {"error": {"message": "invalid api key", "type": "auth"}}
    session = DummySession(DummyResponse(status_code=401, payload=payload))
    with pytest.raises(ProtocolFailure) as info:
        _api(session).generate(CallContext.root(), "p")
    assert "invalid api key" in info.value.cause


def test_api_non_2xx_without_body():
    session = DummySession(DummyResponse(status_code=502, payload=None, text="bad gateway"))
    with pytest.raises(ProtocolFailure) as info:
        _api(session).generate(CallContext.root(), "p")
    assert "502" in info.value.cause


def test_api_malformed_json():
    session = DummySession(DummyResponse(status_code=200, payload=None, text="<html>"))
    with pytest.raises(ProtocolFailure):
        _api(session).generate(CallContext.root(), "p")


@pytest.mark.parametrize("payload", [{"choices": []}, {}, _chat("")])
def test_api_empty_payloads(payload):
    session = DummySession(DummyResponse(payload=payload))
    with pytest.raises(EmptyResponse):
        _api(session).generate(CallContext.root(), "p")


def test_api_cancelled_context_skips_request():
    session = DummySession(DummyResponse(payload=_chat("late")))
    ctx = CallContext.root()
    ctx.cancel()
    with pytest.raises(TransportFailure):
        _api(session).generate(ctx, "p")
    assert session.calls == []


def test_api_availability_probe():
    ok = DummySession(DummyResponse(status_code=200, payload=_chat("x")))
    assert _api(ok).is_available() is True
    _, _, kwargs = ok.calls[0]
    assert kwargs["json"]["max_tokens"] == 1
    assert kwargs["timeout"] == 5.0

    assert _api(DummySession(DummyResponse(status_code=401, payload={}))).is_available() is False
    assert _api(DummySession(exc=requests.Timeout("slow"))).is_available() is False
    assert _api(DummySession(DummyResponse(payload={})), api_key=None).is_available() is False


# -- local inference ------------------------------------------------------------


def test_local_request_wire_shape():
    session = DummySession(DummyResponse(payload={"response": "Nice.", "done": True}))
    backend = LocalInferenceBackend("http://localhost:11434/", "phi3", session=session)

    assert backend.generate(CallContext.root(), "roast") == "Nice."
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://localhost:11434/api/generate")
    assert kwargs["json"] == {"model": "phi3", "prompt": "roast", "stream": False}


def test_local_non_200_is_protocol_failure():
    session = DummySession(DummyResponse(status_code=404, payload={"error": "model not found"}))
    with pytest.raises(ProtocolFailure):
        LocalInferenceBackend(session=session).generate(CallContext.root(), "p")


def test_local_decode_failure():
    session = DummySession(DummyResponse(status_code=200, payload=None, text="nope"))
    with pytest.raises(ProtocolFailure):
        LocalInferenceBackend(session=session).generate(CallContext.root(), "p")


def test_local_empty_response():
    session = DummySession(DummyResponse(payload={"response": "  ", "done": True}))
    with pytest.raises(EmptyResponse):
        LocalInferenceBackend(session=session).generate(CallContext.root(), "p")


def test_local_connection_refused():
    session = DummySession(exc=requests.ConnectionError("refused"))
    with pytest.raises(TransportFailure) as info:
        LocalInferenceBackend(session=session).generate(CallContext.root(), "p")
    assert info.value.backend is BackendKind.LOCAL


def test_local_timeout_bounded_by_context():
    session = DummySession(DummyResponse(payload={"response": "ok", "done": True}))
    backend = LocalInferenceBackend(timeout_seconds=30, session=session)
    backend.generate(CallContext.root(1.0), "p")
    assert session.calls[0][2]["timeout"] <= 1.0


def test_local_availability_probe():
    session = DummySession(DummyResponse(status_code=200, payload={"version": "0.1"}))
    assert LocalInferenceBackend(session=session).is_available() is True
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://localhost:11434/api/version")
    assert kwargs["timeout"] == 5.0

    assert LocalInferenceBackend(session=DummySession(DummyResponse(status_code=500, payload={}))).is_available() is False
    assert LocalInferenceBackend(session=DummySession(exc=requests.ConnectionError("x"))).is_available() is False


def test_local_warmup_generates_once_when_reachable():
    session = DummySession(DummyResponse(status_code=200, payload={"response": "hi", "done": True}))
    thread = LocalInferenceBackend(session=DummySession()).warmup(session=session)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert [c[0] for c in session.calls] == ["GET", "POST"]


def test_local_warmup_swallows_failures(caplog):
    session = DummySession(exc=requests.ConnectionError("refused"))
    with caplog.at_level("INFO", logger="parrot.llm.local"):
        thread = LocalInferenceBackend(session=DummySession()).warmup(debug=True, session=session)
        thread.join(timeout=5)
    assert [c[0] for c in session.calls] == ["GET"]
    assert "warmup skipped" in caplog.text


class CancellingSession(DummySession):
    """Cancels the caller's context while the request is outstanding."""

    def __init__(self, ctx, response):
        super().__init__(response)
        self.ctx = ctx

    def _handle(self, method, url, **kwargs):
        response = super()._handle(method, url, **kwargs)
        self.ctx.cancel()
        return response


def test_local_response_after_cancellation_is_discarded():
    ctx = CallContext.root()
    response = DummyResponse(payload={"response": "late", "done": True})
    session = CancellingSession(ctx, response)
    with pytest.raises(TransportFailure) as info:
        LocalInferenceBackend(session=session).generate(ctx, "p")
    assert info.value.cause == "request cancelled"
    assert response.closed
    assert session.closed == 1


def test_api_response_after_cancellation_is_discarded():
    ctx = CallContext.root()
    response = DummyResponse(payload=_chat("late"))
    session = CancellingSession(ctx, response)
    with pytest.raises(TransportFailure):
        _api(session).generate(ctx, "p")
    assert response.closed


def test_warmup_does_not_share_the_request_session():
    own = DummySession(DummyResponse(payload={"response": "hi", "done": True}))
    warm = DummySession(DummyResponse(status_code=200, payload={"response": "hi", "done": True}))
    backend = LocalInferenceBackend(session=own)
    backend.warmup(session=warm).join(timeout=5)

    backend.generate(CallContext.root(), "p")
    assert [c[0] for c in warm.calls] == ["GET", "POST"]
    assert [c[0] for c in own.calls] == ["POST"]
    assert own.closed == 0
