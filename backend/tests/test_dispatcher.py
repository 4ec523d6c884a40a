import logging
import threading

import pytest
from google.genai import errors as genai_errors

from ecotrip.llm.dispatcher import RequestDispatcher
from ecotrip.llm.errors import (
    DispatchCancelledError,
    DispatchTimeoutError,
    ErrorKind,
    KeysExhaustedError,
    NoApiKeysError,
    classify_error,
)
from ecotrip.llm.keys import KeyPool
from ecotrip.llm.request import GenerationRequest
from ecotrip.llm.stream import collect_text
from gemini_fakes import BadRequest, FakeClientFactory, RateLimited, always, text_chunk

REQUEST = GenerationRequest(prompt="Plan a day in Bandung")


def make_dispatcher(keys, factory, fallbacks=None, **kwargs):
    return RequestDispatcher(
        KeyPool(keys),
        client_factory=factory,
        fallbacks=fallbacks if fallbacks is not None else {},
        **kwargs,
    )


@pytest.mark.parametrize("pool_size", [1, 2, 5])
def test_all_rate_limited_single_model_makes_one_attempt_per_key(pool_size):
    keys = [f"key-{i}" for i in range(pool_size)]
    factory = always(RateLimited("429 Too Many Requests"))
    dispatcher = make_dispatcher(keys, factory)

    with pytest.raises(KeysExhaustedError) as excinfo:
        dispatcher.dispatch("gemini-2.5-flash", REQUEST)

    assert len(factory.calls) == pool_size
    assert [key for key, _ in factory.calls] == keys
    assert isinstance(excinfo.value.last_error, RateLimited)
    assert "429 Too Many Requests" in str(excinfo.value)
    # a full cycle lands back where it started
    assert dispatcher.key_pool.cursor == 0


def test_empty_pool_fails_fast_without_network():
    factory = always([text_chunk("never")])
    dispatcher = make_dispatcher([], factory)

    with pytest.raises(NoApiKeysError):
        dispatcher.dispatch("gemini-2.0-flash", REQUEST)

    assert factory.calls == []
    assert factory.timeouts == []


def test_fatal_error_propagates_unchanged_after_one_call():
    error = BadRequest("400 INVALID_ARGUMENT: bad schema")
    factory = always(error)
    dispatcher = make_dispatcher(["k1", "k2"], factory, fallbacks={"primary": ["alt1"]})

    with pytest.raises(BadRequest) as excinfo:
        dispatcher.dispatch("primary", REQUEST)

    assert excinfo.value is error
    assert len(factory.calls) == 1
    assert dispatcher.key_pool.cursor == 0


def test_fatal_error_after_rotation_keeps_cursor_where_it_landed():
    def outcome(api_key, model):
        return RateLimited("quota") if api_key == "k1" else BadRequest("permission denied")

    dispatcher = make_dispatcher(["k1", "k2", "k3"], FakeClientFactory(outcome))

    with pytest.raises(BadRequest):
        dispatcher.dispatch("gemini-2.5-flash", REQUEST)

    assert dispatcher.key_pool.cursor == 1


def test_primary_exhausted_then_fallback_succeeds_on_wrapped_key():
    def outcome(api_key, model):
        if model == "primary":
            return RateLimited("Resource has been exhausted")
        return [text_chunk("hello "), text_chunk("from alt1")]

    factory = FakeClientFactory(outcome)
    dispatcher = make_dispatcher(["K1", "K2"], factory, fallbacks={"primary": ["alt1"]})

    stream = dispatcher.dispatch("primary", REQUEST)

    assert factory.calls == [("K1", "primary"), ("K2", "primary"), ("K1", "alt1")]
    assert stream.model == "alt1"
    assert stream.used_fallback
    assert stream.key_index == 0
    assert stream.attempts == 3
    # the successful attempt also moves the cursor on, so it rests on K2
    assert dispatcher.key_pool.cursor == 1
    assert collect_text(stream) == "hello from alt1"


def test_rotation_resumes_from_current_cursor_not_from_zero():
    def outcome(api_key, model):
        return RateLimited("429") if model == "primary" else [text_chunk("ok")]

    factory = FakeClientFactory(outcome)
    dispatcher = make_dispatcher(["k0", "k1", "k2"], factory, fallbacks={"primary": ["alt"]})
    dispatcher.key_pool.advance_past(0)

    stream = dispatcher.dispatch("primary", REQUEST)

    assert [key for key, _ in factory.calls] == ["k1", "k2", "k0", "k1"]
    assert stream.key_index == 1
    assert dispatcher.key_pool.cursor == 2


def test_second_dispatch_continues_from_previous_cursor():
    def outcome(api_key, model):
        return RateLimited("Quota exceeded for metric") if api_key == "k1" else [text_chunk("ok")]

    factory = FakeClientFactory(outcome)
    dispatcher = make_dispatcher(["k1", "k2"], factory)

    dispatcher.dispatch("m", REQUEST)
    dispatcher.dispatch("m", REQUEST)

    assert [key for key, _ in factory.calls] == ["k1", "k2", "k1", "k2"]
    assert dispatcher.key_pool.cursor == 0


def test_all_models_exhausted_raises_aggregate_error():
    factory = always(RateLimited("429"))
    dispatcher = make_dispatcher(["k1", "k2"], factory, fallbacks={"primary": ["alt1", "alt2"]})

    with pytest.raises(KeysExhaustedError) as excinfo:
        dispatcher.dispatch("primary", REQUEST)

    assert len(factory.calls) == 6
    assert excinfo.value.models == ["primary", "alt1", "alt2"]


def test_fallback_chain_is_deterministic_and_deduplicated():
    dispatcher = make_dispatcher(
        ["k"], always([]), fallbacks={"gemini-2.0-flash": ["gemini-2.0-flash-lite", "gemini-2.0-flash"]}
    )
    first = dispatcher.fallback_chain("gemini-2.0-flash")
    assert first == ["gemini-2.0-flash", "gemini-2.0-flash-lite"]
    assert dispatcher.fallback_chain("gemini-2.0-flash") == first
    assert dispatcher.fallback_chain("gemini-1.5-pro") == ["gemini-1.5-pro"]


def test_default_fallback_table():
    dispatcher = RequestDispatcher(KeyPool(["k"]), client_factory=always([]))
    assert dispatcher.fallback_chain("gemini-2.0-flash") == [
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
        "gemini-2.5-flash",
    ]


def test_success_on_fallback_is_logged(caplog):
    def outcome(api_key, model):
        return RateLimited("429") if model == "primary" else [text_chunk("ok")]

    dispatcher = make_dispatcher(["k1"], FakeClientFactory(outcome), fallbacks={"primary": ["alt1"]})
    with caplog.at_level(logging.INFO, logger="ecotrip.llm.dispatcher"):
        dispatcher.dispatch("primary", REQUEST)

    assert any("fallback model alt1" in r.getMessage() for r in caplog.records)


def test_empty_stream_is_a_successful_dispatch():
    dispatcher = make_dispatcher(["k1"], always([]))
    stream = dispatcher.dispatch("m", REQUEST)
    assert collect_text(stream) == ""


def test_cancelled_dispatch_stops_before_any_call():
    factory = always([text_chunk("ok")])
    dispatcher = make_dispatcher(["k1"], factory)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(DispatchCancelledError):
        dispatcher.dispatch("m", REQUEST, cancel_event=cancel)

    assert factory.calls == []


def test_dispatch_budget_expiry_aborts_retry_loop():
    now = [0.0]

    def outcome(api_key, model):
        now[0] += 4.0
        return RateLimited("429")

    factory = FakeClientFactory(outcome)
    dispatcher = make_dispatcher(
        ["k1", "k2", "k3", "k4"], factory, attempt_timeout=30.0, clock=lambda: now[0]
    )

    with pytest.raises(DispatchTimeoutError) as excinfo:
        dispatcher.dispatch("m", REQUEST, timeout=10.0)

    # attempts at t=0, 4 and 8; the budget is gone at t=12
    assert len(factory.calls) == 3
    assert isinstance(excinfo.value.last_error, RateLimited)
    assert factory.timeouts == [10.0, 6.0, 2.0]


def test_attempt_timeout_used_when_no_budget():
    factory = always([text_chunk("ok")])
    dispatcher = make_dispatcher(["k1"], factory, attempt_timeout=15.0)
    dispatcher.dispatch("m", REQUEST)
    assert factory.timeouts == [15.0]


def test_classify_error_prefers_structured_fields():
    assert classify_error(RateLimited("nothing in the text")) is ErrorKind.RATE_LIMIT
    assert classify_error(BadRequest("400 bad request")) is ErrorKind.FATAL


def test_classify_error_falls_back_to_message():
    assert classify_error(RuntimeError("[429] Too Many Requests")) is ErrorKind.RATE_LIMIT
    assert classify_error(RuntimeError("Quota exceeded for quota metric")) is ErrorKind.RATE_LIMIT
    assert classify_error(RuntimeError("Resource has been exhausted (e.g. check quota).")) is ErrorKind.RATE_LIMIT
    assert classify_error(RuntimeError("API key not valid")) is ErrorKind.FATAL


def test_sdk_client_errors_are_classified_by_code():
    quota = genai_errors.ClientError(429, {"error": {"message": "slow down", "status": "RESOURCE_EXHAUSTED"}})
    invalid = genai_errors.ClientError(400, {"error": {"message": "bad", "status": "INVALID_ARGUMENT"}})
    assert classify_error(quota) is ErrorKind.RATE_LIMIT
    assert classify_error(invalid) is ErrorKind.FATAL


def test_successful_dispatches_spread_over_the_pool():
    factory = always([text_chunk("ok")])
    dispatcher = make_dispatcher(["k1", "k2", "k3"], factory)

    for _ in range(4):
        dispatcher.dispatch("m", REQUEST)

    assert [key for key, _ in factory.calls] == ["k1", "k2", "k3", "k1"]


def test_structured_code_wins_over_message_text():
    invalid = genai_errors.ClientError(
        400,
        {"error": {"message": "Request payload of 4291 tokens is invalid", "status": "INVALID_ARGUMENT"}},
    )
    assert classify_error(invalid) is ErrorKind.FATAL
    assert classify_error(BadRequest("Quota exceeded wording in a 400")) is ErrorKind.FATAL


def test_error_with_429_text_in_a_400_fails_without_rotation():
    error = genai_errors.ClientError(
        400,
        {"error": {"message": "Request payload of 4291 tokens is invalid", "status": "INVALID_ARGUMENT"}},
    )
    factory = always(error)
    dispatcher = make_dispatcher(["k1", "k2"], factory, fallbacks={"primary": ["alt1"]})

    with pytest.raises(genai_errors.ClientError) as excinfo:
        dispatcher.dispatch("primary", REQUEST)

    assert excinfo.value is error
    assert len(factory.calls) == 1
    assert dispatcher.key_pool.cursor == 0
