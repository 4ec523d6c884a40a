from __future__ import annotations

import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from google import genai
from google.genai import types

from ecotrip.core.config import DEFAULT_MODEL_FALLBACKS, Settings
from ecotrip.llm.errors import (
    DispatchCancelledError,
    DispatchTimeoutError,
    ErrorKind,
    KeysExhaustedError,
    NoApiKeysError,
    classify_error,
)
from ecotrip.llm.keys import KeyPool, api_key_fingerprint
from ecotrip.llm.request import GenerationRequest

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, Optional[float]], Any]


def gemini_client_factory(api_key: str, timeout: Optional[float]) -> genai.Client:
    http_options = types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
    return genai.Client(api_key=api_key, http_options=http_options)


class GenerationStream:
    """
    Live, single-pass stream of response chunks from the attempt that won.

    Iterating it pulls chunks from the network; it cannot be restarted.
    """

    def __init__(
        self,
        chunks: Iterator[Any],
        model: str,
        requested_model: str,
        key_index: int,
        attempts: int,
    ) -> None:
        self._chunks = chunks
        self.model = model
        self.requested_model = requested_model
        self.key_index = key_index
        self.attempts = attempts

    @property
    def used_fallback(self) -> bool:
        return self.model != self.requested_model

    def __iter__(self) -> Iterator[Any]:
        return self._chunks


class RequestDispatcher:
    """
    Streams Gemini content while rotating keys and falling back across models.

    For every model in the fallback chain, at most ``len(key_pool)`` attempts
    are made, each on the key under the shared cursor. The cursor moves to the
    next key after a rate-limit failure and after the attempt that succeeds;
    anything else is re-raised untouched and leaves the cursor in place.
    """

    def __init__(
        self,
        key_pool: KeyPool,
        client_factory: ClientFactory = gemini_client_factory,
        fallbacks: Optional[Mapping[str, Sequence[str]]] = None,
        attempt_timeout: Optional[float] = None,
        dispatch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key_pool = key_pool
        self.client_factory = client_factory
        self.fallbacks: Dict[str, List[str]] = {
            model: list(alternates)
            for model, alternates in (
                fallbacks if fallbacks is not None else DEFAULT_MODEL_FALLBACKS
            ).items()
        }
        self.attempt_timeout = attempt_timeout
        self.dispatch_timeout = dispatch_timeout
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, key_pool: Optional[KeyPool] = None) -> "RequestDispatcher":
        return cls(
            key_pool=key_pool or KeyPool.from_settings(settings),
            fallbacks=settings.gemini_model_fallbacks,
            attempt_timeout=settings.gemini_attempt_timeout_seconds,
            dispatch_timeout=settings.gemini_dispatch_timeout_seconds,
        )

    def fallback_chain(self, model: str) -> List[str]:
        return list(dict.fromkeys([model, *self.fallbacks.get(model, [])]))

    def dispatch(
        self,
        model: str,
        request: GenerationRequest,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationStream:
        if len(self.key_pool) == 0:
            raise NoApiKeysError()

        budget = timeout if timeout is not None else self.dispatch_timeout
        deadline = self._clock() + budget if budget else None
        chain = self.fallback_chain(model)
        contents = request.contents()
        config = request.config.to_genai()
        last_error: Optional[BaseException] = None
        attempts = 0

        for current_model in chain:
            for _ in range(len(self.key_pool)):
                attempt_timeout = self._attempt_budget(deadline, budget, cancel_event, last_error)
                index, api_key = self.key_pool.current()
                attempts += 1
                try:
                    chunks = self._open_stream(current_model, api_key, contents, config, attempt_timeout)
                except Exception as exc:  # noqa: BLE001
                    if classify_error(exc) is not ErrorKind.RATE_LIMIT:
                        raise
                    last_error = exc
                    logger.warning(
                        "[%s] Rate limit hit on key %s. Rotating key...",
                        current_model,
                        api_key_fingerprint(api_key),
                    )
                    self.key_pool.advance_past(index)
                    continue

                # a used key hands the next dispatch to its neighbour
                self.key_pool.advance_past(index)
                if current_model != model:
                    logger.info(
                        "Generated content using fallback model %s (requested %s)",
                        current_model,
                        model,
                    )
                return GenerationStream(
                    chunks,
                    model=current_model,
                    requested_model=model,
                    key_index=index,
                    attempts=attempts,
                )
            logger.warning("All keys exhausted for model %s. Checking for fallback model...", current_model)

        logger.error("Gemini dispatch exhausted %d attempts across %s", attempts, chain)
        raise KeysExhaustedError(chain, last_error) from last_error

    def _attempt_budget(
        self,
        deadline: Optional[float],
        budget: Optional[float],
        cancel_event: Optional[threading.Event],
        last_error: Optional[BaseException],
    ) -> Optional[float]:
        if cancel_event is not None and cancel_event.is_set():
            raise DispatchCancelledError("Gemini dispatch cancelled before completion.")
        if deadline is None:
            return self.attempt_timeout
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise DispatchTimeoutError(budget or 0.0, last_error)
        if self.attempt_timeout:
            return min(self.attempt_timeout, remaining)
        return remaining

    def _open_stream(
        self,
        model: str,
        api_key: str,
        contents: list,
        config: types.GenerateContentConfig,
        timeout: Optional[float],
    ) -> Iterator[Any]:
        client = self.client_factory(api_key, timeout)
        stream = iter(
            client.models.generate_content_stream(model=model, contents=contents, config=config)
        )
        # The SDK stream is lazy; pulling the first chunk is what sends the
        # request, so quota errors must surface here rather than in the caller.
        try:
            first = next(stream)
        except StopIteration:
            return iter(())
        return itertools.chain((first,), stream)
