"""
Consumers for streamed Gemini responses.

Two modes are offered on purpose. ``collect_*`` drain the whole stream and
are what batch callers (itinerary, recommendations, details) use. ``iter_*``
and ``peek_first`` hand items out as chunks arrive and are what the
interactive map planner uses.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass
class FunctionInvocation:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


def _chunk_parts(chunk: Any) -> Optional[List[Any]]:
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def chunk_text(chunk: Any) -> str:
    parts = _chunk_parts(chunk)
    if parts is None:
        return getattr(chunk, "text", None) or ""
    return "".join(
        part.text for part in parts if getattr(part, "text", None) and not getattr(part, "thought", False)
    )


def chunk_function_calls(chunk: Any) -> List[FunctionInvocation]:
    parts = _chunk_parts(chunk) or []
    calls: List[FunctionInvocation] = []
    for part in parts:
        call = getattr(part, "function_call", None)
        if call is None or not getattr(call, "name", None):
            continue
        calls.append(FunctionInvocation(name=call.name, args=dict(call.args or {})))
    return calls


def iter_text(chunks: Iterable[Any]) -> Iterator[str]:
    for chunk in chunks:
        text = chunk_text(chunk)
        if text:
            yield text


def iter_function_calls(chunks: Iterable[Any]) -> Iterator[FunctionInvocation]:
    for chunk in chunks:
        yield from chunk_function_calls(chunk)


def collect_text(chunks: Iterable[Any]) -> str:
    return "".join(chunk_text(chunk) for chunk in chunks)


def collect_function_calls(chunks: Iterable[Any]) -> List[FunctionInvocation]:
    return list(iter_function_calls(chunks))


def peek_first(chunks: Iterable[Any]) -> Tuple[Optional[Any], Iterator[Any]]:
    """Return the first chunk and an iterator that still yields it first."""
    iterator = iter(chunks)
    try:
        first = next(iterator)
    except StopIteration:
        return None, iter(())
    return first, itertools.chain((first,), iterator)
