from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum

import ui_prompt
from schemas import (
    MAPS_SOURCE_DEFAULT_TITLE,
    WEB_SOURCE_DEFAULT_TITLE,
    GroundingSource,
    ImageAttachment,
    Message,
)
from ui_sessions import new_id


logger = logging.getLogger(__name__)

ERROR_TEXT = "Sorry, I encountered an error: {message}"
ERROR_LABEL = "Error: {message}"


class StreamPhase(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StreamState:
    phase: StreamPhase = StreamPhase.IDLE
    text: str = ""
    sources: tuple = ()
    error: str | None = None


def _first_candidate(chunk: dict) -> dict:
    candidates = chunk.get("candidates") if isinstance(chunk, dict) else None
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def chunk_text(chunk: dict) -> str:
    content = _first_candidate(chunk).get("content") or {}
    out: list[str] = []
    for part in content.get("parts") or []:
        if not isinstance(part, dict) or part.get("thought"):
            continue
        text = part.get("text")
        if isinstance(text, str):
            out.append(text)
    return "".join(out)


def extract_sources(chunk: dict) -> list[GroundingSource]:
    metadata = _first_candidate(chunk).get("groundingMetadata") or {}
    found: list[GroundingSource] = []
    for item in metadata.get("groundingChunks") or []:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("web"), dict):
            kind, body, default = "web", item["web"], WEB_SOURCE_DEFAULT_TITLE
        elif isinstance(item.get("maps"), dict):
            kind, body, default = "maps", item["maps"], MAPS_SOURCE_DEFAULT_TITLE
        else:
            continue
        uri = body.get("uri")
        if not uri:
            continue
        found.append(GroundingSource(type=kind, uri=uri, title=body.get("title") or default))
    return found


def merge_sources(existing, new) -> list[GroundingSource]:
    """One entry per uri; first position kept, latest title kept."""
    merged: dict[str, GroundingSource] = {}
    for src in list(existing) + list(new):
        merged[src.uri] = src
    return list(merged.values())


def apply_chunk(state: StreamState, chunk: dict) -> StreamState:
    if state.phase not in (StreamPhase.IDLE, StreamPhase.STREAMING):
        return state
    return StreamState(
        phase=StreamPhase.STREAMING,
        text=state.text + chunk_text(chunk),
        sources=tuple(merge_sources(state.sources, extract_sources(chunk))),
    )


def complete(state: StreamState) -> StreamState:
    return replace(state, phase=StreamPhase.DONE)


def cancel(state: StreamState) -> StreamState:
    return replace(state, phase=StreamPhase.CANCELLED)


def fail(state: StreamState, exc: BaseException) -> StreamState:
    message = str(exc) or exc.__class__.__name__
    return StreamState(
        phase=StreamPhase.ERRORED,
        text=ERROR_TEXT.format(message=message),
        sources=(),
        error=ERROR_LABEL.format(message=message),
    )


def consume_stream(chunks, on_delta, cancel_event: threading.Event | None = None) -> StreamState:
    """
    Fold a chunk iterator into a StreamState, calling ``on_delta(text, sources)``
    after every chunk. ``sources`` is None while nothing has been cited.
    Errors raised by the iterator propagate to the caller.
    """
    state = StreamState()
    for chunk in chunks:
        if cancel_event is not None and cancel_event.is_set():
            return cancel(state)
        state = apply_chunk(state, chunk)
        on_delta(state.text, list(state.sources) or None)
    if cancel_event is not None and cancel_event.is_set():
        return cancel(state)
    return complete(state)


@dataclass
class ChatContext:
    page: object
    state: dict
    store: object
    client: object

    ui_call: callable
    spawn: callable
    update_send_state: callable

    stream_lock: threading.Lock


def new_chat_state() -> dict:
    return {
        "streaming": False,
        "stream_session_id": None,
        "cancel_event": threading.Event(),
        "error": None,
        "location": None,
    }


def spawn_thread(fn) -> None:
    threading.Thread(target=fn, daemon=True).start()


def send_message(ctx: ChatContext, text: str, image: ImageAttachment | None = None) -> bool:
    """
    Start a send on the active session. Returns False when the send is
    rejected (blank input, no session, or another stream in flight) or
    cannot be started; a startup failure is reported through state["error"].
    """
    state = ctx.state
    text = text or ""
    if not text.strip() and image is None:
        return False
    session = ctx.store.active_session
    if session is None:
        return False

    with ctx.stream_lock:
        if state["streaming"]:
            logger.debug("Send rejected: a response is still streaming")
            return False
        state["streaming"] = True
        state["stream_session_id"] = session.id

    placeholder = None
    try:
        state["error"] = None
        state["cancel_event"].clear()

        request = ui_prompt.build_request(session, text, image, state.get("location"))

        user_msg = Message(
            id=new_id(),
            role="user",
            text=text,
            image=image.to_data_uri() if image is not None else None,
        )
        ctx.store.append_message(session.id, user_msg)
        placeholder = Message(id=new_id(), role="model", text="")
        ctx.store.append_message(session.id, placeholder)
        ctx.update_send_state()

        message_id = placeholder.id
        ctx.spawn(lambda: stream_worker(ctx, session.id, message_id, request))
    except Exception as exc:
        logger.exception("Could not start sending")
        failed = fail(StreamState(), exc)
        if placeholder is not None:
            ctx.store.update_message(session.id, placeholder.id, text=failed.text, sources=None)
        state["error"] = failed.error
        _release(ctx)
        return False
    return True


def _release(ctx: ChatContext) -> None:
    with ctx.stream_lock:
        ctx.state["streaming"] = False
        ctx.state["stream_session_id"] = None
    ctx.state["cancel_event"].clear()


def stream_worker(ctx: ChatContext, session_id: str, message_id: str, request) -> StreamState:
    state = ctx.state
    cancel_event = state["cancel_event"]
    page = ctx.page

    def on_delta(text, sources):
        ctx.ui_call(page, lambda: ctx.store.update_message(session_id, message_id, text=text, sources=sources))

    result = StreamState()
    try:
        result = consume_stream(ctx.client.stream_generate(request), on_delta, cancel_event)
        if result.phase is StreamPhase.CANCELLED:
            logger.info("Stream cancelled after %d chars", len(result.text))
    except Exception as exc:
        if cancel_event.is_set():
            logger.info("Stream closed by cancellation: %s", exc)
            result = cancel(result)
        else:
            logger.exception("Streaming response failed")
            result = fail(result, exc)
            failed = result

            def show_failure():
                ctx.store.update_message(session_id, message_id, text=failed.text, sources=None)
                state["error"] = failed.error

            ctx.ui_call(page, show_failure)
    finally:
        _release(ctx)
        ctx.ui_call(page, ctx.update_send_state)
    return result


def stop_stream(ctx: ChatContext) -> None:
    state = ctx.state
    if not state["streaming"] or state["cancel_event"].is_set():
        return
    state["cancel_event"].set()
    ctx.client.close()
    ctx.update_send_state()


def cancel_stream_for_session(ctx: ChatContext, session_id: str) -> None:
    """Abort the in-flight stream when its session is going away."""
    if ctx.state.get("streaming") and ctx.state.get("stream_session_id") == session_id:
        stop_stream(ctx)
