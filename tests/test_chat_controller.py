import threading

import chat_controller
from chat_controller import StreamPhase, StreamState
from schemas import ChatConfig, GroundingSource, ImageAttachment
from ui_model_client import ModelServiceError
from fakes import FakeClient, text_chunk


def web(uri, title=None):
    body = {"uri": uri}
    if title is not None:
        body["title"] = title
    return {"web": body}


def maps(uri, title=None):
    body = {"uri": uri}
    if title is not None:
        body["title"] = title
    return {"maps": body}


# Chunk folding


def test_chunk_text_skips_thought_parts():
    chunk = {"candidates": [{"content": {"parts": [{"text": "plan", "thought": True}, {"text": "answer"}]}}]}

    assert chat_controller.chunk_text(chunk) == "answer"


def test_chunk_text_handles_missing_candidates():
    assert chat_controller.chunk_text({}) == ""
    assert chat_controller.chunk_text({"candidates": []}) == ""


def test_extract_sources_defaults_titles_and_skips_missing_uris():
    chunk = text_chunk("", [web("https://a"), maps("https://m"), web("", "No uri"), {"other": {}}])

    sources = chat_controller.extract_sources(chunk)

    assert sources == [
        GroundingSource(type="web", uri="https://a", title="Untitled Source"),
        GroundingSource(type="maps", uri="https://m", title="Map Location"),
    ]


def test_merge_sources_keeps_position_and_latest_title():
    a = GroundingSource(type="web", uri="https://a", title="A")
    b = GroundingSource(type="web", uri="https://b", title="B")
    a2 = GroundingSource(type="web", uri="https://a", title="A2")

    merged = chat_controller.merge_sources([a, b], [a2])

    assert [(s.uri, s.title) for s in merged] == [("https://a", "A2"), ("https://b", "B")]


def test_merge_sources_is_idempotent():
    a = GroundingSource(type="web", uri="https://a", title="A")

    once = chat_controller.merge_sources([], [a])

    assert chat_controller.merge_sources(once, [a]) == once


def test_apply_chunk_after_done_is_ignored():
    done = StreamState(phase=StreamPhase.DONE, text="final")

    assert chat_controller.apply_chunk(done, text_chunk("more")) is done


def test_consume_stream_reports_cumulative_text():
    deltas = []

    result = chat_controller.consume_stream(
        [text_chunk("Hel"), text_chunk("lo")],
        lambda text, sources: deltas.append((text, sources)),
    )

    assert deltas == [("Hel", None), ("Hello", None)]
    assert result.phase is StreamPhase.DONE
    assert result.text == "Hello"


def test_fail_replaces_text_and_drops_sources():
    partial = StreamState(phase=StreamPhase.STREAMING, text="Paris is", sources=(GroundingSource(type="web", uri="u", title="t"),))

    failed = chat_controller.fail(partial, ModelServiceError("quota exceeded"))

    assert failed.phase is StreamPhase.ERRORED
    assert failed.text == "Sorry, I encountered an error: quota exceeded"
    assert failed.sources == ()
    assert failed.error == "Error: quota exceeded"


# Sending


def test_send_streams_answer_and_titles_session(store, make_ctx):
    store.load([])
    client = FakeClient([text_chunk("The capital "), text_chunk("of France is Paris.")])
    ctx = make_ctx(client)

    assert chat_controller.send_message(ctx, "What is the capital of France?")

    session = store.active_session
    assert session.title == "What is the capital of France?"
    assert [m.role for m in session.messages] == ["user", "model"]
    assert session.messages[0].text == "What is the capital of France?"
    assert session.messages[1].text == "The capital of France is Paris."
    assert session.messages[1].sources is None
    assert ctx.state["streaming"] is False
    assert ctx.state["error"] is None


def test_request_does_not_contain_the_placeholder(store, make_ctx):
    store.load([])
    client = FakeClient([text_chunk("ok")])
    ctx = make_ctx(client)

    chat_controller.send_message(ctx, "hi")

    request = client.requests[0]
    assert [c.role for c in request.contents] == ["user"]


def test_sources_are_deduplicated_by_uri(store, make_ctx):
    store.load([])
    client = FakeClient(
        [
            text_chunk("Paris", [web("https://a", "A")]),
            text_chunk(" it is.", [web("https://a", "A2"), web("https://b", "B")]),
        ]
    )
    ctx = make_ctx(client)

    chat_controller.send_message(ctx, "capital?")

    model = store.active_session.messages[-1]
    assert model.text == "Paris it is."
    assert [(s.uri, s.title) for s in model.sources] == [("https://a", "A2"), ("https://b", "B")]


def test_stream_error_replaces_partial_text(store, make_ctx):
    store.load([])
    client = FakeClient([text_chunk("Paris is", [web("https://a", "A")])], error=ModelServiceError("503: overloaded"))
    ctx = make_ctx(client)

    chat_controller.send_message(ctx, "capital?")

    model = store.active_session.messages[-1]
    assert model.text == "Sorry, I encountered an error: 503: overloaded"
    assert model.sources is None
    assert ctx.state["error"] == "Error: 503: overloaded"
    assert ctx.state["streaming"] is False


def test_blank_input_is_rejected(store, make_ctx):
    store.load([])
    client = FakeClient()
    ctx = make_ctx(client)

    assert chat_controller.send_message(ctx, "   ") is False
    assert store.active_session.messages == []
    assert client.requests == []


def test_send_without_session_is_rejected(store, make_ctx):
    ctx = make_ctx(FakeClient())

    assert chat_controller.send_message(ctx, "hi") is False


def test_image_only_message_is_sent(store, make_ctx):
    store.load([])
    client = FakeClient([text_chunk("A cat.")])
    ctx = make_ctx(client)
    image = ImageAttachment(mime_type="image/png", data="iVBORw0KGgo=")

    assert chat_controller.send_message(ctx, "", image)

    user = store.active_session.messages[0]
    assert user.image == "data:image/png;base64,iVBORw0KGgo="
    assert user.text == ""
    assert store.active_session.title == "New Chat"
    assert client.requests[0].contents[-1].parts[0].inline_data.mime_type == "image/png"


def test_second_send_is_rejected_while_streaming(store, make_ctx):
    store.load([])
    pending = []
    ctx = make_ctx(FakeClient([text_chunk("one")]), spawn=pending.append)

    assert chat_controller.send_message(ctx, "first")
    assert chat_controller.send_message(ctx, "second") is False
    assert len(store.active_session.messages) == 2

    pending[0]()

    assert ctx.state["streaming"] is False
    assert chat_controller.send_message(ctx, "second")


def test_config_change_does_not_affect_running_request(store, make_ctx):
    store.load([])
    pending = []
    client = FakeClient([text_chunk("ok")])
    ctx = make_ctx(client, spawn=pending.append)

    chat_controller.send_message(ctx, "hi")
    sid = store.active_session_id
    store.update_config(sid, ChatConfig(temperature=0.1))
    pending[0]()

    assert client.requests[0].temperature == 0.7
    assert store.get(sid).config.temperature == 0.1


def test_deltas_land_in_the_originating_session(store, make_ctx):
    store.load([])
    pending = []
    ctx = make_ctx(FakeClient([text_chunk("answer")]), spawn=pending.append)

    chat_controller.send_message(ctx, "question")
    origin = store.active_session_id
    other = store.create_session()
    pending[0]()

    assert store.active_session_id == other
    assert store.get(other).messages == []
    assert store.get(origin).messages[-1].text == "answer"


def test_stop_keeps_partial_text(store, make_ctx):
    store.load([])
    holder = {}
    client = FakeClient(
        [
            text_chunk("Hello"),
            lambda: chat_controller.stop_stream(holder["ctx"]),
            text_chunk(" world"),
        ]
    )
    ctx = holder["ctx"] = make_ctx(client)

    chat_controller.send_message(ctx, "greet me")

    model = store.active_session.messages[-1]
    assert model.text == "Hello"
    assert client.closed == 1
    assert ctx.state["streaming"] is False
    assert ctx.state["error"] is None
    assert not ctx.state["cancel_event"].is_set()


def test_transport_error_after_stop_is_not_reported(store, make_ctx):
    store.load([])
    holder = {}
    client = FakeClient(
        [text_chunk("Hel"), lambda: chat_controller.stop_stream(holder["ctx"])],
        error=ConnectionError("socket closed"),
    )
    ctx = holder["ctx"] = make_ctx(client)

    chat_controller.send_message(ctx, "greet me")

    assert store.active_session.messages[-1].text == "Hel"
    assert ctx.state["error"] is None


def test_deleting_the_streaming_session_cancels_it(store, make_ctx):
    store.load([])
    holder = {}

    def delete_active():
        ctx = holder["ctx"]
        sid = ctx.state["stream_session_id"]
        chat_controller.cancel_stream_for_session(ctx, sid)
        store.delete_session(sid)

    client = FakeClient([text_chunk("partial"), delete_active, text_chunk(" more")])
    ctx = holder["ctx"] = make_ctx(client)

    chat_controller.send_message(ctx, "hi")

    assert store.sessions == []
    assert client.closed == 1
    assert ctx.state["streaming"] is False


def test_cancel_for_other_session_is_ignored(store, make_ctx):
    store.load([])
    pending = []
    client = FakeClient([text_chunk("ok")])
    ctx = make_ctx(client, spawn=pending.append)
    chat_controller.send_message(ctx, "hi")

    chat_controller.cancel_stream_for_session(ctx, "someone-else")

    assert not ctx.state["cancel_event"].is_set()
    assert client.closed == 0
    pending[0]()


def test_setup_failure_releases_the_send_flag(store, make_ctx, monkeypatch):
    store.load([])
    ctx = make_ctx(FakeClient())

    def boom(*args, **kwargs):
        raise RuntimeError("bad request")

    monkeypatch.setattr(chat_controller.ui_prompt, "build_request", boom)

    assert chat_controller.send_message(ctx, "hi") is False

    assert ctx.state["streaming"] is False
    assert ctx.state["error"] == "Error: bad request"
    assert store.active_session.messages == []


def test_worker_start_failure_releases_the_send_flag(store, make_ctx):
    store.load([])

    def no_threads(fn):
        raise RuntimeError("can't start new thread")

    ctx = make_ctx(FakeClient([text_chunk("ok")]), spawn=no_threads)

    assert chat_controller.send_message(ctx, "hi") is False

    assert ctx.state["streaming"] is False
    assert ctx.state["error"] == "Error: can't start new thread"
    messages = store.active_session.messages
    assert [m.role for m in messages] == ["user", "model"]
    assert messages[1].text == "Sorry, I encountered an error: can't start new thread"

    ctx.spawn = lambda fn: fn()
    assert chat_controller.send_message(ctx, "again")
    assert store.active_session.messages[-1].text == "ok"
    assert ctx.state["error"] is None


def test_new_chat_state_is_idle():
    state = chat_controller.new_chat_state()

    assert state["streaming"] is False
    assert isinstance(state["cancel_event"], threading.Event)
    assert state["location"] is None
