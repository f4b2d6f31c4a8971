import threading

import pytest

import chat_controller
from ui_sessions import SessionStore


@pytest.fixture
def store():
    changes = []
    s = SessionStore(on_change=changes.append)
    s.changes = changes
    return s


@pytest.fixture
def make_ctx(store):
    def build(client, spawn=None):
        return chat_controller.ChatContext(
            page=None,
            state=chat_controller.new_chat_state(),
            store=store,
            client=client,
            ui_call=lambda page, fn: fn(),
            spawn=spawn or (lambda fn: fn()),
            update_send_state=lambda: None,
            stream_lock=threading.Lock(),
        )

    return build
