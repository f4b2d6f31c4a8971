import itertools
import logging
import threading
import time
import uuid

import ui_config as cfg
from schemas import ChatConfig, ChatSession, LocalSource, Message


logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


def new_source_id(existing: list[LocalSource]) -> str:
    taken = {s.id for s in existing}
    base = int(time.time() * 1000)
    for n in itertools.count():
        candidate = str(base + n)
        if candidate not in taken:
            return candidate


def derive_title(text: str) -> str:
    return (text or "").strip()[: cfg.TITLE_MAX_CHARS] or cfg.DEFAULT_TITLE


def new_session() -> ChatSession:
    return ChatSession(id=new_id(), title=cfg.DEFAULT_TITLE, config=ChatConfig())


class SessionStore:
    """
    Ordered collection of chat sessions plus the active selection.

    Sessions are immutable records; every operation builds a new list and
    swaps it in, then hands the result to ``on_change`` exactly once. No-op
    calls (unknown ids, blank titles) do not notify.
    """

    def __init__(self, on_change=None):
        self._lock = threading.RLock()
        self._sessions: list[ChatSession] = []
        self._active_id: str | None = None
        self._on_change = on_change

    @property
    def sessions(self) -> list[ChatSession]:
        with self._lock:
            return list(self._sessions)

    @property
    def active_session_id(self) -> str | None:
        return self._active_id

    @property
    def active_session(self) -> ChatSession | None:
        return self.get(self._active_id) if self._active_id else None

    def get(self, session_id: str | None) -> ChatSession | None:
        with self._lock:
            for s in self._sessions:
                if s.id == session_id:
                    return s
        return None

    def _commit(self, sessions: list[ChatSession], active_id: str | None) -> None:
        self._sessions = sessions
        self._active_id = active_id
        if self._on_change is not None:
            self._on_change(list(sessions))

    def _replace(self, session_id: str, updater) -> bool:
        with self._lock:
            changed = False
            out: list[ChatSession] = []
            for s in self._sessions:
                if s.id == session_id:
                    s = updater(s)
                    changed = True
                out.append(s)
            if changed:
                self._commit(out, self._active_id)
            return changed

    def load(self, sessions: list[ChatSession]) -> None:
        with self._lock:
            if not sessions:
                self._sessions = []
                self._active_id = None
                self.create_session()
                return
            # rename mode never survives a restart
            self._sessions = [s.model_copy(update={"is_renaming": False}) if s.is_renaming else s for s in sessions]
            self._active_id = sessions[0].id

    def create_session(self) -> str:
        session = new_session()
        with self._lock:
            self._commit([session] + self._sessions, session.id)
        return session.id

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            remaining = [s for s in self._sessions if s.id != session_id]
            if len(remaining) == len(self._sessions):
                return
            active = self._active_id
            if active == session_id:
                active = remaining[0].id if remaining else None
            self._commit(remaining, active)

    def set_active(self, session_id: str) -> None:
        with self._lock:
            if self.get(session_id) is not None:
                self._active_id = session_id

    def rename_session(self, session_id: str, title: str) -> None:
        if not (title or "").strip():
            return
        self._replace(
            session_id,
            lambda s: s.model_copy(update={"title": title, "is_renaming": False, "manually_renamed": True}),
        )

    def set_renaming(self, session_id: str, is_renaming: bool) -> None:
        self._replace(session_id, lambda s: s.model_copy(update={"is_renaming": bool(is_renaming)}))

    def update_config(self, session_id: str, config: ChatConfig) -> None:
        self._replace(session_id, lambda s: s.model_copy(update={"config": config}))

    def update_local_sources(self, session_id: str, sources: list[LocalSource]) -> None:
        self._replace(session_id, lambda s: s.model_copy(update={"local_sources": list(sources)}))

    def add_local_source(self, session_id: str, title: str, content: str) -> LocalSource | None:
        if not (title or "").strip() or not (content or "").strip():
            return None
        with self._lock:
            session = self.get(session_id)
            if session is None:
                return None
            source = LocalSource(id=new_source_id(session.local_sources), title=title, content=content)
            self.update_local_sources(session_id, session.local_sources + [source])
        return source

    def remove_local_source(self, session_id: str, source_id: str) -> None:
        with self._lock:
            session = self.get(session_id)
            if session is None:
                return
            kept = [s for s in session.local_sources if s.id != source_id]
            if len(kept) != len(session.local_sources):
                self.update_local_sources(session_id, kept)

    def append_message(self, session_id: str, message: Message) -> None:
        def append(s: ChatSession) -> ChatSession:
            update = {"messages": s.messages + [message]}
            if not s.messages and not s.manually_renamed and not s.is_renaming:
                update["title"] = derive_title(message.text)
                logger.debug("Auto-titled session %s", s.id)
            return s.model_copy(update=update)

        self._replace(session_id, append)

    def update_message(self, session_id: str, message_id: str, **patch) -> None:
        with self._lock:
            session = self.get(session_id)
            if session is None or not any(m.id == message_id for m in session.messages):
                return

            def patch_message(s: ChatSession) -> ChatSession:
                messages = [m.model_copy(update=patch) if m.id == message_id else m for m in s.messages]
                return s.model_copy(update={"messages": messages})

            self._replace(session_id, patch_message)
