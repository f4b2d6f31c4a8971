import html
import json
import logging
import threading

from pydantic import ValidationError

import ui_config as cfg
from schemas import ChatSession


logger = logging.getLogger(__name__)


def serialize_sessions(sessions: list[ChatSession]) -> str:
    return json.dumps(
        [s.model_dump(mode="json", by_alias=True, exclude_none=True) for s in sessions],
        ensure_ascii=False,
    )


def deserialize_sessions(raw: str) -> list[ChatSession]:
    """
    Raises ValueError when the blob is not a JSON list. Entries that fail
    validation are logged and skipped so one bad session does not cost the rest.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("stored sessions are not a list")
    sessions: list[ChatSession] = []
    for index, item in enumerate(data):
        try:
            sessions.append(ChatSession.model_validate(item))
        except ValidationError as exc:
            logger.warning("Dropping unreadable saved session #%d: %s", index, exc)
    return sessions


def load_sessions(store, key: str = cfg.STORAGE_KEY) -> list[ChatSession]:
    try:
        raw = store.get(key)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read saved sessions: %s", exc)
        return []
    if not raw:
        return []
    try:
        return deserialize_sessions(raw)
    except (ValueError, ValidationError) as exc:
        logger.warning("Saved sessions are corrupt, starting fresh: %s", exc)
        return []


def save_sessions(store, sessions: list[ChatSession], key: str = cfg.STORAGE_KEY) -> None:
    try:
        if sessions:
            store.set(key, serialize_sessions(sessions))
        else:
            store.remove(key)
    except (OSError, ValueError, TypeError):
        logger.exception("Failed to save sessions")


class SessionWriter:
    """
    Coalesces persistence of the session list.

    ``schedule`` keeps only the most recent snapshot; the timer thread writes
    whatever is newest when it fires, so a write never lands older state over
    newer state.
    """

    def __init__(self, store, delay_s: float = cfg.SESSION_SAVE_DELAY_S, key: str = cfg.STORAGE_KEY):
        self.store = store
        self.delay_s = max(0.0, float(delay_s))
        self.key = key
        self._lock = threading.Lock()
        self._pending: list[ChatSession] | None = None
        self._timer: threading.Timer | None = None

    def schedule(self, sessions: list[ChatSession]) -> None:
        with self._lock:
            self._pending = list(sessions)
            if self._timer is not None:
                return
            self._timer = threading.Timer(self.delay_s, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        with self._lock:
            pending = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if pending is None:
                return
            save_sessions(self.store, pending, self.key)


def safe_filename(raw_name: str) -> str:
    raw = (raw_name or "").strip() or "session"
    return "".join(ch if ch.isalnum() or ch in ("-", "_") else "_" for ch in raw)


def _speaker(role: str) -> str:
    return "You" if role == "user" else "Gemini"


def export_session_text(session: ChatSession, fmt: str) -> tuple[str, str]:
    """Render one session as (extension, text). Unknown formats fall back to json."""
    fmt = (fmt or "json").strip().lower()
    if fmt not in ("json", "md", "txt", "html"):
        fmt = "json"

    if fmt == "json":
        return "json", json.dumps(session.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2)

    title = session.title

    if fmt == "txt":
        lines = [title, ""]
        for m in session.messages:
            lines.append(_speaker(m.role).upper())
            if m.image:
                lines.append("[image attached]")
            lines.append(m.text.rstrip())
            for src in m.sources or []:
                lines.append(f"  - {src.title}: {src.uri}")
            lines.append("")
        return "txt", "\n".join(lines).rstrip() + "\n"

    if fmt == "md":
        lines = [f"# {title}", ""]
        for m in session.messages:
            lines.append(f"## {_speaker(m.role)}")
            lines.append("")
            if m.image:
                lines.append("*Image attached*")
                lines.append("")
            lines.append(m.text.rstrip())
            lines.append("")
            if m.sources:
                lines.append("**Sources**")
                lines.append("")
                lines.extend(f"- [{src.title}]({src.uri})" for src in m.sources)
                lines.append("")
        return "md", "\n".join(lines).rstrip() + "\n"

    parts = [
        "<!doctype html>",
        "<html><head><meta charset=\"utf-8\"/>",
        f"<title>{html.escape(title)}</title>",
        "<style>body{font-family:system-ui,Segoe UI,Roboto,Arial,sans-serif;max-width:900px;margin:24px auto;padding:0 16px;line-height:1.4}pre{white-space:pre-wrap;background:#111827;color:#e5e7eb;border-radius:10px;padding:12px}img{max-width:320px;border-radius:8px}</style>",
        "</head><body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    for m in session.messages:
        parts.append(f"<h2>{_speaker(m.role)}</h2>")
        if m.image:
            parts.append(f"<img src=\"{html.escape(m.image, quote=True)}\" alt=\"User upload\"/>")
        parts.append(f"<pre>{html.escape(m.text.rstrip())}</pre>")
        if m.sources:
            links = "".join(
                f"<li><a href=\"{html.escape(src.uri, quote=True)}\">{html.escape(src.title)}</a></li>" for src in m.sources
            )
            parts.append(f"<ul>{links}</ul>")
    parts.append("</body></html>")
    return "html", "\n".join(parts) + "\n"
