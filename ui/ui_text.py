from urllib.parse import urlparse


def hostname(uri: str) -> str:
    try:
        host = urlparse(uri or "").hostname
    except ValueError:
        host = None
    return host or (uri or "")


def source_label(source) -> str:
    """Chip text for a citation: its title, or the host for untitled web links."""
    title = (getattr(source, "title", "") or "").strip()
    if title:
        return title
    if getattr(source, "type", "") == "web":
        return hostname(getattr(source, "uri", ""))
    return getattr(source, "uri", "") or ""


def clip(text: str, limit: int) -> str:
    raw = " ".join((text or "").split())
    if len(raw) <= limit:
        return raw
    return raw[: max(0, limit - 1)].rstrip() + "…"


def format_number(value, digits: int = 2) -> str:
    try:
        return f"{float(value):.{digits}f}"
    except (TypeError, ValueError):
        return "--"
