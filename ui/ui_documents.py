from pathlib import Path


MAX_SOURCE_CHARS = 500_000


def read_text_file(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        raise RuntimeError(f"Unable to read file: {exc}") from exc


def source_from_file(path: str | Path) -> tuple[str, str]:
    """(title, content) for a plain-text file picked as a local source."""
    p = Path(path)
    content = read_text_file(p)
    if not content.strip():
        raise RuntimeError(f"{p.name} is empty.")
    if len(content) > MAX_SOURCE_CHARS:
        raise RuntimeError(f"{p.name} is too large to use as a source ({len(content)} chars).")
    return p.stem or p.name, content
