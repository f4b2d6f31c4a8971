import base64
import mimetypes
import os
from pathlib import Path

from schemas import ImageAttachment


def picked_paths(result) -> list[str]:
    """Readable local paths from a FilePicker result (pick or save), de-duplicated in order."""
    items = getattr(result, "files", None) or []
    if not items:
        save_path = getattr(result, "path", None)
        return [save_path] if isinstance(save_path, str) and save_path else []

    found: list[str] = []
    for item in items:
        if isinstance(item, str):
            candidate = item
        else:
            candidate = getattr(item, "path", None)
            if not candidate:
                # web mode only reports a name; keep it when it resolves locally
                name = getattr(item, "name", None)
                candidate = name if isinstance(name, str) and name and os.path.exists(name) else None
        if isinstance(candidate, str) and candidate:
            found.append(candidate)
    return list(dict.fromkeys(found))


def read_image(path: str | Path) -> ImageAttachment:
    p = Path(path)
    mime_type, _ = mimetypes.guess_type(p.name)
    if not mime_type or not mime_type.startswith("image/"):
        raise RuntimeError(f"{p.name} is not an image.")
    try:
        raw = p.read_bytes()
    except OSError as exc:
        raise RuntimeError(f"Unable to read image: {exc}") from exc
    return ImageAttachment(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))
