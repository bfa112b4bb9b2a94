from __future__ import annotations

from urllib.parse import quote


def sanitize_filename(filename: str | None, *, fallback: str = "download") -> str:
    v = (filename or "").strip()
    # Client-supplied names may carry paths; keep the last component only.
    v = v.split("/")[-1].split("\\")[-1]
    # Header injection.
    v = v.replace("\r", "").replace("\n", "").replace("\x00", "")
    if not v:
        v = fallback
    return v[:150]


def build_content_disposition(filename: str, *, inline: bool = False) -> str:
    """Content-Disposition value with an ASCII `filename=` fallback and RFC 5987 `filename*=`."""

    name = sanitize_filename(filename)
    ascii_name = name.encode("ascii", errors="ignore").decode("ascii") or "download"
    ascii_name = ascii_name.replace('"', "'")
    disposition = "inline" if inline else "attachment"
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name, safe='')}"
