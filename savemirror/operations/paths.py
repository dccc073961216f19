"""
Remote path normalization

Operators type remote paths the way their own machine spells them
(``C:\\Users\\me\\Saves``), while SFTP servers disagree on whether a
drive-letter path is rooted. Every remote path therefore goes through
``candidates()`` and is probed in order.
"""
import re

_DRIVE_PATH = re.compile(r"^[A-Za-z]:/")
_MULTI_SLASH = re.compile(r"/{2,}")


def normalize(raw: str) -> str:
    """Backslashes to slashes, trim whitespace and trailing slashes, collapse //."""
    cleaned = (raw or "").strip().replace("\\", "/")
    cleaned = _MULTI_SLASH.sub("/", cleaned)
    if len(cleaned) > 1:
        cleaned = cleaned.rstrip("/") or "/"
    return cleaned


def candidates(raw: str) -> list[str]:
    """
    Ordered, de-duplicated list of remote spellings for *raw*.

      candidates("C:/saves/game")  →  ["/C:/saves/game", "C:/saves/game"]
      candidates("/srv/saves")     →  ["/srv/saves"]
    """
    cleaned = normalize(raw)
    found: list[str] = []
    if _DRIVE_PATH.match(cleaned) and not cleaned.startswith("/"):
        found.append(f"/{cleaned}")
    found.append(cleaned)
    # dict preserves insertion order
    return list(dict.fromkeys(found))


def primary(raw: str) -> str:
    """The preferred spelling of *raw* (first candidate)."""
    found = candidates(raw)
    return found[0] if found else normalize(raw)


def join(parent: str, name: str) -> str:
    base = normalize(parent)
    if base in ("", "/"):
        return f"{base}{name}"
    return f"{base}/{name}"


def basename(raw: str) -> str:
    """Last non-empty segment of *raw* (empty for the root)."""
    segs = [s for s in normalize(raw).split("/") if s]
    return segs[-1] if segs else ""
